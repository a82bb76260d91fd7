"""Core runtime: configuration, connector interface, events, notifications and errors."""
