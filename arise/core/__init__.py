"""Core infrastructure: configuration, logging, exceptions, content."""
