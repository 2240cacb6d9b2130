"""Core infrastructure: configuration, logging, errors and persistence."""
