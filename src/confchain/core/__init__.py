"""Core infrastructure: exceptions and settings."""
