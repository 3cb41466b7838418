"""Logging and report persistence."""
