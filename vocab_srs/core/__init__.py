"""Core scheduling domain."""
