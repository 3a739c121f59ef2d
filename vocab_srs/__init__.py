"""Spaced repetition scheduling service for vocabulary cards."""
