"""HTTP boundary of the scheduler."""
