"""Background and one-off jobs."""
