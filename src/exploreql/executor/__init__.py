"""Query executors."""
