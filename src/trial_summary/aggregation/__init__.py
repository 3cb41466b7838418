"""Summary aggregation."""
