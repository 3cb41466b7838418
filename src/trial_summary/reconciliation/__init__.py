"""Episode reconciliation."""
