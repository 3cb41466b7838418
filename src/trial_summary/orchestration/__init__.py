"""Report orchestration."""
