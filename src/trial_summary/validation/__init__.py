"""Row-level validation rules."""
