"""Config loading and logging."""
