"""Date, amount and logging helpers."""
