"""Registration records, badges and building/lab access."""
