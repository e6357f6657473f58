"""Usage log aggregation and the Active Users table."""
