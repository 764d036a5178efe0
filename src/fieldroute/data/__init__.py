"""Stop data access."""
