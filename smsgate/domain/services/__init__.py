"""Domain services for the inbound decision pipeline."""
