"""HTTP layer: webhook and admin endpoints."""
