"""API layer - REST endpoints."""
