"""Service helpers shared by the API routes."""
