"""HTTP API for transaction tracking."""
