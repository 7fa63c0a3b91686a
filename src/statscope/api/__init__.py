"""StatScope HTTP API."""
