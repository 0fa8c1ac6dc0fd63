"""HTTP API for storekeeper."""
