"""HTTP API for the campaign."""
