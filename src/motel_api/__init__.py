"""REST API for the motel booking engine."""
