"""Linear (sink) API client."""
