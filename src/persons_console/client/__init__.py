"""Remote persons API client."""
