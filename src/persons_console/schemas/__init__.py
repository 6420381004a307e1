"""Request/response schemas and enums."""
