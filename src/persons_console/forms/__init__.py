"""Form submission collaborators."""
