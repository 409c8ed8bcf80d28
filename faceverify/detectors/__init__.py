"""Face detector collaborators."""
