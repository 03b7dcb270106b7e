"""Chain collaborators."""
