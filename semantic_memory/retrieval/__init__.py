"""Memory recall."""
