"""HTTP surface for the memory service."""
