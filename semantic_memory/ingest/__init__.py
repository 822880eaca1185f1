"""Chunking, blob access and the indexing pipeline."""
