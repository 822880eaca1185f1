"""Embedding gateways and vector stores."""
