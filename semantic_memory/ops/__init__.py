"""
Bounded calls to external dependencies.

Every embedding, store and blob call runs through ``call_upstream`` so a slow
dependency surfaces as UpstreamError instead of a hung request.
"""

from .upstream import call_upstream

__all__ = ["call_upstream"]
