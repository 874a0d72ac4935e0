"""
Intel Providers Package

Report sources for live security intelligence.
GDELT is the only source (free, no API key required).
"""

from .gdelt_provider import GDELTProvider, dedupe_by_url

__all__ = ['GDELTProvider', 'dedupe_by_url']
