"""News aggregator - multi-source fetch, dedup, classification and alert routing."""

__version__ = "0.1.0"
