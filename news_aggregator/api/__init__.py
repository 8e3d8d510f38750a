"""
HTTP surface for the aggregation pipeline.

Provides:
- GET /health - Liveness and scheduler state
- GET /stats - Dedup cache and cycle counters
- GET/PUT/DELETE /rules/{subscriber_id} - Alert rule management
"""

from news_aggregator.api.app import create_app

__all__ = ["create_app"]
