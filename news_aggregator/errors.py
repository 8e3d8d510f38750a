"""Error taxonomy for the aggregation pipeline.

None of these are process-fatal. Each is handled at the stage boundary
where it occurs and converted to a log record and a metric.
"""


class AggregatorError(Exception):
    """Base exception for pipeline errors."""


class SourceFetchError(AggregatorError):
    """A single feed source failed to return items."""

    def __init__(self, source: str, message: str):
        super().__init__(f"{source}: {message}")
        self.source = source


class ClassificationError(AggregatorError):
    """The classifier failed for a whole batch."""


class DispatchError(AggregatorError):
    """Delivery to one subscriber failed after all attempts."""

    def __init__(self, subscriber_id: str, message: str):
        super().__init__(f"subscriber {subscriber_id}: {message}")
        self.subscriber_id = subscriber_id
