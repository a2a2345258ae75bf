"""Key extractor protocol.

Reads dimension values from a request context. The default extractor reads
the context fields directly; callers can swap in their own (e.g., to
derive a dimension from another one).
"""

from typing import Protocol

from authguard.domain.value_objects import RequestContext


class KeyExtractorProtocol(Protocol):
    """Protocol for dimension value extractors."""

    def extract(self, dimension: str, context: RequestContext) -> str | None:
        """Return the value of a dimension, or None when absent."""
        ...
