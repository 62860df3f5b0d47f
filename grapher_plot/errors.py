from __future__ import annotations


class GrapherDataError(ValueError):
    """Raised when chart input data cannot be interpreted."""
