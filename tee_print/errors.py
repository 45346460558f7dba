"""Error types raised by the compositor.

Callers map these to user-facing messages ("could not read image",
"file too large"), so each carries enough structure to do that.
"""

from __future__ import annotations
from typing import Any, Dict, Optional


class CompositorError(Exception):
    """Base class for compositor errors."""

    kind = "compositor_error"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "error": str(self)}


class InvalidInput(CompositorError, ValueError):
    """Raised for missing/undecodable sources or malformed placement fields."""

    kind = "invalid_input"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        if self.field:
            payload["field"] = self.field
        return payload


class ResourceExceeded(CompositorError):
    """Raised when an input exceeds the configured guardrails.

    Attributes:
        limit_kind: 'dimension', 'pixels', 'bytes' or 'characters'
        value: Offending value
        limit: Configured maximum
    """

    kind = "resource_exceeded"

    def __init__(self, limit_kind: str, value: int, limit: int, message: Optional[str] = None):
        if message is None:
            message = f"Source {limit_kind} {value} exceeds limit {limit}"
        super().__init__(message)
        self.limit_kind = limit_kind
        self.value = value
        self.limit = limit

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload.update({"limit_kind": self.limit_kind, "value": self.value, "limit": self.limit})
        return payload
