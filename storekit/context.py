"""
Caller execution context passed through every repository call.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import uuid


@dataclass
class Context:
    """
    Per-call context handed to the connection provider and the logger.

    Attributes:
        request_id: Correlation id attached to failure records
        fields: Extra key/value pairs merged into failure records
    """

    request_id: Optional[str] = None
    fields: Dict[str, Any] = field(default_factory=dict)

    def with_fields(self, **fields: Any) -> "Context":
        """Return a copy with additional fields."""
        merged = dict(self.fields)
        merged.update(fields)
        return Context(request_id=self.request_id, fields=merged)


def background() -> Context:
    """Empty context for calls that have no caller request."""
    return Context()


def new_context(**fields: Any) -> Context:
    """Context with a freshly generated request id."""
    return Context(request_id=uuid.uuid4().hex, fields=fields)
