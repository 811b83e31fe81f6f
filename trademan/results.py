"""
Typed result returned by the public facade.

    result = trade.create_delivery_note(...)
    if result.ok:
        note = result.data
    else:
        result.error  # {'code': ..., 'message': ..., 'data': {...}}
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Result:
    ok: bool
    data: Any = None
    error: dict[str, Any] | None = None
    topics: frozenset[str] = field(default_factory=frozenset)
    already_exists: bool = False

    @classmethod
    def success(cls, data=None, topics=(), already_exists=False) -> 'Result':
        return cls(ok=True, data=data, topics=frozenset(topics), already_exists=already_exists)

    @classmethod
    def failure(cls, error) -> 'Result':
        """Build a failed result from a TradeError or an already serialized dict."""
        if hasattr(error, 'as_dict'):
            error = error.as_dict()
        return cls(ok=False, error=error)

    @property
    def error_code(self) -> str | None:
        return self.error['code'] if self.error else None
