"""
The accumulated application data the wizard edits, and the one pipeline that turns
it into an outbound payload.

ApplicationState is replaced on every change, never mutated. Its `data` mapping is a
read-only view.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

from schemas.application import SERVER_OWNED_FIELDS
from services.metrics import compute_metrics


def _readonly(data: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(dict(data))


@dataclass(frozen=True)
class ApplicationState:
    data: Mapping[str, Any] = field(default_factory=lambda: _readonly({}))

    def __post_init__(self) -> None:
        if not isinstance(self.data, MappingProxyType):
            object.__setattr__(self, "data", _readonly(self.data))

    @property
    def application_id(self) -> Optional[str]:
        return self.data.get("id")

    def merged(self, partial: Mapping[str, Any]) -> "ApplicationState":
        """Shallow merge; nested objects such as loanSpecifics are replaced whole."""
        return ApplicationState({**self.data, **partial})

    def with_metrics(self) -> "ApplicationState":
        """Local preview of the metrics; the server recomputes them authoritatively."""
        data = {k: v for k, v in self.data.items() if k not in ("ltv", "dscr", "monthlyInterest")}
        return ApplicationState({**data, **compute_metrics(data)})


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def sanitize(value: Any) -> Any:
    """
    Drop blank strings and nulls so a cleared input becomes "field absent".
    Applied through nested mappings and lists; False and 0 pass through.
    """
    if isinstance(value, Mapping):
        return {k: sanitize(v) for k, v in value.items() if not _is_blank(v)}
    if isinstance(value, list):
        return [sanitize(v) for v in value if not _is_blank(v)]
    return value


def build_payload(state: ApplicationState) -> dict[str, Any]:
    """Strip server-owned keys, then sanitize. Used by every save path."""
    return sanitize({k: v for k, v in state.data.items() if k not in SERVER_OWNED_FIELDS})
