"""
Per-step completeness of an application against the requirement table.

Results depend only on the inputs. They are cached on an immutable snapshot of the
application data, so two equal inputs share a result and nothing is ever mutated.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Mapping

from wizard.requirements import label_for, requirements_for_step

VALIDATED_STEPS = (1, 2, 3, 4, 5)

_MISSING = object()


@dataclass(frozen=True)
class StepValidation:
    step_id: int
    missing_fields: tuple[str, ...]
    is_complete: bool

    @property
    def missing_labels(self) -> tuple[str, ...]:
        return tuple(label_for(self.step_id, f) for f in self.missing_fields)


def get_value_by_path(data: Any, path: str) -> Any:
    """Follow a dotted path through nested mappings; anything unreachable is absent."""
    value = data
    for key in path.split("."):
        if not isinstance(value, Mapping) or key not in value:
            return _MISSING
        value = value[key]
    return value


def is_field_empty(value: Any) -> bool:
    """Absent, None and blank strings are missing; 0 and False are real answers."""
    if value is _MISSING or value is None:
        return True
    return isinstance(value, str) and value.strip() == ""


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return ("map", tuple(sorted((str(k), _freeze(v)) for k, v in value.items())))
    if isinstance(value, (list, tuple)):
        return ("seq", tuple(_freeze(v) for v in value))
    # keep 0 / False / "0" distinct in the cache key
    return (type(value).__name__, value)


def _thaw(frozen: Any) -> Any:
    kind, payload = frozen
    if kind == "map":
        return {k: _thaw(v) for k, v in payload}
    if kind == "seq":
        return [_thaw(v) for v in payload]
    return payload


@lru_cache(maxsize=256)
def _validate_frozen(step_id: int, frozen: Any) -> StepValidation:
    return _validate(step_id, _thaw(frozen))


def _validate(step_id: int, data: Mapping[str, Any]) -> StepValidation:
    missing = tuple(
        req.field_name
        for req in requirements_for_step(step_id)
        if req.applies_to(data) and is_field_empty(get_value_by_path(data, req.data_path))
    )
    return StepValidation(step_id=step_id, missing_fields=missing, is_complete=not missing)


def get_step_validation(step_id: int, application_data: Mapping[str, Any] | None) -> StepValidation:
    data = application_data or {}
    try:
        frozen = _freeze(data)
        hash(frozen)
    except TypeError:
        return _validate(step_id, data)
    return _validate_frozen(step_id, frozen)


def get_all_step_validations(application_data: Mapping[str, Any] | None) -> list[StepValidation]:
    return [get_step_validation(step_id, application_data) for step_id in VALIDATED_STEPS]


def is_field_missing(
    step_id: int, field_name: str, application_data: Mapping[str, Any] | None, show_errors: bool
) -> bool:
    """Field-level highlight; stays off until error display has been switched on."""
    if not show_errors:
        return False
    return field_name in get_step_validation(step_id, application_data).missing_fields
