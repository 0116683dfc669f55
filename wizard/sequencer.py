"""
Step sequencing for the seven-step application wizard.

WizardProgress is an immutable value; every transition returns a new one. Persisting
before a step change is the session's job, not the sequencer's.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Literal, Mapping

from wizard.errors import StepNotReachedError
from wizard.validation import get_step_validation

StepStatus = Literal["completed", "current", "upcoming"]


@dataclass(frozen=True)
class WizardStep:
    id: int
    slug: str
    name: str


STEPS: tuple[WizardStep, ...] = (
    WizardStep(1, "quick-start", "Quick Start"),
    WizardStep(2, "property-basics", "Property Details"),
    WizardStep(3, "loan-specifics", "Loan Specifics"),
    WizardStep(4, "financial-snapshot", "Financial Snapshot"),
    WizardStep(5, "property-performance", "Property Performance"),
    WizardStep(6, "documents", "Documents"),
    WizardStep(7, "review-submit", "Review & Submit"),
)
FIRST_STEP = STEPS[0].id
LAST_STEP = STEPS[-1].id


def step_slug(step_id: int) -> str:
    return STEPS[step_id - 1].slug


def step_id_for_slug(slug: str | None) -> int:
    for step in STEPS:
        if step.slug == slug:
            return step.id
    return FIRST_STEP


@dataclass(frozen=True)
class StepView:
    id: int
    name: str
    status: StepStatus
    visited: bool
    has_missing_fields: bool
    missing_fields: tuple[str, ...]


@dataclass(frozen=True)
class WizardProgress:
    current_step: int = FIRST_STEP
    max_step_reached: int = FIRST_STEP
    visited: frozenset[int] = field(default_factory=lambda: frozenset({FIRST_STEP}))
    show_validation_errors: bool = False

    @classmethod
    def resume(cls, current_step_slug: str | None) -> "WizardProgress":
        """Pick up a saved draft on the step after the last completed one."""
        if not current_step_slug:
            return cls()
        step = min(step_id_for_slug(current_step_slug) + 1, LAST_STEP)
        return cls(
            current_step=step,
            max_step_reached=step,
            visited=frozenset(range(FIRST_STEP, step + 1)),
        )

    @property
    def is_last_step(self) -> bool:
        return self.current_step == LAST_STEP

    def advance(self) -> "WizardProgress":
        step = min(self.current_step + 1, LAST_STEP)
        return replace(
            self,
            current_step=step,
            max_step_reached=max(self.max_step_reached, step),
            visited=self.visited | {self.current_step, step},
            show_validation_errors=True,
        )

    def back(self) -> "WizardProgress":
        return replace(
            self,
            current_step=max(self.current_step - 1, FIRST_STEP),
            visited=self.visited | {self.current_step},
            show_validation_errors=True,
        )

    def can_jump_to(self, step_id: int) -> bool:
        return FIRST_STEP <= step_id <= self.max_step_reached

    def jump_to(self, step_id: int) -> "WizardProgress":
        if not self.can_jump_to(step_id):
            raise StepNotReachedError(f"Step {step_id} has not been reached yet")
        return replace(self, current_step=step_id, visited=self.visited | {self.current_step, step_id})

    def step_status(self, step_id: int) -> StepStatus:
        # the review step is never shown as completed
        if step_id < self.current_step and step_id != LAST_STEP:
            return "completed"
        if step_id == self.current_step:
            return "current"
        return "upcoming"

    def steps(self, application_data: Mapping[str, Any] | None) -> list[StepView]:
        """Sidebar view; missing-field decoration only on passed steps, or the current one once errors show."""
        views = []
        for step in STEPS:
            status = self.step_status(step.id)
            decorate = status == "completed" or (status == "current" and self.show_validation_errors)
            missing = get_step_validation(step.id, application_data).missing_fields if decorate else ()
            views.append(
                StepView(
                    id=step.id,
                    name=step.name,
                    status=status,
                    visited=step.id in self.visited,
                    has_missing_fields=bool(missing),
                    missing_fields=missing,
                )
            )
        return views
