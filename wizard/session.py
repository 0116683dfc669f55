"""
One borrower working through one application.

The session is the only place that moves the wizard: it saves through the draft
coordinator before advancing, makes best-effort saves on back/jump, and turns every
failure into a dismissible notice. Nothing is retried automatically.
"""
from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Any, Literal, Mapping, Optional

from services.metrics import assess_metrics, compute_noi
from wizard.client import LoanApiClient
from wizard.documents import DocumentAttachmentManager, DocumentSlot
from wizard.drafts import DraftCoordinator
from wizard.errors import (
    DocumentError,
    DraftSaveError,
    DraftValidationError,
    StepNotReachedError,
    WizardError,
)
from wizard.requirements import is_income_producing
from wizard.sequencer import LAST_STEP, StepView, WizardProgress, step_slug
from wizard.validation import StepValidation, get_step_validation, is_field_missing

PERFORMANCE_STEP = 5

_notice_ids = itertools.count(1)


@dataclass(frozen=True)
class Notice:
    id: int
    title: str
    message: str
    severity: Literal["error", "info"] = "error"


class WizardSession:
    def __init__(
        self,
        client: LoanApiClient,
        application: Optional[Mapping[str, Any]] = None,
        autosave_delay: Optional[float] = None,
    ):
        self.notices: list[Notice] = []
        self.drafts = DraftCoordinator(
            client, application, autosave_delay=autosave_delay, on_error=self._on_autosave_error
        )
        self.progress = WizardProgress.resume(application.get("currentStep")) if application else WizardProgress()
        self.documents = DocumentAttachmentManager(client, self.drafts.application_id)

    @classmethod
    async def resume(
        cls, client: LoanApiClient, application_id: str, autosave_delay: Optional[float] = None
    ) -> "WizardSession":
        application = await client.get_application(application_id)
        session = cls(client, application, autosave_delay=autosave_delay)
        await session.documents.load()
        return session

    async def __aenter__(self) -> "WizardSession":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Teardown: a pending auto-save must not fire once the form is gone."""
        await self.drafts.aclose()

    # State

    @property
    def application_data(self) -> Mapping[str, Any]:
        return self.drafts.state.data

    @property
    def current_step(self) -> int:
        return self.progress.current_step

    @property
    def is_submitted(self) -> bool:
        return self.drafts.persisted.data.get("status") not in (None, "draft")

    def steps(self) -> list[StepView]:
        return self.progress.steps(self.application_data)

    def step_validation(self, step_id: Optional[int] = None) -> StepValidation:
        return get_step_validation(step_id or self.current_step, self.application_data)

    def is_field_missing(self, field_name: str, step_id: Optional[int] = None) -> bool:
        return is_field_missing(
            step_id or self.current_step,
            field_name,
            self.application_data,
            self.progress.show_validation_errors,
        )

    def metric_ratings(self) -> dict[str, str]:
        return assess_metrics(self.application_data)

    # Notices

    def _notify(self, title: str, message: str, severity: Literal["error", "info"] = "error") -> Notice:
        notice = Notice(id=next(_notice_ids), title=title, message=message, severity=severity)
        self.notices = [*self.notices, notice]
        return notice

    def dismiss(self, notice_id: int) -> None:
        self.notices = [n for n in self.notices if n.id != notice_id]

    def _on_autosave_error(self, error: WizardError) -> None:
        self._notify("Auto-save failed", str(error))

    # Editing

    def edit(self, fields: Mapping[str, Any]) -> Mapping[str, Any]:
        """Field-level change; saved by the debounced auto-save."""
        try:
            return self.drafts.edit(fields).data
        except DraftValidationError as e:
            self._notify("Invalid change", str(e))
            raise

    def _with_derived_fields(self, step_id: int, step_data: Mapping[str, Any]) -> dict[str, Any]:
        payload = dict(step_data)
        if step_id == PERFORMANCE_STEP:
            merged = {**self.application_data, **payload}
            if is_income_producing(merged) and not str(merged.get("annualNOI") or "").strip():
                noi = compute_noi(merged.get("annualGrossIncome"), merged.get("annualOperatingExpenses"))
                if noi is not None:
                    payload["annualNOI"] = noi
        return payload

    # Navigation

    async def continue_step(self, step_data: Optional[Mapping[str, Any]] = None) -> WizardProgress:
        """Save the step, then advance. A failed save leaves the wizard where it is."""
        step_id = self.current_step
        payload = self._with_derived_fields(step_id, step_data or {})
        payload["currentStep"] = step_slug(step_id)
        try:
            await self.drafts.save(payload)
        except (DraftSaveError, DraftValidationError) as e:
            self._notify("Save failed", str(e))
            raise
        self.documents.application_id = self.drafts.application_id
        self.progress = self.progress.advance()
        return self.progress

    async def back(self) -> WizardProgress:
        self.progress = self.progress.back()
        await self._best_effort_save()
        return self.progress

    async def jump_to(self, step_id: int) -> WizardProgress:
        if not self.progress.can_jump_to(step_id):
            error = StepNotReachedError(f"Step {step_id} has not been reached yet")
            self._notify("Step not available", str(error))
            raise error
        await self._best_effort_save()
        self.progress = self.progress.jump_to(step_id)
        return self.progress

    async def _best_effort_save(self) -> None:
        if not self.drafts.is_dirty:
            return
        try:
            await self.drafts.save()
        except DraftSaveError as e:
            self._notify("Save failed", str(e))

    async def submit(self) -> dict[str, Any]:
        """Final step: flip the draft to submitted. One-way."""
        if self.current_step != LAST_STEP:
            error = StepNotReachedError("Applications are submitted from the review step")
            self._notify("Submission failed", str(error))
            raise error
        try:
            saved = await self.drafts.save({"status": "submitted", "currentStep": step_slug(LAST_STEP)})
        except DraftSaveError as e:
            self._notify("Submission failed", str(e))
            raise
        self._notify("Application submitted", "We'll be in touch about next steps.", severity="info")
        return saved

    # Documents

    async def upload_document(
        self, doc_type: str, file_name: str, content: bytes, content_type: str = "application/octet-stream"
    ) -> DocumentSlot:
        self.documents.application_id = self.drafts.application_id
        try:
            slot = await self.documents.upload(doc_type, file_name, content, content_type)
        except DocumentError as e:
            self._notify("Upload failed", str(e))
            raise
        return slot

    async def remove_document(self, doc_type: str) -> None:
        try:
            await self.documents.remove(doc_type)
        except DocumentError as e:
            self._notify("Error", str(e))
            raise
