"""
Draft persistence: merge step data into the accumulated application, then create or
update it on the server through one canonical pipeline (merge, recompute local
metrics, strip server-owned fields, drop blanks).

Explicit saves and debounced auto-saves share that pipeline and a lock, so they never
interleave. A failed save keeps the borrower's edits and marks the draft unsaved.
"""
from __future__ import annotations

import asyncio
from typing import Any, Callable, Literal, Mapping, Optional

from config import settings
from wizard.autosave import Debouncer
from wizard.client import LoanApiClient
from wizard.errors import ApiError, DraftSaveError, DraftValidationError, WizardError
from wizard.state import ApplicationState, build_payload
from utils.log import get_logger

logger = get_logger(__name__)

SaveStatus = Literal["idle", "saving", "saved", "unsaved"]

_ABSENT = object()


class DraftCoordinator:
    def __init__(
        self,
        client: LoanApiClient,
        initial: Optional[Mapping[str, Any]] = None,
        autosave_delay: Optional[float] = None,
        on_error: Optional[Callable[[WizardError], None]] = None,
    ):
        self._client = client
        self.state = ApplicationState(initial or {})
        # last state the server confirmed
        self.persisted = self.state
        self.save_status: SaveStatus = "saved" if self.state.application_id else "idle"
        self.last_error: Optional[WizardError] = None
        self._on_error = on_error
        self._lock = asyncio.Lock()
        delay = settings.autosave_delay_seconds if autosave_delay is None else autosave_delay
        self._autosaver = Debouncer(self._autosave, delay)

    @property
    def application_id(self) -> Optional[str]:
        return self.state.application_id or self.persisted.application_id

    @property
    def is_dirty(self) -> bool:
        return self.state.data != self.persisted.data

    @property
    def autosave_pending(self) -> bool:
        return self._autosaver.pending

    def apply(self, partial: Mapping[str, Any]) -> ApplicationState:
        """Optimistic local merge. userId is never client-settable."""
        if "userId" in partial:
            raise DraftValidationError("userId cannot be modified")
        self.state = self.state.merged(partial).with_metrics()
        return self.state

    def edit(self, partial: Mapping[str, Any]) -> ApplicationState:
        """Field-level edit: merge now, save once edits go quiet."""
        state = self.apply(partial)
        self._autosaver.schedule()
        return state

    async def save(self, partial: Optional[Mapping[str, Any]] = None) -> dict[str, Any]:
        """Explicit save (step continue). Supersedes any pending auto-save."""
        if partial:
            self.apply(partial)
        self._autosaver.cancel()
        async with self._lock:
            return await self._persist()

    async def flush(self) -> None:
        """Run a pending auto-save right away."""
        if self._autosaver.pending:
            self._autosaver.cancel()
            await self._autosave()

    def revert(self) -> ApplicationState:
        """Throw away unsaved edits and go back to the last server-confirmed state."""
        self._autosaver.cancel()
        self.state = self.persisted
        self.save_status = "saved" if self.persisted.application_id else "idle"
        return self.state

    async def __aenter__(self) -> "DraftCoordinator":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Cancel a pending auto-save; one already sending is allowed to finish."""
        await self._autosaver.aclose()

    async def _autosave(self) -> None:
        async with self._lock:
            if self.application_id and not self.is_dirty:
                return
            try:
                await self._persist()
            except DraftSaveError as e:
                logger.warning("Auto-save failed for %s: %s", self.application_id or "new draft", e)
                if self._on_error is not None:
                    self._on_error(e)

    async def _persist(self) -> dict[str, Any]:
        snapshot = self.state
        payload = build_payload(snapshot)
        application_id = self.application_id
        self.save_status = "saving"
        try:
            if application_id is None:
                payload["status"] = "draft"
                saved = await self._client.create_application(payload)
            else:
                saved = await self._client.update_application(application_id, payload)
        except ApiError as e:
            self.save_status = "unsaved"
            error = DraftSaveError(e.message)
            self.last_error = error
            raise error from e

        confirmed = ApplicationState(saved)
        # Edits made while the request was in flight stay on top of the server copy.
        in_flight_edits = {
            k: v for k, v in self.state.data.items() if snapshot.data.get(k, _ABSENT) != v
        }
        self.persisted = confirmed
        self.state = confirmed.merged(in_flight_edits).with_metrics() if in_flight_edits else confirmed
        self.save_status = "saved"
        self.last_error = None
        return saved
