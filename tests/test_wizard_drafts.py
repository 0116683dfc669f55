"""
Draft persistence against the API: create-then-update, debounced auto-save, failure handling.
Run from the project root: python -m pytest tests/test_wizard_drafts.py -v
"""
import asyncio
import json

import httpx
import pytest
from httpx import ASGITransport

from wizard.client import LoanApiClient
from wizard.drafts import DraftCoordinator
from wizard.errors import DraftSaveError, DraftValidationError

AUTOSAVE_DELAY = 0.05


@pytest.fixture
async def api_client(api_app):
    async with LoanApiClient("user-1", base_url="http://test", transport=ASGITransport(app=api_app)) as c:
        yield c


class RecordingHandler:
    """MockTransport handler that answers like the API and records every request."""

    def __init__(self, status_code=200):
        self.status_code = status_code
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        if self.status_code >= 400:
            return httpx.Response(self.status_code, json={"detail": "Database unavailable"})
        payload = json.loads(request.content) if request.content else {}
        return httpx.Response(201 if request.method == "POST" else 200, json={"id": "app-1", **payload})


def _mock_client(handler):
    return LoanApiClient("user-1", base_url="http://test", transport=httpx.MockTransport(handler))


async def test_first_save_creates_then_updates(api_client, quick_start):
    drafts = DraftCoordinator(api_client, autosave_delay=AUTOSAVE_DELAY)
    created = await drafts.save(quick_start)
    assert created["status"] == "draft"
    assert drafts.application_id == created["id"]
    assert drafts.save_status == "saved"

    updated = await drafts.save({"propertyName": "Oak Plaza"})
    assert updated["id"] == created["id"]
    assert updated["propertyName"] == "Oak Plaza"
    assert updated["loanType"] == "permanent-acquisition"
    assert len(await api_client.list_applications()) == 1
    await drafts.aclose()


async def test_cleared_field_is_not_sent(api_client, quick_start):
    drafts = DraftCoordinator(api_client, autosave_delay=AUTOSAVE_DELAY)
    await drafts.save({**quick_start, "propertyName": "Oak Plaza"})
    saved = await drafts.save({"propertyName": ""})
    # blank means "not sent", so the stored value is untouched
    assert saved["propertyName"] == "Oak Plaza"
    await drafts.aclose()


async def test_local_metrics_preview(api_client, quick_start):
    drafts = DraftCoordinator(api_client, autosave_delay=AUTOSAVE_DELAY)
    state = drafts.apply({**quick_start, "loanSpecifics": {"propertyValue": "4000000"}})
    assert state.data["ltv"] == "75.00"
    assert drafts.is_dirty
    await drafts.aclose()


async def test_user_id_rejected_locally():
    handler = RecordingHandler()
    async with _mock_client(handler) as client:
        drafts = DraftCoordinator(client, autosave_delay=AUTOSAVE_DELAY)
        with pytest.raises(DraftValidationError):
            drafts.edit({"userId": "someone"})
        with pytest.raises(DraftValidationError):
            await drafts.save({"userId": "someone"})
        assert handler.requests == []
        assert not drafts.autosave_pending
        await drafts.aclose()


async def test_burst_of_edits_saves_once():
    handler = RecordingHandler()
    async with _mock_client(handler) as client:
        drafts = DraftCoordinator(client, autosave_delay=AUTOSAVE_DELAY)
        drafts.edit({"loanAmount": "1"})
        drafts.edit({"loanAmount": "12"})
        drafts.edit({"loanAmount": "123"})
        assert drafts.autosave_pending
        await asyncio.sleep(AUTOSAVE_DELAY * 6)

        assert len(handler.requests) == 1
        assert handler.requests[0].method == "POST"
        assert drafts.application_id == "app-1"
        assert drafts.persisted.data["loanAmount"] == "123"
        assert not drafts.is_dirty
        await drafts.aclose()


async def test_autosave_after_create_updates():
    handler = RecordingHandler()
    async with _mock_client(handler) as client:
        drafts = DraftCoordinator(client, {"id": "app-1", "status": "draft"}, autosave_delay=AUTOSAVE_DELAY)
        drafts.edit({"propertyCity": "Austin"})
        await asyncio.sleep(AUTOSAVE_DELAY * 6)
        assert [r.method for r in handler.requests] == ["PATCH"]
        assert handler.requests[0].url.path == "/api/applications/app-1"
        await drafts.aclose()


async def test_explicit_save_supersedes_pending_autosave():
    handler = RecordingHandler()
    async with _mock_client(handler) as client:
        drafts = DraftCoordinator(client, autosave_delay=AUTOSAVE_DELAY)
        drafts.edit({"loanAmount": "5"})
        await drafts.save()
        await asyncio.sleep(AUTOSAVE_DELAY * 4)
        assert len(handler.requests) == 1
        await drafts.aclose()


async def test_close_cancels_pending_autosave():
    handler = RecordingHandler()
    async with _mock_client(handler) as client:
        async with DraftCoordinator(client, autosave_delay=AUTOSAVE_DELAY) as drafts:
            drafts.edit({"loanAmount": "5"})
        await asyncio.sleep(AUTOSAVE_DELAY * 4)
        assert handler.requests == []


async def test_flush_runs_pending_autosave_now():
    handler = RecordingHandler()
    async with _mock_client(handler) as client:
        drafts = DraftCoordinator(client, autosave_delay=10)
        drafts.edit({"loanAmount": "5"})
        await drafts.flush()
        assert len(handler.requests) == 1
        assert not drafts.autosave_pending
        await drafts.aclose()


async def test_failed_save_keeps_edits_and_marks_unsaved():
    handler = RecordingHandler(status_code=500)
    async with _mock_client(handler) as client:
        drafts = DraftCoordinator(client, {"id": "app-1", "loanAmount": "1"}, autosave_delay=AUTOSAVE_DELAY)
        with pytest.raises(DraftSaveError) as excinfo:
            await drafts.save({"loanAmount": "2"})
        assert "Database unavailable" in str(excinfo.value)
        assert drafts.save_status == "unsaved"
        assert drafts.state.data["loanAmount"] == "2"
        assert drafts.persisted.data["loanAmount"] == "1"
        assert drafts.is_dirty

        drafts.revert()
        assert drafts.state.data["loanAmount"] == "1"
        assert not drafts.is_dirty
        await drafts.aclose()


async def test_failed_autosave_reports_error():
    handler = RecordingHandler(status_code=503)
    errors = []
    async with _mock_client(handler) as client:
        drafts = DraftCoordinator(client, autosave_delay=AUTOSAVE_DELAY, on_error=errors.append)
        drafts.edit({"loanAmount": "5"})
        await asyncio.sleep(AUTOSAVE_DELAY * 6)
        assert len(errors) == 1
        assert isinstance(errors[0], DraftSaveError)
        assert drafts.save_status == "unsaved"
        await drafts.aclose()
