"""
A whole wizard run against the API: continue saves before advancing, notices on failure,
NOI fill-in, resume, submit.
Run from the project root: python -m pytest tests/test_wizard_session.py -v
"""
import httpx
import pytest
from httpx import ASGITransport

from wizard.client import LoanApiClient
from wizard.errors import DocumentUploadBlockedError, DraftSaveError, DraftValidationError, StepNotReachedError
from wizard.session import WizardSession


@pytest.fixture
async def api_client(api_app):
    async with LoanApiClient("user-1", base_url="http://test", transport=ASGITransport(app=api_app)) as c:
        yield c


@pytest.fixture
async def session(api_client):
    async with WizardSession(api_client, autosave_delay=0.05) as s:
        yield s


async def test_continue_creates_draft_and_advances(session, api_client, quick_start):
    progress = await session.continue_step(quick_start)
    assert progress.current_step == 2
    assert session.drafts.application_id
    assert session.documents.application_id == session.drafts.application_id

    stored = await api_client.get_application(session.drafts.application_id)
    assert stored["currentStep"] == "quick-start"
    assert stored["loanAmount"] == "3000000"


async def test_failed_continue_stays_put_with_notice():
    def handler(request):
        return httpx.Response(500, json={"detail": "Failed to save application"})

    async with LoanApiClient("user-1", base_url="http://test", transport=httpx.MockTransport(handler)) as client:
        async with WizardSession(client, autosave_delay=0.05) as session:
            with pytest.raises(DraftSaveError):
                await session.continue_step({"loanAmount": "1"})
            assert session.current_step == 1
            assert len(session.notices) == 1
            assert session.notices[0].message == "Failed to save application"
            assert session.application_data["loanAmount"] == "1"

            session.dismiss(session.notices[0].id)
            assert session.notices == []


async def test_user_id_edit_rejected_with_notice(session):
    with pytest.raises(DraftValidationError):
        session.edit({"userId": "someone"})
    assert session.notices[0].title == "Invalid change"


async def test_jump_only_to_reached_steps(session, quick_start):
    await session.continue_step(quick_start)
    with pytest.raises(StepNotReachedError):
        await session.jump_to(5)
    assert session.notices[-1].title == "Step not available"
    progress = await session.jump_to(1)
    assert progress.current_step == 1
    assert progress.can_jump_to(2)


async def test_back_saves_pending_edits(session, api_client, quick_start):
    await session.continue_step(quick_start)
    session.edit({"propertyName": "Oak Plaza"})
    await session.back()
    assert session.current_step == 1
    stored = await api_client.get_application(session.drafts.application_id)
    assert stored["propertyName"] == "Oak Plaza"


async def test_performance_step_fills_noi(api_client, quick_start):
    created = await api_client.create_application(
        {**quick_start, "propertyType": "multifamily", "currentStep": "financial-snapshot"}
    )
    async with WizardSession(api_client, created, autosave_delay=0.05) as session:
        assert session.current_step == 5
        await session.continue_step({"annualGrossIncome": "500000", "annualOperatingExpenses": "50000"})
        assert session.application_data["annualNOI"] == "450000.00"
        assert session.current_step == 6


async def test_performance_step_keeps_entered_noi(api_client, quick_start):
    created = await api_client.create_application(
        {**quick_start, "propertyType": "office", "currentStep": "financial-snapshot"}
    )
    async with WizardSession(api_client, created, autosave_delay=0.05) as session:
        await session.continue_step(
            {"annualGrossIncome": "500000", "annualOperatingExpenses": "50000", "annualNOI": "400000"}
        )
        assert session.application_data["annualNOI"] == "400000"


async def test_resume_loads_application_and_documents(api_client, quick_start):
    created = await api_client.create_application({**quick_start, "currentStep": "property-performance"})
    await api_client.upload_document(created["id"], "rent-roll", "rent.pdf", b"data", "application/pdf")

    async with await WizardSession.resume(api_client, created["id"], autosave_delay=0.05) as session:
        assert session.current_step == 6
        assert session.application_data["propertyCity"] == "Austin"
        assert session.documents.slots["rent-roll"].status == "uploaded"


async def test_submit_only_from_review_step(session, quick_start):
    await session.continue_step(quick_start)
    with pytest.raises(StepNotReachedError):
        await session.submit()


async def test_submit_from_review_step(api_client, notifier, quick_start):
    created = await api_client.create_application({**quick_start, "currentStep": "documents"})
    async with WizardSession(api_client, created, autosave_delay=0.05) as session:
        saved = await session.submit()
        assert saved["status"] == "submitted"
        assert session.is_submitted
        assert session.notices[-1].severity == "info"
    assert len(notifier.sent) == 1


async def test_upload_before_save_is_blocked_with_notice(session):
    with pytest.raises(DocumentUploadBlockedError):
        await session.upload_document("rent-roll", "rent.pdf", b"data")
    assert session.notices[0].title == "Upload failed"


async def test_steps_view(session):
    await session.continue_step({"loanType": "construction"})
    views = session.steps()
    assert views[0].status == "completed"
    assert views[0].missing_fields == ("loanAmount", "propertyCity", "propertyState")
    assert session.is_field_missing("propertyName")


async def test_metric_ratings_for_review(api_client, quick_start):
    created = await api_client.create_application(
        {**quick_start, "loanSpecifics": {"propertyValue": "4000000"}, "currentStep": "documents"}
    )
    async with WizardSession(api_client, created, autosave_delay=0.05) as session:
        assert session.metric_ratings() == {"ltv": "good", "dscr": "neutral"}
