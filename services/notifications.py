"""
Submission notification sent through a transactional email HTTP API.

The payload follows the common JSON shape (from / to / subject / html / attachments
with base64 content) accepted by providers such as Resend.
"""
from __future__ import annotations

import base64
from dataclasses import dataclass
from html import escape
from typing import Any, Optional

import httpx

from config import settings
from services.metrics import assess_metrics
from utils.log import get_logger

logger = get_logger(__name__)


class NotificationError(Exception):
    pass


@dataclass
class Attachment:
    filename: str
    content: bytes
    content_type: Optional[str] = None


def _money(value: Any) -> str:
    try:
        return f"${float(str(value).replace(',', '')):,.2f}"
    except (TypeError, ValueError):
        return "n/a"


def build_submission_email(application: dict[str, Any]) -> tuple[str, str]:
    """Subject and HTML body summarizing a submitted application and its metrics."""
    name = application.get("propertyName") or application.get("entityName") or application["id"]
    subject = f"New loan application submitted: {name}"
    ratings = assess_metrics(application)
    rows = [
        ("Application", application["id"]),
        ("Loan type", application.get("loanType") or "n/a"),
        ("Loan amount", _money(application.get("loanAmount"))),
        ("Property", f"{application.get('propertyName') or 'n/a'} ({application.get('propertyType') or 'n/a'})"),
        ("Location", f"{application.get('propertyCity') or 'n/a'}, {application.get('propertyState') or 'n/a'}"),
        ("Borrower", application.get("entityName") or "n/a"),
        ("Contact", f"{application.get('contactEmail') or 'n/a'} / {application.get('contactPhone') or 'n/a'}"),
        ("LTV", f"{application['ltv']}% ({ratings['ltv']})" if application.get("ltv") else "n/a"),
        ("DSCR", f"{application['dscr']}x ({ratings['dscr']})" if application.get("dscr") else "n/a"),
        ("Monthly interest", _money(application["monthlyInterest"]) if application.get("monthlyInterest") else "n/a"),
    ]
    body = "".join(f"<tr><th align='left'>{escape(k)}</th><td>{escape(str(v))}</td></tr>" for k, v in rows)
    return subject, f"<h2>{escape(subject)}</h2><table>{body}</table>"


class EmailNotifier:
    def __init__(
        self,
        api_url: str,
        api_key: Optional[str],
        sender: Optional[str],
        recipients: list[str],
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url
        self.api_key = api_key
        self.sender = sender
        self.recipients = recipients
        self.timeout = timeout
        self._transport = transport

    async def send_submission(self, application: dict[str, Any], attachments: list[Attachment]) -> None:
        if not (self.api_key and self.sender and self.recipients):
            raise NotificationError("Email delivery is not configured (EMAIL_API_KEY, EMAIL_FROM, EMAIL_TO)")
        subject, html = build_submission_email(application)
        payload = {
            "from": self.sender,
            "to": self.recipients,
            "subject": subject,
            "html": html,
            "attachments": [
                {
                    "filename": a.filename,
                    "content": base64.b64encode(a.content).decode("ascii"),
                    **({"content_type": a.content_type} if a.content_type else {}),
                }
                for a in attachments
            ],
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    self.api_url,
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise NotificationError(f"Email provider call failed: {e}") from e
        logger.info(
            "Submission email sent for %s with %d attachment(s)", application["id"], len(attachments)
        )


def get_notifier() -> EmailNotifier:
    return EmailNotifier(
        api_url=settings.email_api_url,
        api_key=settings.email_api_key,
        sender=settings.email_from,
        recipients=settings.email_recipients,
        timeout=settings.email_timeout_seconds,
    )
