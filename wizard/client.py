"""
HTTP client for the loan application API.

Thin async wrapper over httpx.AsyncClient; every non-2xx response becomes an ApiError
carrying the server's message and field errors. No retries.
"""
from __future__ import annotations

from typing import Any, Optional

import httpx

from config import settings
from wizard.errors import ApiError


def _error_from_response(response: httpx.Response) -> ApiError:
    message = response.reason_phrase or "Request failed"
    errors: list[dict[str, Any]] = []
    try:
        body = response.json()
    except ValueError:
        body = None
    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, str):
        message = detail
    elif isinstance(detail, dict):
        message = detail.get("message", message)
        errors = detail.get("errors", [])
    return ApiError(response.status_code, message, errors)


class LoanApiClient:
    def __init__(
        self,
        user_id: str,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            headers={settings.auth_user_header: user_id},
            transport=transport,
            timeout=timeout,
        )

    async def __aenter__(self) -> "LoanApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise ApiError(0, f"Network error: {e}") from e
        if response.is_error:
            raise _error_from_response(response)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    # Applications

    async def create_application(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", "/api/applications", json=payload)

    async def update_application(self, application_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._request("PATCH", f"/api/applications/{application_id}", json=payload)

    async def get_application(self, application_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/api/applications/{application_id}")

    async def list_applications(self) -> list[dict[str, Any]]:
        return await self._request("GET", "/api/applications")

    async def delete_application(self, application_id: str) -> None:
        await self._request("DELETE", f"/api/applications/{application_id}")

    # Documents

    async def upload_document(
        self,
        application_id: str,
        doc_type: str,
        file_name: Optional[str] = None,
        content: Optional[bytes] = None,
        content_type: str = "application/octet-stream",
        name: Optional[str] = None,
    ) -> dict[str, Any]:
        data = {"type": doc_type}
        if name:
            data["name"] = name
        files = None
        if content is not None:
            files = {"file": (file_name or "upload", content, content_type)}
        return await self._request(
            "POST", f"/api/applications/{application_id}/documents", data=data, files=files
        )

    async def list_documents(self, application_id: str) -> list[dict[str, Any]]:
        return await self._request("GET", f"/api/applications/{application_id}/documents")

    async def delete_document(self, application_id: str, document_id: str) -> None:
        await self._request("DELETE", f"/api/applications/{application_id}/documents/{document_id}")
