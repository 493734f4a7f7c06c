"""HTTP adapters for the bulk print collaborators."""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Any, Mapping

import requests

from .collaborators import CollaboratorUnavailable
from .contracts import (
    BulkPrintContractError,
    CaseDocument,
    CaseSnapshot,
    Credentials,
    PrintBundle,
    Template,
)
from .taxonomy import (
    COLLABORATOR_CASE_STORE,
    COLLABORATOR_CONTENT_STORE,
    COLLABORATOR_DOCUMENT_RENDERER,
    COLLABORATOR_IDENTITY_PROVIDER,
    COLLABORATOR_PRINT_PROVIDER,
)


class BulkPrintClientError(ValueError):
    """Raised when a collaborator rejects a request or answers with an invalid body."""


@dataclass
class _HttpBoundary:
    base_url: str
    timeout_seconds: float = 30.0
    session: requests.Session | None = None

    def __post_init__(self) -> None:
        if self.timeout_seconds <= 0:
            raise BulkPrintClientError("timeout_seconds must be > 0")
        self._session = self.session or requests.Session()

    def _url(self, path: str) -> str:
        return self.base_url.rstrip("/") + "/" + path.lstrip("/")

    def _send(self, method: str, url: str, *, collaborator: str, **kwargs: Any) -> Any:
        try:
            response = self._session.request(method, url, timeout=self.timeout_seconds, **kwargs)
        except requests.Timeout as exc:
            raise CollaboratorUnavailable(collaborator, "timeout") from exc
        except requests.RequestException as exc:
            raise CollaboratorUnavailable(collaborator, str(exc)) from exc
        status = int(response.status_code)
        if status in {408, 429} or status >= 500:
            raise CollaboratorUnavailable(collaborator, f"http_{status}")
        if status >= 400:
            raise BulkPrintClientError(f"{collaborator.upper()}_REJECTED:{status}:{_response_text(response)}")
        return response


@dataclass
class HttpIdentityProvider(_HttpBoundary):
    client_id: str = ""
    client_secret: str | None = None

    def get_credentials(self) -> Credentials:
        response = self._send(
            "POST",
            self._url("/credentials"),
            collaborator=COLLABORATOR_IDENTITY_PROVIDER,
            json={"client_id": self.client_id, "client_secret": self.client_secret},
        )
        body = _json_body(response, COLLABORATOR_IDENTITY_PROVIDER)
        user_token = str(body.get("user_token") or "").strip()
        service_token = str(body.get("service_token") or "").strip()
        if not user_token or not service_token:
            raise BulkPrintClientError("IDENTITY_PROVIDER_RESPONSE_MISSING_TOKENS")
        user_id = str(body.get("user_id") or "").strip() or None
        return Credentials(user_token=user_token, service_token=service_token, user_id=user_id)


@dataclass
class HttpDocumentRenderer(_HttpBoundary):
    def generate_and_attach(
        self,
        template: Template,
        snapshot: CaseSnapshot,
        credentials: Credentials,
    ) -> tuple[CaseDocument | None, ...]:
        response = self._send(
            "POST",
            self._url(f"/cases/{snapshot.case_id}/documents"),
            collaborator=COLLABORATOR_DOCUMENT_RENDERER,
            headers=_auth_headers(credentials),
            json={
                "template_id": template.template_id,
                "document_name": template.document_name,
                "case": snapshot.metadata(),
            },
        )
        body = _json_body(response, COLLABORATOR_DOCUMENT_RENDERER)
        raw_documents = body.get("documents")
        if not isinstance(raw_documents, list):
            raise BulkPrintClientError("DOCUMENT_RENDERER_RESPONSE_MISSING_DOCUMENTS")
        try:
            return tuple(CaseDocument.from_payload(item) for item in raw_documents)
        except BulkPrintContractError as exc:
            raise BulkPrintClientError(f"DOCUMENT_RENDERER_RESPONSE_INVALID:{exc}") from exc


@dataclass
class HttpContentStore(_HttpBoundary):
    service_token: str | None = None

    def fetch(self, url: str, acting_user: str) -> bytes:
        headers = {"user-id": acting_user}
        if self.service_token:
            headers["ServiceAuthorization"] = self.service_token
        target = url if url.startswith(("http://", "https://")) else self._url(url)
        response = self._send(
            "GET",
            target + "/binary",
            collaborator=COLLABORATOR_CONTENT_STORE,
            headers=headers,
        )
        return bytes(response.content)


@dataclass
class HttpPrintProvider(_HttpBoundary):
    api_key: str | None = None
    api_key_header: str = "ServiceAuthorization"

    def submit(self, bundle: PrintBundle, snapshot: CaseSnapshot) -> str | None:
        headers: dict[str, str] = {}
        if self.api_key:
            headers[self.api_key_header] = self.api_key
        payload = {
            "documents": [base64.b64encode(document.content).decode("ascii") for document in bundle.documents],
            "type": "SSC001",
            "additional_data": {
                **snapshot.metadata(),
                "document_names": bundle.names,
            },
        }
        response = self._send(
            "POST",
            self._url("/letters"),
            collaborator=COLLABORATOR_PRINT_PROVIDER,
            headers=headers,
            json=payload,
        )
        body = _json_body(response, COLLABORATOR_PRINT_PROVIDER)
        letter_id = str(body.get("letter_id") or "").strip()
        return letter_id or None


@dataclass
class HttpCaseRecordStore(_HttpBoundary):
    def apply_event(
        self,
        *,
        case_id: str,
        event_kind: str,
        title: str,
        comment: str,
        fields: dict[str, str],
        credentials: Credentials,
    ) -> None:
        self._send(
            "POST",
            self._url(f"/cases/{case_id}/events"),
            collaborator=COLLABORATOR_CASE_STORE,
            headers=_auth_headers(credentials),
            json={
                "event": {"id": event_kind, "summary": title, "description": comment},
                "data": dict(fields),
            },
        )


def _auth_headers(credentials: Credentials) -> dict[str, str]:
    headers = {
        "Authorization": credentials.user_token,
        "ServiceAuthorization": credentials.service_token,
    }
    if credentials.user_id:
        headers["user-id"] = credentials.user_id
    return headers


def _json_body(response: Any, collaborator: str) -> Mapping[str, Any]:
    try:
        body = response.json()
    except ValueError as exc:
        raise BulkPrintClientError(f"{collaborator.upper()}_RESPONSE_INVALID_JSON:{exc}") from exc
    if not isinstance(body, Mapping):
        raise BulkPrintClientError(f"{collaborator.upper()}_RESPONSE_INVALID_SHAPE")
    return body


def _response_text(response: Any) -> str:
    value = getattr(response, "text", "")
    text = str(value or "").strip()
    return text[:256]
