"""Bulk print contracts: case events, documents, bundles and dispatch outcomes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Union

from .taxonomy import ensure_supported_collaborator, ensure_supported_event_kind


FAILURE_TEMPLATE_MISSING = "TEMPLATE_MISSING"
FAILURE_PREREQUISITE_DOCUMENT_MISSING = "PREREQUISITE_DOCUMENT_MISSING"
FAILURE_UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"
FAILURE_SUBMISSION_REJECTED = "SUBMISSION_REJECTED"
FAILURE_INTERNAL_DISPATCH_ERROR = "INTERNAL_DISPATCH_ERROR"

FAILURE_REASONS: tuple[str, ...] = (
    FAILURE_TEMPLATE_MISSING,
    FAILURE_PREREQUISITE_DOCUMENT_MISSING,
    FAILURE_UPSTREAM_UNAVAILABLE,
    FAILURE_SUBMISSION_REJECTED,
    FAILURE_INTERNAL_DISPATCH_ERROR,
)


class BulkPrintContractError(ValueError):
    """Raised when bulk print payloads violate their contracts."""


@dataclass(frozen=True)
class DocumentLink:
    url: str | None

    @classmethod
    def from_payload(cls, payload: Any) -> "DocumentLink | None":
        if payload is None:
            return None
        mapped = _as_mapping(payload, "document_link")
        return cls(url=_optional_str(mapped.get("document_url")))


@dataclass(frozen=True)
class EvidenceDocument:
    file_name: str | None
    document_type: str | None
    link: DocumentLink | None

    @classmethod
    def from_payload(cls, payload: Any) -> "EvidenceDocument | None":
        if payload is None:
            return None
        mapped = _as_mapping(payload, "document")
        return cls(
            file_name=_optional_str(mapped.get("file_name")),
            document_type=_optional_str(mapped.get("document_type")),
            link=DocumentLink.from_payload(mapped.get("document_link")),
        )

    @property
    def url(self) -> str | None:
        return self.link.url if self.link is not None else None

    def as_dict(self) -> dict[str, Any]:
        return {
            "file_name": self.file_name,
            "document_type": self.document_type,
            "document_link": {"document_url": self.url} if self.link is not None else None,
        }


@dataclass(frozen=True)
class CaseDocument:
    """One entry of the case document collection; the value may be absent."""

    value: EvidenceDocument | None

    @classmethod
    def from_payload(cls, payload: Any) -> "CaseDocument | None":
        if payload is None:
            return None
        mapped = _as_mapping(payload, "documents[]")
        return cls(value=EvidenceDocument.from_payload(mapped.get("value")))

    def as_dict(self) -> dict[str, Any]:
        return {"value": self.value.as_dict() if self.value is not None else None}


@dataclass(frozen=True)
class Appeal:
    received_via: str | None
    benefit_code: str | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> "Appeal | None":
        if payload is None:
            return None
        mapped = _as_mapping(payload, "appeal")
        return cls(
            received_via=_optional_str(mapped.get("received_via")),
            benefit_code=_optional_str(mapped.get("benefit_code")),
        )


@dataclass(frozen=True)
class CaseSnapshot:
    case_id: str
    documents: tuple[CaseDocument | None, ...] = ()
    appeal: Appeal | None = None
    created_in_gaps_from: str | None = None
    dwp_state: str | None = None
    hmcts_dwp_state: str | None = None
    date_sent_to_dwp: str | None = None
    case_created: str | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], *, case_id: str) -> "CaseSnapshot":
        mapped = _as_mapping(payload, "case_data")
        raw_documents = mapped.get("documents")
        if raw_documents is None:
            raw_documents = []
        if not isinstance(raw_documents, list):
            raise BulkPrintContractError("case_data.documents must be a list")
        return cls(
            case_id=_require_non_empty_string(case_id, "case_id"),
            documents=tuple(CaseDocument.from_payload(item) for item in raw_documents),
            appeal=Appeal.from_payload(mapped.get("appeal")),
            created_in_gaps_from=_optional_str(mapped.get("created_in_gaps_from")),
            dwp_state=_optional_str(mapped.get("dwp_state")),
            hmcts_dwp_state=_optional_str(mapped.get("hmcts_dwp_state")),
            date_sent_to_dwp=_optional_str(mapped.get("date_sent_to_dwp")),
            case_created=_optional_str(mapped.get("case_created")),
        )

    def with_documents(self, documents: tuple[CaseDocument | None, ...]) -> "CaseSnapshot":
        return CaseSnapshot(
            case_id=self.case_id,
            documents=tuple(documents),
            appeal=self.appeal,
            created_in_gaps_from=self.created_in_gaps_from,
            dwp_state=self.dwp_state,
            hmcts_dwp_state=self.hmcts_dwp_state,
            date_sent_to_dwp=self.date_sent_to_dwp,
            case_created=self.case_created,
        )

    def metadata(self) -> dict[str, Any]:
        appeal = self.appeal
        return {
            "case_id": self.case_id,
            "received_via": appeal.received_via if appeal is not None else None,
            "benefit_code": appeal.benefit_code if appeal is not None else None,
            "created_in_gaps_from": self.created_in_gaps_from,
            "case_created": self.case_created,
        }


@dataclass(frozen=True)
class CaseEvent:
    case_id: str
    event_kind: str
    snapshot: CaseSnapshot | None
    translation_work_outstanding: bool = False

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "CaseEvent":
        mapped = _as_mapping(payload, "CaseEvent")
        case_id = _require_non_empty_string(mapped.get("case_id"), "case_id")
        event_kind = ensure_supported_event_kind(
            _require_non_empty_string(mapped.get("event_kind"), "event_kind")
        )
        case_data = mapped.get("case_data")
        if case_data is None:
            raise BulkPrintContractError("CaseEvent missing required fields: case_data")
        translation = mapped.get("translation_work_outstanding", False)
        if not isinstance(translation, bool):
            raise BulkPrintContractError("translation_work_outstanding must be a boolean")
        return cls(
            case_id=case_id,
            event_kind=event_kind,
            snapshot=CaseSnapshot.from_payload(case_data, case_id=case_id),
            translation_work_outstanding=translation,
        )


@dataclass(frozen=True)
class Credentials:
    user_token: str
    service_token: str
    user_id: str | None = None


@dataclass(frozen=True)
class Template:
    template_id: str
    document_name: str


@dataclass(frozen=True)
class PrintDocument:
    content: bytes
    name: str


@dataclass(frozen=True)
class PrintBundle:
    documents: tuple[PrintDocument, ...]

    def __post_init__(self) -> None:
        if not self.documents:
            raise BulkPrintContractError("print bundle must contain at least one document")

    @property
    def names(self) -> list[str]:
        return [document.name for document in self.documents]


@dataclass(frozen=True)
class Dispatched:
    correlation_id: str
    description: str


@dataclass(frozen=True)
class NotEligible:
    description: str


@dataclass(frozen=True)
class Failed:
    reason: str
    description: str
    collaborator: str | None = None

    def __post_init__(self) -> None:
        if self.reason not in FAILURE_REASONS:
            raise BulkPrintContractError(f"failure reason must be one of {list(FAILURE_REASONS)}")
        if self.reason == FAILURE_UPSTREAM_UNAVAILABLE:
            if self.collaborator is None:
                raise BulkPrintContractError("UPSTREAM_UNAVAILABLE requires a collaborator")
            ensure_supported_collaborator(self.collaborator)


DispatchOutcome = Union[Dispatched, NotEligible, Failed]


@dataclass(frozen=True)
class CaseUpdate:
    case_id: str
    event_kind: str
    title: str
    comment: str
    fields: dict[str, str] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {
            "case_id": self.case_id,
            "event_kind": self.event_kind,
            "title": self.title,
            "comment": self.comment,
            "fields": dict(self.fields),
        }


def outcome_label(outcome: DispatchOutcome) -> str:
    if isinstance(outcome, Dispatched):
        return "DISPATCHED"
    if isinstance(outcome, NotEligible):
        return "NOT_ELIGIBLE"
    return f"FAILED:{outcome.reason}"


def _as_mapping(payload: Any, name: str) -> dict[str, Any]:
    if not isinstance(payload, Mapping):
        raise BulkPrintContractError(f"{name} must be a mapping")
    return dict(payload)


def _require_non_empty_string(value: Any, name: str) -> str:
    text = str(value or "").strip()
    if not text:
        raise BulkPrintContractError(f"{name} must be a non-empty string")
    return text


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)
