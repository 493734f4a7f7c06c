"""Collaborator boundaries consumed by the bulk print pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from .config import TemplatePolicy
from .contracts import CaseDocument, CaseSnapshot, Credentials, PrintBundle, Template
from .taxonomy import ensure_supported_collaborator


class CollaboratorUnavailable(RuntimeError):
    """Raised by a collaborator adapter on transport errors or timeouts."""

    def __init__(self, collaborator: str, detail: str = "") -> None:
        self.collaborator = ensure_supported_collaborator(collaborator)
        self.detail = str(detail or "")[:256]
        message = f"{self.collaborator} unavailable"
        if self.detail:
            message = f"{message}: {self.detail}"
        super().__init__(message)


class IdentityProvider(Protocol):
    def get_credentials(self) -> Credentials:
        ...


class TemplateResolver(Protocol):
    def resolve_template(self, snapshot: CaseSnapshot) -> Template | None:
        ...


class DocumentRenderer(Protocol):
    def generate_and_attach(
        self,
        template: Template,
        snapshot: CaseSnapshot,
        credentials: Credentials,
    ) -> tuple[CaseDocument | None, ...]:
        ...


class ContentStore(Protocol):
    def fetch(self, url: str, acting_user: str) -> bytes:
        ...


class PrintProvider(Protocol):
    def submit(self, bundle: PrintBundle, snapshot: CaseSnapshot) -> str | None:
        ...


class CaseRecordStore(Protocol):
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
        ...


@dataclass(frozen=True)
class ConfiguredTemplateResolver:
    templates: TemplatePolicy

    def resolve_template(self, snapshot: CaseSnapshot) -> Template | None:
        if snapshot.appeal is None:
            return None
        template_id = self.templates.template_for_benefit(snapshot.appeal.benefit_code)
        if not template_id:
            return None
        return Template(
            template_id=template_id,
            document_name=self.templates.document_name_for(template_id),
        )
