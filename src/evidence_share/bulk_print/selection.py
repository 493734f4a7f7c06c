"""Document selection and canonical print ordering."""

from __future__ import annotations

from collections.abc import Iterable

from .contracts import CaseDocument, EvidenceDocument
from .taxonomy import DOC_TYPE_SSCS1, PREREQUISITE_DOC_TYPES, PRINTABLE_FILE_MARKER


def is_printable(entry: CaseDocument | None) -> bool:
    if entry is None or entry.value is None:
        return False
    document = entry.value
    if document.file_name is None or document.document_type is None:
        return False
    if document.link is None or document.link.url is None:
        return False
    return PRINTABLE_FILE_MARKER in document.file_name.lower()


def select_documents(documents: Iterable[CaseDocument | None] | None) -> tuple[EvidenceDocument, ...]:
    """Keep printable documents and order them dl6/dl16, then sscs1, then the rest.

    Encounter order is preserved inside each group.
    """
    if documents is None:
        return ()
    prerequisites: list[EvidenceDocument] = []
    appeal_forms: list[EvidenceDocument] = []
    others: list[EvidenceDocument] = []
    for entry in documents:
        if not is_printable(entry):
            continue
        assert entry is not None and entry.value is not None
        document = entry.value
        if document.document_type in PREREQUISITE_DOC_TYPES:
            prerequisites.append(document)
        elif document.document_type == DOC_TYPE_SSCS1:
            appeal_forms.append(document)
        else:
            others.append(document)
    return tuple(prerequisites + appeal_forms + others)


def has_prerequisite_document(documents: Iterable[EvidenceDocument]) -> bool:
    return any(document.document_type in PREREQUISITE_DOC_TYPES for document in documents)
