"""Bulk print dispatch policy loader."""

from __future__ import annotations

from dataclasses import dataclass
import hashlib
import json
from pathlib import Path
from typing import Any, Mapping

import yaml

from .taxonomy import (
    DEFAULT_CONTENT_STORE_USER,
    DEFAULT_HANDLED_EVENT_KINDS,
    BulkPrintTaxonomyError,
    ensure_supported_event_kind,
)


@dataclass(frozen=True)
class TemplatePolicy:
    default_template_id: str | None
    by_benefit_code: dict[str, str]
    document_names: dict[str, str]

    def template_for_benefit(self, benefit_code: str | None) -> str | None:
        code = str(benefit_code or "").strip().upper()
        if code and code in self.by_benefit_code:
            return self.by_benefit_code[code]
        return self.default_template_id

    def document_name_for(self, template_id: str) -> str:
        return self.document_names.get(template_id, template_id)


@dataclass(frozen=True)
class BulkPrintPolicy:
    version: str
    policy_id: str
    revision: str
    allowed_received_via: tuple[str, ...]
    handled_event_kinds: tuple[str, ...]
    content_store_user: str
    templates: TemplatePolicy
    content_digest: str

    def is_allowed_received_via(self, received_via: str) -> bool:
        candidate = str(received_via).lower()
        return any(candidate == item.lower() for item in self.allowed_received_via)


class BulkPrintConfigError(ValueError):
    """Raised when bulk print policy payloads are invalid."""


def load_bulk_print_policy(path: Path) -> BulkPrintPolicy:
    payload = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise BulkPrintConfigError("bulk print policy must be a mapping")
    return build_bulk_print_policy(payload)


def build_bulk_print_policy(payload: Mapping[str, Any]) -> BulkPrintPolicy:
    version = str(payload.get("version") or "").strip()
    policy_id = str(payload.get("policy_id") or "").strip()
    revision = str(payload.get("revision") or "").strip()
    if not version or not policy_id or not revision:
        raise BulkPrintConfigError("bulk print policy requires version, policy_id, revision")

    section = payload.get("bulk_print")
    if not isinstance(section, Mapping):
        raise BulkPrintConfigError("bulk_print must be a mapping")

    allowed_received_via = tuple(_to_non_empty_list(section.get("allowed_received_via"), "allowed_received_via"))

    raw_kinds = section.get("handled_event_kinds")
    if raw_kinds is None:
        handled_event_kinds = DEFAULT_HANDLED_EVENT_KINDS
    else:
        kinds: list[str] = []
        for kind in _to_non_empty_list(raw_kinds, "handled_event_kinds"):
            try:
                kinds.append(ensure_supported_event_kind(kind))
            except BulkPrintTaxonomyError as exc:
                raise BulkPrintConfigError(str(exc)) from exc
        handled_event_kinds = tuple(dict.fromkeys(kinds))

    content_store_user = str(section.get("content_store_user") or DEFAULT_CONTENT_STORE_USER).strip()
    templates = _parse_templates(section.get("templates"))

    digest_payload = {
        "version": version,
        "policy_id": policy_id,
        "revision": revision,
        "allowed_received_via": list(allowed_received_via),
        "handled_event_kinds": list(handled_event_kinds),
        "content_store_user": content_store_user,
        "templates": {
            "default": templates.default_template_id,
            "by_benefit_code": dict(sorted(templates.by_benefit_code.items())),
            "document_names": dict(sorted(templates.document_names.items())),
        },
    }
    canonical = json.dumps(digest_payload, sort_keys=True, ensure_ascii=True, separators=(",", ":"))
    content_digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()

    return BulkPrintPolicy(
        version=version,
        policy_id=policy_id,
        revision=revision,
        allowed_received_via=allowed_received_via,
        handled_event_kinds=handled_event_kinds,
        content_store_user=content_store_user,
        templates=templates,
        content_digest=content_digest,
    )


def _parse_templates(value: Any) -> TemplatePolicy:
    if value is None:
        return TemplatePolicy(default_template_id=None, by_benefit_code={}, document_names={})
    if not isinstance(value, Mapping):
        raise BulkPrintConfigError("templates must be a mapping when provided")
    default = str(value.get("default") or "").strip() or None

    by_benefit_raw = value.get("by_benefit_code") or {}
    if not isinstance(by_benefit_raw, Mapping):
        raise BulkPrintConfigError("templates.by_benefit_code must be a mapping")
    by_benefit: dict[str, str] = {}
    for code, template_id in by_benefit_raw.items():
        key = str(code or "").strip().upper()
        text = str(template_id or "").strip()
        if not key or not text:
            raise BulkPrintConfigError(f"templates.by_benefit_code entry {code!r} must be non-empty")
        by_benefit[key] = text

    names_raw = value.get("document_names") or {}
    if not isinstance(names_raw, Mapping):
        raise BulkPrintConfigError("templates.document_names must be a mapping")
    names = {str(key).strip(): str(name).strip() for key, name in names_raw.items() if str(name or "").strip()}

    return TemplatePolicy(default_template_id=default, by_benefit_code=by_benefit, document_names=names)


def _to_non_empty_list(value: Any, field_name: str) -> list[str]:
    if not isinstance(value, list) or not value:
        raise BulkPrintConfigError(f"{field_name} must be a non-empty list")
    normalized: list[str] = []
    for index, item in enumerate(value):
        text = str(item or "").strip()
        if not text:
            raise BulkPrintConfigError(f"{field_name}[{index}] must be non-empty")
        normalized.append(text)
    return normalized
