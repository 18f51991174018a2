"""Validation of the model's report draft against the expected report shape."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog

from meetingintel.intelligence.json_utils import coerce_json_payload
from meetingintel.intelligence.models import (
    REQUIRED_REPORT_FIELDS,
    RawReport,
    StructuredReport,
    ValidatedDraft,
)

logger = structlog.get_logger(__name__)


def is_filled(value: Any) -> bool:
    """Non-null and non-blank; lists need at least one non-blank item."""
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, list):
        return any(is_filled(item) for item in value)
    if isinstance(value, dict):
        return bool(value)
    return bool(str(value).strip())


def missing_fields(payload: Dict[str, Any], required: tuple = REQUIRED_REPORT_FIELDS) -> List[str]:
    return [name for name in required if not is_filled(payload.get(name))]


class ReportValidator:
    """Turns a draft into a ``StructuredReport`` or falls back to ``RawReport``."""

    def __init__(self, required_fields: tuple = REQUIRED_REPORT_FIELDS):
        self.required_fields = required_fields

    def validate(self, draft: Optional[str]) -> ValidatedDraft:
        text = draft or ""
        try:
            payload = coerce_json_payload(text)
        except ValueError as e:
            logger.warning("report_not_json", error=str(e), chars=len(text))
            return RawReport(text=text)

        missing = missing_fields(payload, self.required_fields)
        if missing:
            logger.warning("report_missing_fields", missing=missing)
            return RawReport(text=text)

        logger.info("report_validated", fields=len(payload))
        return StructuredReport(fields=payload, text=text)
