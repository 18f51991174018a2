"""Utilities for normalising LLM payloads that should contain JSON objects."""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Optional

FENCE_LANGUAGE = re.compile(r"^(json|javascript|js)\s*", re.IGNORECASE)


def coerce_json_payload(text: Optional[str]) -> Dict[str, Any]:
    """
    Extract and parse a JSON object from an LLM response.

    Handles code fences, extra prose, and partial JSON snippets.
    """
    if not text:
        raise ValueError("Empty payload")

    candidate = text.strip()

    if "```" in candidate:
        parts = candidate.split("```")
        for part in parts:
            part = FENCE_LANGUAGE.sub("", part.strip(), count=1)
            if part.startswith("{"):
                candidate = part
                break

    try:
        payload = json.loads(candidate)
    except json.JSONDecodeError:
        match = re.search(r"\{.*\}", candidate, re.DOTALL)
        if not match:
            raise ValueError("Could not extract JSON from payload")
        try:
            payload = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise ValueError("Could not extract JSON from payload") from e

    if not isinstance(payload, dict):
        raise ValueError("JSON payload is not an object")
    return payload
