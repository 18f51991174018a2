"""Second editorial pass over a report draft."""

from __future__ import annotations

from typing import Optional

import structlog

from meetingintel.data.openai_client import OpenAIChatClient
from meetingintel.intelligence.prompts import build_critique_messages

logger = structlog.get_logger(__name__)


class CritiqueRefiner:
    """
    Asks a critic persona to tighten a draft.

    Never fails: any error or empty answer returns the draft unchanged.
    """

    def __init__(
        self,
        llm: OpenAIChatClient,
        temperature: float = 0.5,
        max_tokens: int = 3000,
        timeout: Optional[float] = None,
    ):
        self.llm = llm
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

    def refine(self, draft: str) -> str:
        try:
            result = self.llm.complete(
                build_critique_messages(draft),
                timeout=self.timeout,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except Exception as e:
            logger.error("critique_failed", error=str(e), error_type=type(e).__name__)
            return draft

        refined = (result.content or "").strip()
        if not refined:
            logger.warning("critique_empty_response")
            return draft

        logger.info("critique_applied", original_chars=len(draft), refined_chars=len(refined))
        return refined
