"""Caller-detail extraction from Bland call transcripts.

``TranscriptExtractor`` is the seam the intake handler depends on; the
regex strategy below is the default. A model-backed strategy can be dropped
in through ``app.core.deps.get_transcript_extractor`` without touching
persistence or notification.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Iterable, Optional

from app.models.call import Urgency
from app.schemas.call import CallDetails, TranscriptTurn

logger = logging.getLogger(__name__)

UNKNOWN_NAME = "Unknown"
SERVICE_NOT_SPECIFIED = "Not specified"

NAME_PATTERN = re.compile(
    r"(?:my name is|I'm|this is)\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)?)",
    re.IGNORECASE,
)
PHONE_PATTERN = re.compile(r"(\d{3}[-.\s]?\d{3}[-.\s]?\d{4})")
ADDRESS_PATTERN = re.compile(
    r"\b(\d{1,6}\s+(?:[A-Za-z0-9']+\s+){1,3}?"
    r"(?:Street|St|Avenue|Ave|Road|Rd|Boulevard|Blvd|Drive|Dr|Lane|Ln|Court|Ct|"
    r"Way|Place|Pl|Circle|Cir|Parkway|Pkwy|Highway|Hwy|Terrace|Ter)\b\.?)",
    re.IGNORECASE,
)

# Checked in order; the first hit wins.
URGENCY_RULES: list[tuple[re.Pattern, Urgency]] = [
    (re.compile(r"asap|urgent|emergency|right away|immediately", re.IGNORECASE), Urgency.ASAP),
    (re.compile(r"today|within a day", re.IGNORECASE), Urgency.WITHIN_DAY),
    (re.compile(r"week|few days", re.IGNORECASE), Urgency.WITHIN_WEEK),
]


def transcript_text(transcript: list[TranscriptTurn] | str | None) -> str:
    """Flatten speaker-tagged turns into one space-joined string."""
    if not transcript:
        return ""
    if isinstance(transcript, str):
        return transcript
    return " ".join(turn.text for turn in transcript if turn.text)


class TranscriptExtractor(ABC):
    """Turns a raw transcript into structured caller details."""

    @abstractmethod
    def extract(
        self,
        transcript: list[TranscriptTurn] | str | None,
        services_offered: Iterable[str],
        fallback_phone: Optional[str] = None,
    ) -> CallDetails:
        ...


class RegexTranscriptExtractor(TranscriptExtractor):
    """Keyword/regex heuristics. Best-effort, never raises on odd input."""

    def extract(self, transcript, services_offered, fallback_phone=None) -> CallDetails:
        text = transcript_text(transcript)
        details = CallDetails(
            customer_name=self.extract_name(text) or UNKNOWN_NAME,
            customer_phone=self.extract_phone(text) or fallback_phone or "",
            service_needed=self.extract_service(text, services_offered) or SERVICE_NOT_SPECIFIED,
            customer_address=self.extract_address(text) or "",
            urgency=self.classify_urgency(text),
        )
        logger.debug("Extracted call details: %s", details)
        return details

    @staticmethod
    def extract_name(text: str) -> Optional[str]:
        match = NAME_PATTERN.search(text)
        return match.group(1) if match else None

    @staticmethod
    def extract_phone(text: str) -> Optional[str]:
        match = PHONE_PATTERN.search(text)
        return match.group(1) if match else None

    @staticmethod
    def extract_service(text: str, services_offered: Iterable[str]) -> Optional[str]:
        """Earliest mention of a configured service tag, returned as configured."""
        tags = [s for s in (services_offered or []) if s and s.strip()]
        if not tags or not text:
            return None

        # Longest first so "roof repair" wins over "roof" at the same position
        tags.sort(key=len, reverse=True)
        pattern = re.compile("|".join(re.escape(tag) for tag in tags), re.IGNORECASE)
        match = pattern.search(text)
        if not match:
            return None

        by_lower = {tag.lower(): tag for tag in tags}
        return by_lower.get(match.group(0).lower(), match.group(0))

    @staticmethod
    def extract_address(text: str) -> Optional[str]:
        match = ADDRESS_PATTERN.search(text)
        return match.group(1).strip() if match else None

    @staticmethod
    def classify_urgency(text: str) -> str:
        for pattern, urgency in URGENCY_RULES:
            if pattern.search(text):
                return urgency.value
        return Urgency.FLEXIBLE.value
