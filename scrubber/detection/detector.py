"""Pattern and NLP based PII detector with run-scoped placeholders.

Processing flow, one pass per enabled category in this fixed order:
1. Emails (regex).
2. Phones (regex, separators and extensions tolerated).
3. Names (NLP PERSON entities, at least 2 characters).
4. Companies (NLP ORG entities plus a legal-suffix regex).
5. Addresses (street number + words + street type regex).

Each pass scans the text produced by the previous pass, allocates a
placeholder for every value it found (first occurrence first) and replaces
all occurrences of those values in one substitution.

Nested entities are resolved by pass order only. "Jane Doe Consulting LLC"
becomes "[PERSON_1] Consulting LLC" after the names pass, and the companies
pass then replaces "Consulting LLC" on its own. Text inside a placeholder
from an earlier pass is never rewritten: an entity such as "EMAIL_1" that
only occurs inside "[EMAIL_1]" is ignored.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import ClassVar

from scrubber.detection.allocator import PlaceholderAllocator
from scrubber.detection.base import BaseEntityExtractor
from scrubber.detection.exceptions import DetectionError
from scrubber.detection.models import (
    DetectionOptions,
    DetectionResult,
    PiiCategory,
    PiiCounts,
)
from scrubber.logging.logger import Log

_Finder = Callable[[str], list[str]]


class PiiDetector:
    """Finds PII in free text and swaps it for placeholders from an allocator."""

    MIN_ENTITY_LENGTH: ClassVar[int] = 2

    COMPANY_SUFFIXES: ClassVar[tuple[str, ...]] = (
        "Inc", "LLC", "L.L.C.", "Ltd", "Limited",
        "Corp", "Corporation", "Co", "Company",
        "LLP", "L.L.P.", "LP", "L.P.", "PLC", "plc",
        "GmbH", "AG", "SA", "NV", "BV", "Pty",
    )

    STREET_TYPES: ClassVar[tuple[str, ...]] = (
        "Street", "St", "Avenue", "Ave", "Road", "Rd",
        "Boulevard", "Blvd", "Drive", "Dr", "Lane", "Ln",
        "Court", "Ct", "Circle", "Cir", "Way", "Place", "Pl",
    )

    _EMAIL_RE: ClassVar[re.Pattern[str]] = re.compile(
        r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b",
    )
    _PHONE_RE: ClassVar[re.Pattern[str]] = re.compile(
        r"(?<![\w+])"
        r"(?:\+?1[-.\s]?)?"
        r"(?:\(?\d{3}\)?[-.\s]?)?"
        r"\d{3}[-.\s]?\d{4}"
        r"(?:\s*(?:extension|ext|x)[.\s]*\d{1,5})?"
        r"(?!\w)",
        re.IGNORECASE,
    )
    _ADDRESS_RE: ClassVar[re.Pattern[str]] = re.compile(
        r"\b\d{1,5}\s+(?:[A-Za-z]+\s+){1,4}"
        r"(?:" + "|".join(STREET_TYPES) + r")\b\.?",
        re.IGNORECASE,
    )
    _COMPANY_RE: ClassVar[re.Pattern[str]] = re.compile(
        r"\b[A-Z][A-Za-z0-9&'-]*"
        r"(?:\s+(?:[A-Z][A-Za-z0-9&'-]*|&)){0,4}?"
        r"\s+(?:"
        + "|".join(re.escape(s) for s in sorted(COMPANY_SUFFIXES, key=len, reverse=True))
        + r")(?!\w)",
    )
    _PLACEHOLDER_RE: ClassVar[re.Pattern[str]] = re.compile(
        r"\[(?:" + "|".join(c.value for c in PiiCategory) + r")_\d+\]",
    )

    def __init__(self, extractor: BaseEntityExtractor) -> None:
        self._extractor = extractor

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def detect(
        self,
        text: str,
        options: DetectionOptions,
        allocator: PlaceholderAllocator,
    ) -> DetectionResult:
        """Replace PII in *text* with placeholders issued by *allocator*.

        Args:
            text: Free text, typically one support message.
            options: Categories to look for.
            allocator: Scope of the placeholders (one run or one preview call).
                       Values already known to it keep their placeholder.

        Returns:
            DetectionResult with the transformed text, the value -> placeholder
            pairs replaced in this call and per-category counts of distinct
            values.

        Raises:
            DetectionError: on any failure.
        """
        try:
            return self._run(text, options, allocator)
        except DetectionError:
            raise
        except Exception as exc:
            raise DetectionError(f"PII detection failed: {exc}") from exc

    # ------------------------------------------------------------------
    # Pass pipeline
    # ------------------------------------------------------------------

    def _run(
        self,
        text: str,
        options: DetectionOptions,
        allocator: PlaceholderAllocator,
    ) -> DetectionResult:
        if not text:
            return DetectionResult(text=text)

        used: dict[str, str] = {}
        counts = PiiCounts()
        result = text

        for category, enabled, finder in self._passes(options):
            if not enabled:
                continue
            candidates = finder(result)
            result = self._substitute(result, category, candidates, allocator, used, counts)

        if used:
            Log.debug(f"Detected {counts.total()} PII values")
        return DetectionResult(text=result, pii_mappings=used, counts=counts)

    def _passes(
        self,
        options: DetectionOptions,
    ) -> list[tuple[PiiCategory, bool, _Finder]]:
        return [
            (PiiCategory.EMAIL, options.detect_emails, self._find_emails),
            (PiiCategory.PHONE, options.detect_phones, self._find_phones),
            (PiiCategory.PERSON, options.detect_names, self._find_names),
            (PiiCategory.COMPANY, options.detect_companies, self._find_companies),
            (PiiCategory.ADDRESS, options.detect_addresses, self._find_addresses),
        ]

    def _substitute(
        self,
        text: str,
        category: PiiCategory,
        candidates: list[str],
        allocator: PlaceholderAllocator,
        used: dict[str, str],
        counts: PiiCounts,
    ) -> str:
        # Text outside earlier placeholders; a value seen only inside one is ignored.
        visible = self._PLACEHOLDER_RE.sub("\x00", text)
        values = [
            value
            for value in dict.fromkeys(candidates)
            if value and value in visible and not self._PLACEHOLDER_RE.search(value)
        ]
        if not values:
            return text

        # Allocation follows first appearance in the text, not finder order.
        values.sort(key=visible.find)
        replacements: dict[str, str] = {}
        for value in values:
            placeholder = allocator.allocate(category, value)
            replacements[value] = placeholder
            used[value] = placeholder
            counts.increment(category)

        # Existing placeholders match first and are written back unchanged.
        pattern = re.compile(
            f"({self._PLACEHOLDER_RE.pattern})|"
            + "|".join(re.escape(v) for v in sorted(replacements, key=len, reverse=True))
        )
        return pattern.sub(
            lambda m: m.group(0) if m.group(1) else replacements[m.group(0)],
            text,
        )

    # ------------------------------------------------------------------
    # Finders
    # ------------------------------------------------------------------

    def _find_emails(self, text: str) -> list[str]:
        return self._EMAIL_RE.findall(text)

    def _find_phones(self, text: str) -> list[str]:
        return [m.group(0).strip() for m in self._PHONE_RE.finditer(text)]

    def _find_names(self, text: str) -> list[str]:
        return [
            name
            for name in self._extractor.persons(text)
            if len(name) >= self.MIN_ENTITY_LENGTH
        ]

    def _find_companies(self, text: str) -> list[str]:
        found = [
            org
            for org in self._extractor.organizations(text)
            if len(org) >= self.MIN_ENTITY_LENGTH
        ]
        found.extend(m.group(0) for m in self._COMPANY_RE.finditer(text))
        return found

    def _find_addresses(self, text: str) -> list[str]:
        return [m.group(0) for m in self._ADDRESS_RE.finditer(text)]
