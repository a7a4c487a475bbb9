from typing import ClassVar

import spacy

from scrubber.detection.base import BaseEntityExtractor
from scrubber.detection.exceptions import EntityExtractionError


class SpacyEntityExtractor(BaseEntityExtractor):
    """Extracts PERSON and ORG entities with a spaCy pipeline."""

    PERSON_LABELS: ClassVar[frozenset[str]] = frozenset({"PERSON"})
    ORGANIZATION_LABELS: ClassVar[frozenset[str]] = frozenset({"ORG"})

    def __init__(self, model_name: str = "en_core_web_sm") -> None:
        try:
            self._nlp = spacy.load(model_name)
        except OSError as exc:
            raise EntityExtractionError(
                f"spaCy model '{model_name}' is not installed. "
                f"Run: python -m spacy download {model_name}"
            ) from exc

    def persons(self, text: str) -> list[str]:
        return self._entities(text, self.PERSON_LABELS)

    def organizations(self, text: str) -> list[str]:
        return self._entities(text, self.ORGANIZATION_LABELS)

    def _entities(self, text: str, labels: frozenset[str]) -> list[str]:
        if not text.strip():
            return []
        try:
            doc = self._nlp(text)
        except Exception as exc:
            raise EntityExtractionError(f"spaCy extraction failed: {exc}") from exc

        found: list[str] = []
        for ent in doc.ents:
            if ent.label_ not in labels:
                continue
            value = ent.text.strip()
            if value and value not in found:
                found.append(value)
        return found
