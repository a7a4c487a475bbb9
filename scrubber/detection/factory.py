from typing import ClassVar

from scrubber.config.settings import Settings
from scrubber.detection.base import BaseEntityExtractor
from scrubber.detection.detector import PiiDetector
from scrubber.detection.null_adapter import NullEntityExtractor
from scrubber.detection.spacy_adapter import SpacyEntityExtractor


class EntityExtractorFactory:
    """Creates the entity extractor selected by settings.ner_engine."""

    ENGINES: ClassVar[tuple[str, ...]] = ("spacy", "none")

    @classmethod
    def create(cls, settings: Settings) -> BaseEntityExtractor:
        engine = settings.ner_engine.lower()
        if engine == "spacy":
            return SpacyEntityExtractor(settings.spacy_model)
        if engine == "none":
            return NullEntityExtractor()
        raise ValueError(
            f"Unknown NER engine '{engine}'. Choose from: {list(cls.ENGINES)}"
        )


class DetectorFactory:
    """Creates a PiiDetector wired to the configured extractor."""

    @classmethod
    def create(cls, settings: Settings) -> PiiDetector:
        return PiiDetector(EntityExtractorFactory.create(settings))
