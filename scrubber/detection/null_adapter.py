from scrubber.detection.base import BaseEntityExtractor


class NullEntityExtractor(BaseEntityExtractor):
    """Finds no entities. Leaves only the pattern-based categories active."""

    def persons(self, text: str) -> list[str]:
        return []

    def organizations(self, text: str) -> list[str]:
        return []
