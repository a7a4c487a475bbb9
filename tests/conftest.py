import pytest

from scrubber.detection.detector import PiiDetector
from tests.helpers import StubExtractor


@pytest.fixture()
def stub_extractor() -> StubExtractor:
    return StubExtractor(persons=["Jane Doe"], organizations=["Globex"])


@pytest.fixture()
def detector(stub_extractor: StubExtractor) -> PiiDetector:
    return PiiDetector(stub_extractor)
