from scrubber.detection.allocator import PlaceholderAllocator
from scrubber.detection.detector import PiiDetector
from scrubber.detection.factory import DetectorFactory, EntityExtractorFactory
from scrubber.detection.models import DetectionOptions, DetectionResult, PiiCategory, PiiCounts

__all__ = [
    "DetectionOptions",
    "DetectionResult",
    "DetectorFactory",
    "EntityExtractorFactory",
    "PiiCategory",
    "PiiCounts",
    "PiiDetector",
    "PlaceholderAllocator",
]
