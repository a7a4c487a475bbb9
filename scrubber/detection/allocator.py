from scrubber.detection.models import PiiCategory


class PlaceholderAllocator:
    """Issues stable placeholders for one scope: a processing run or a preview call.

    The same value in the same category always gets the placeholder issued the
    first time it was seen. Each category numbers from 1 independently. Create
    a new allocator per scope; nothing is shared between instances.
    """

    def __init__(self) -> None:
        self._counters: dict[PiiCategory, int] = {category: 0 for category in PiiCategory}
        self._issued: dict[tuple[PiiCategory, str], str] = {}

    def allocate(self, category: PiiCategory, value: str) -> str:
        key = (category, value)
        placeholder = self._issued.get(key)
        if placeholder is None:
            self._counters[category] += 1
            placeholder = f"[{category.value}_{self._counters[category]}]"
            self._issued[key] = placeholder
        return placeholder

    def __len__(self) -> int:
        return len(self._issued)
