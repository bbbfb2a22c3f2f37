"""Message tag registry shared by every process of a distributed run."""

from typing import Dict, Iterable, List

from ..exceptions import ProtocolError

# Registration order fixes the numeric tags; it must be the same on every rank
CHANNELS = (
    "vectorSize",
    "querySize",
    "dataSetSize",
    "queryMatrix",
    "dataSetMatrix",
    "distanceMatrix",
)


class TagRegistry:
    """Deterministic mapping from channel names to integer message tags.

    Tags are assigned ``0, 1, 2, ...`` in registration order, so processes
    that register the same names in the same order agree on every tag without
    exchanging anything.

    Examples:
        >>> registry = TagRegistry()
        >>> registry.tag("queryMatrix")
        3
    """

    def __init__(self, names: Iterable[str] = CHANNELS):
        self._tags: Dict[str, int] = {}
        for name in names:
            self.register(name)

    def register(self, name: str) -> int:
        """Register ``name`` and return its tag; re-registering is a no-op."""
        if name not in self._tags:
            self._tags[name] = len(self._tags)
        return self._tags[name]

    def tag(self, name: str) -> int:
        try:
            return self._tags[name]
        except KeyError:
            raise ProtocolError(f"Unknown message channel '{name}'") from None

    def names(self) -> List[str]:
        return list(self._tags)

    def __contains__(self, name: str) -> bool:
        return name in self._tags

    def __len__(self) -> int:
        return len(self._tags)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TagRegistry):
            return NotImplemented
        return self._tags == other._tags
