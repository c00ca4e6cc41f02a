"""Ordered photo list of a capture session (the review step before extraction)."""

from typing import Iterable, Iterator, List, Optional


class PhotoSet:
    """
    Page photos in reading order.

    Holds opaque references (storage keys or URIs). Moving the first photo
    left or the last photo right leaves the order unchanged.
    """

    def __init__(self, refs: Optional[Iterable[str]] = None) -> None:
        self._refs: List[str] = list(refs or [])

    def __len__(self) -> int:
        return len(self._refs)

    def __iter__(self) -> Iterator[str]:
        return iter(self._refs)

    def __getitem__(self, index: int) -> str:
        return self._refs[index]

    @property
    def refs(self) -> List[str]:
        return list(self._refs)

    def add(self, *refs: str) -> None:
        self._refs.extend(refs)

    def remove(self, index: int) -> str:
        self._check(index)
        return self._refs.pop(index)

    def replace(self, index: int, ref: str) -> str:
        """Swap in a retaken photo; returns the one it replaced."""
        self._check(index)
        previous, self._refs[index] = self._refs[index], ref
        return previous

    def move_left(self, index: int) -> None:
        self._check(index)
        if index > 0:
            self._refs[index - 1], self._refs[index] = self._refs[index], self._refs[index - 1]

    def move_right(self, index: int) -> None:
        self._check(index)
        if index < len(self._refs) - 1:
            self._refs[index], self._refs[index + 1] = self._refs[index + 1], self._refs[index]

    def _check(self, index: int) -> None:
        if not 0 <= index < len(self._refs):
            raise IndexError(f"No photo at position {index}")
