"""
Range class describing a span of linear document data.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Range:
    """An ordered pair of offsets into linear data.

    start and end are not required to be in order until normalize() is called.
    Normalizing records whether the endpoints were swapped in ``backwards`` so
    consumers that care about direction (e.g. extending a selection) can still
    tell which endpoint the range was anchored at.

    Attributes:
        start: First offset (the lower one once normalized)
        end: Second offset (the higher one once normalized)
        backwards: True if the range was anchored at end and extends towards start

    Example:
        >>> r = Range(5, 2)
        >>> r.normalize()
        Range(start=2, end=5, backwards=True)
        >>> r.from_offset, r.to_offset
        (5, 2)
    """

    start: int
    end: int
    backwards: bool = False

    @classmethod
    def cover(cls, *ranges: Range, backwards: bool = False) -> Range:
        """Get the smallest range containing all the given ranges.

        Args:
            *ranges: Ranges to cover (each is normalized first)
            backwards: Direction to give the covering range

        Returns:
            A normalized covering range

        Raises:
            ValueError: If no ranges are given
        """
        if not ranges:
            raise ValueError("Cannot cover an empty list of ranges")
        normalized = [r.normalized() for r in ranges]
        return cls(
            min(r.start for r in normalized),
            max(r.end for r in normalized),
            backwards=backwards,
        )

    @property
    def from_offset(self) -> int:
        """Offset the range is anchored at."""
        return self.end if self.backwards else self.start

    @property
    def to_offset(self) -> int:
        """Offset the range extends to."""
        return self.start if self.backwards else self.end

    def normalize(self) -> Range:
        """Swap start and end in place if needed, recording the direction."""
        if self.start > self.end:
            self.start, self.end = self.end, self.start
            self.backwards = not self.backwards
        return self

    def normalized(self) -> Range:
        """Get a normalized copy, leaving this range untouched."""
        return Range(self.start, self.end, self.backwards).normalize()

    def flip(self) -> Range:
        """Get a copy pointing in the opposite direction."""
        return Range(self.start, self.end, not self.backwards)

    def get_length(self) -> int:
        return abs(self.end - self.start)

    def is_collapsed(self) -> bool:
        """A collapsed range denotes an insertion point."""
        return self.start == self.end

    def contains_offset(self, offset: int) -> bool:
        """Check if an offset lies within the range (start inclusive, end exclusive)."""
        normalized = self.normalized()
        return normalized.start <= offset < normalized.end

    def translate(self, distance: int) -> Range:
        return Range(self.start + distance, self.end + distance, self.backwards)

    def truncate(self, length: int) -> Range:
        """Get a copy shortened to at most ``length`` items, keeping the anchor."""
        normalized = self.normalized()
        if length >= normalized.get_length():
            return normalized
        if normalized.backwards:
            return Range(normalized.end - length, normalized.end, True)
        return Range(normalized.start, normalized.start + length)

    def to_tuple(self) -> tuple[int, int]:
        return (self.start, self.end)
