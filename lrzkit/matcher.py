"""Long-range match search: splits a chunk into literal runs and back-references."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional, Union

from lrzkit.hashtable import (
    GREAT_MATCH,
    MINIMUM_MATCH,
    HashTable,
    Level,
    full_tag,
    make_hash_index,
    next_tag,
)

# Largest length a single literal or match record can carry.
MAX_RECORD_LENGTH = 0xFFFF
DEFAULT_LEVEL = 7


@dataclass
class RzipStats:
    """Counters gathered while searching for matches."""

    matches: int = 0
    match_bytes: int = 0
    literals: int = 0
    literal_bytes: int = 0
    tag_hits: int = 0
    tag_misses: int = 0
    inserts: int = 0


@dataclass(frozen=True)
class Literal:
    """A run of bytes copied verbatim from the input."""

    start: int
    length: int


@dataclass(frozen=True)
class Match:
    """Bytes at ``position`` that repeat the earlier bytes at ``offset``."""

    position: int
    offset: int
    length: int

    @property
    def distance(self) -> int:
        """How far back the repeated bytes start."""
        return self.position - self.offset


Record = Union[Literal, Match]


def match_len(buf: bytes, p0: int, op: int, end: int, last_match: int) -> tuple[int, int]:
    """Measure the match between positions ``p0`` and the earlier ``op``.

    The match is extended forward up to ``end`` and backward down to
    ``last_match``.  Returns ``(length, reverse)`` where ``reverse`` is how
    far the match was extended backward; ``length`` is 0 when the match is
    shorter than the minimum match length.
    """
    if op >= p0:
        return 0, 0
    p, o = p0, op
    while p < end and buf[p] == buf[o]:
        p += 1
        o += 1
    length = p - p0

    p, o = p0, op
    stop = max(0, last_match)
    while p > stop and o > 0 and buf[o - 1] == buf[p - 1]:
        o -= 1
        p -= 1
    reverse = p0 - p
    length += reverse
    if length < MINIMUM_MATCH:
        return 0, reverse
    return length, reverse


class MatchFinder:
    """Finds repeated byte ranges within a chunk using a sampled tag hash."""

    def __init__(self, level: Union[Level, int] = DEFAULT_LEVEL, seed: Optional[object] = None) -> None:
        self.table = HashTable(level)
        self.level = self.table.level
        self.hash_index = make_hash_index(seed)
        self.stats = RzipStats()

    def _literals(self, last: int, p: int) -> Iterator[Literal]:
        while True:
            length = min(p - last, MAX_RECORD_LENGTH)
            self.stats.literals += 1
            self.stats.literal_bytes += length
            yield Literal(last, length)
            last += length
            if p <= last:
                return

    def _matches(self, p: int, offset: int, length: int) -> Iterator[Match]:
        while True:
            n = min(length, MAX_RECORD_LENGTH)
            self.stats.matches += 1
            self.stats.match_bytes += n
            yield Match(p, offset, n)
            length -= n
            p += n
            offset += n
            if not length:
                return

    def _find_best_match(self, data: bytes, t: int, p: int, end: int, last_match: int) -> tuple[int, int, int]:
        """Return ``(length, offset, reverse)`` of the longest candidate match."""
        best_len = 0
        best_offset = 0
        best_reverse = 0
        for candidate in self.table.candidates(t):
            mlen, rev = match_len(data, p, candidate, end, last_match)
            if mlen:
                if mlen > best_len:
                    best_len = mlen
                    best_offset = candidate - rev
                    best_reverse = rev
                self.stats.tag_hits += 1
            else:
                self.stats.tag_misses += 1
        return best_len, best_offset, best_reverse

    def search(self, data: bytes) -> Iterator[Record]:
        """Yield literal and match records that together cover ``data`` in order."""
        data = bytes(data)
        table = self.table
        table.reset()
        tag_mask = (1 << self.level.initial_freq) - 1
        index = self.hash_index

        size = len(data)
        end = size - MINIMUM_MATCH
        p = 0
        last_match = 0
        cur_p, cur_len, cur_ofs = 0, 0, 0
        t = full_tag(data, 0, index) if end > 0 else 0

        while p < end:
            p += 1
            t = next_tag(data, p, t, index)

            # No tags with this few bits remain in the table.
            if (t & table.minimum_tag_mask) != table.minimum_tag_mask:
                continue

            mlen, offset, reverse = self._find_best_match(data, t, p, end, last_match)

            # Only insert occasionally into the table.
            if (t & tag_mask) == tag_mask:
                self.stats.inserts += 1
                table.insert(t, p)
                if table.hash_count > table.hash_limit:
                    tag_mask = table.clean_one()

            if mlen > cur_len:
                cur_p = p - reverse
                cur_len = mlen
                cur_ofs = offset

            if (cur_len >= GREAT_MATCH or p >= cur_p + MINIMUM_MATCH) and cur_len >= MINIMUM_MATCH:
                if last_match < cur_p:
                    yield from self._literals(last_match, cur_p)
                yield from self._matches(cur_p, cur_ofs, cur_len)
                last_match = cur_p + cur_len
                cur_p = p = last_match
                cur_len = 0
                t = full_tag(data, p, index)

        if last_match < size:
            yield from self._literals(last_match, size)