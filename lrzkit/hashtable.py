"""Tag hash table used by the rzip long-range match search.

Tags are thrown into the table at many offsets.  As the table fills up,
entries with the fewest low bits set are evicted first, so that every part
of the input stays covered by the hash, if sparsely.  An entry whose offset
and tag are both zero counts as empty.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from functools import reduce
from operator import xor
from typing import Iterator, NamedTuple, Sequence, Union

MASK64 = (1 << 64) - 1
MINIMUM_MATCH = 31
GREAT_MATCH = 1024

# Size of one table entry: a 64-bit offset and a 64-bit tag.
_ENTRY_SIZE = 16


@dataclass(frozen=True)
class Level:
    """Hash table sizing and eviction settings for one compression level."""

    mb_used: int
    initial_freq: int
    max_chain_len: int


LEVELS: tuple[Level, ...] = (
    Level(1, 4, 1),
    Level(2, 4, 2),
    Level(4, 4, 2),
    Level(8, 4, 2),
    Level(16, 4, 3),
    Level(32, 4, 4),
    Level(32, 2, 6),
    Level(64, 1, 16),
    Level(64, 1, 32),
    Level(64, 1, 128),
)


class HashDistribution(NamedTuple):
    """How many entries the table holds and how many sit in their primary bucket."""

    total: int
    primary: int


def increase_mask(mask: int) -> int:
    """Return the mask requiring one more low bit to be set."""
    return ((mask << 1) | 1) & MASK64


def _ffs(value: int) -> int:
    """1-based index of the lowest set bit, or 0 when no bit is set."""
    return (value & -value).bit_length() if value else 0


def lesser_bitness(a: int, b: int) -> bool:
    """Return True if tag ``a`` has fewer trailing one bits than tag ``b``."""
    return _ffs(~a & MASK64) < _ffs(~b & MASK64)


class HashTable:
    """Open-addressed table of (tag, offset) entries with bit-count eviction."""

    def __init__(self, level: Union[Level, int]) -> None:
        if not isinstance(level, Level):
            level = LEVELS[level]
        self.level = level
        hashsize = level.mb_used * (1024 * 1024 // _ENTRY_SIZE)
        self.hash_bits = max(0, (hashsize - 1).bit_length())
        self.size = 1 << self.hash_bits
        # Keep the table at most two thirds full.
        self.hash_limit = self.size // 3 * 2
        self.victim_round = 0
        self._tags = [0] * self.size
        self._offsets = [0] * self.size
        self.reset()

    def reset(self) -> None:
        """Empty the table and restore the initial tag requirement."""
        self._tags[:] = [0] * self.size
        self._offsets[:] = [0] * self.size
        self.minimum_tag_mask = (1 << self.level.initial_freq) - 1
        self.tag_clean_ptr = 0
        self.hash_count = 0

    def __len__(self) -> int:
        return self.hash_count

    def _is_empty(self, h: int) -> bool:
        return self._offsets[h] == 0 and self._tags[h] == 0

    def _minimum_bitness(self, t: int) -> bool:
        better = increase_mask(self.minimum_tag_mask)
        return (t & better) != better

    def primary_hash(self, t: int) -> int:
        """Return the bucket a tag hashes to first."""
        return t & (self.size - 1)

    def insert(self, t: int, offset: int) -> None:
        """Add an entry, spilling into following buckets when taken."""
        self.hash_count += 1
        self._place(t & MASK64, offset)

    def _place(self, t: int, offset: int) -> None:
        mask = self.size - 1
        tags, offsets = self._tags, self._offsets
        h = t & mask
        victim_h = 0
        rounds = 0
        while not self._is_empty(h):
            occupant = tags[h]
            # Due for cleaning anyway: just replace it.
            if self._minimum_bitness(occupant):
                self.hash_count -= 1
                break
            # The occupant would be cleaned before us; rehash it and take its place.
            if lesser_bitness(occupant, t):
                self._place(occupant, offsets[h])
                break
            # Many identical tags: discard one chosen in rotation.
            if occupant == t:
                if rounds == self.victim_round:
                    victim_h = h
                rounds += 1
                if rounds == self.level.max_chain_len:
                    h = victim_h
                    self.hash_count -= 1
                    self.victim_round += 1
                    if self.victim_round == self.level.max_chain_len:
                        self.victim_round = 0
                    break
            h = (h + 1) & mask
        tags[h] = t
        offsets[h] = offset

    def clean_one(self) -> int:
        """Evict one entry with the fewest low bits set.

        Returns the tag mask that any new entry must now satisfy.
        """
        tags, offsets = self._tags, self._offsets
        while True:
            better = increase_mask(self.minimum_tag_mask)
            start = self.tag_clean_ptr
            occupied = False
            for ptr in range(start, self.size):
                if self._is_empty(ptr):
                    continue
                occupied = True
                if (tags[ptr] & better) != better:
                    tags[ptr] = 0
                    offsets[ptr] = 0
                    self.hash_count -= 1
                    self.tag_clean_ptr = ptr
                    return better
            if start == 0 and (not occupied or better == self.minimum_tag_mask):
                raise ValueError("no hash entry can be cleaned")
            # Everything left satisfies the better mask.
            self.minimum_tag_mask = better
            self.tag_clean_ptr = 0

    def candidates(self, t: int) -> Iterator[int]:
        """Yield the offsets stored under tag ``t``, in probe order."""
        mask = self.size - 1
        h = t & mask
        for _ in range(self.size):
            if self._is_empty(h):
                return
            if self._tags[h] == t:
                yield self._offsets[h]
            h = (h + 1) & mask

    def distribution(self) -> HashDistribution:
        """Count the stored entries and those sitting in their primary bucket."""
        total = 0
        primary = 0
        for h, (t, offset) in enumerate(zip(self._tags, self._offsets)):
            if t == 0 and offset == 0:
                continue
            total += 1
            if self.primary_hash(t) == h:
                primary += 1
        return HashDistribution(total, primary)


def make_hash_index(seed: object = None) -> tuple[int, ...]:
    """Return 256 pseudo-random tag values, one per byte value."""
    rng = random.Random(seed)
    return tuple((rng.getrandbits(31) << 16) ^ rng.getrandbits(31) for _ in range(256))


def full_tag(buf: bytes, p: int, index: Sequence[int]) -> int:
    """Return the tag of the ``MINIMUM_MATCH`` bytes starting at ``p``."""
    if p < 0 or p + MINIMUM_MATCH > len(buf):
        raise IndexError(f"tag window at {p} runs outside the buffer")
    return reduce(xor, (index[b] for b in buf[p:p + MINIMUM_MATCH]), 0)


def next_tag(buf: bytes, p: int, t: int, index: Sequence[int]) -> int:
    """Roll the tag of the window at ``p - 1`` forward to the window at ``p``."""
    if p < 1 or p + MINIMUM_MATCH > len(buf):
        raise IndexError(f"tag window at {p} runs outside the buffer")
    return t ^ index[buf[p - 1]] ^ index[buf[p + MINIMUM_MATCH - 1]]