"""Domain-separated deterministic RNG using xxhash.

The outcome of Tick T depends ONLY on WorldSeed + State at T-1.

Formula: RNG_Value = Hash(WorldSeed, Domain, EntityKey, Tick, Salt)

Agents are keyed by string ids, so ``entity_key`` folds an id into the
signed 64-bit slot of the hash payload.  ``salt`` separates several draws
taken by the same entity in the same domain on the same tick.
"""

from __future__ import annotations

import struct

import xxhash

from oasis.core.enums import Domain


class DeterministicRNG:
    """Stateless domain-separated pseudo-random number generator.

    Each call is a pure function of (seed, domain, entity, tick, salt) —
    no internal mutable state, therefore fully thread-safe.
    """

    __slots__ = ("_seed",)

    _MAX_UINT64 = (1 << 64) - 1

    def __init__(self, seed: int) -> None:
        self._seed = seed

    @property
    def seed(self) -> int:
        return self._seed

    @staticmethod
    def entity_key(entity_id: str) -> int:
        """Fold a string id into a non-negative signed-64 integer."""
        return xxhash.xxh64(entity_id.encode("utf-8")).intdigest() >> 1

    def _hash(self, domain: Domain, entity: int, tick: int, salt: int) -> int:
        payload = struct.pack("<qiqqi", self._seed, domain.value, entity, tick, salt)
        return xxhash.xxh64(payload).intdigest()

    def next_float(self, domain: Domain, entity: int, tick: int, salt: int = 0) -> float:
        """Return a deterministic float in [0.0, 1.0)."""
        return self._hash(domain, entity, tick, salt) / (self._MAX_UINT64 + 1)

    def next_int(self, domain: Domain, entity: int, tick: int, low: int, high: int, salt: int = 0) -> int:
        """Return a deterministic integer in [low, high] inclusive."""
        f = self.next_float(domain, entity, tick, salt)
        return low + int(f * (high - low + 1))

    def next_bool(self, domain: Domain, entity: int, tick: int, probability: float = 0.5, salt: int = 0) -> bool:
        """Return True with the given probability."""
        return self.next_float(domain, entity, tick, salt) < probability


class SeededStream:
    """Sequential draws from a DeterministicRNG for one-shot generation work.

    Terrain and personality generation consume long runs of numbers; a
    stream walks the ``salt`` counter so each draw is still a pure function
    of (seed, domain, key, index).
    """

    __slots__ = ("_rng", "_domain", "_key", "_index")

    def __init__(self, rng: DeterministicRNG, domain: Domain, key: int) -> None:
        self._rng = rng
        self._domain = domain
        self._key = key
        self._index = 0

    def random(self) -> float:
        value = self._rng.next_float(self._domain, self._key, 0, self._index)
        self._index += 1
        return value

    def randint(self, low: int, high: int) -> int:
        """Integer in [low, high] inclusive."""
        return low + int(self.random() * (high - low + 1))

    def pick_n(self, pool: list, n: int) -> list:
        """Draw ``n`` distinct entries from ``pool`` in draw order."""
        remaining = list(pool)
        chosen = []
        for _ in range(min(n, len(remaining))):
            chosen.append(remaining.pop(int(self.random() * len(remaining))))
        return chosen
