"""
models/bimap.py – Ordered one-to-one mapping between display labels and codes.
"""

from typing import Dict, Generic, Iterable, Iterator, List, Optional, Tuple, TypeVar

K = TypeVar("K")
V = TypeVar("V")


class BiMap(Generic[K, V]):
    """
    Invertible, insertion-ordered mapping.

    Both keys and values must be unique; :meth:`add` raises ``ValueError`` on a
    duplicate of either side instead of silently overwriting.
    """

    def __init__(self, pairs: Iterable[Tuple[K, V]] = ()) -> None:
        self._forward: Dict[K, V] = {}
        self._backward: Dict[V, K] = {}
        for key, value in pairs:
            self.add(key, value)

    def add(self, key: K, value: V) -> None:
        if key in self._forward or value in self._backward:
            raise ValueError(f"Duplicate key or value: {key!r} / {value!r}")
        self._forward[key] = value
        self._backward[value] = key

    def value_of(self, key: K) -> V:
        return self._forward[key]

    def key_of(self, value: V) -> K:
        return self._backward[value]

    def get_value(self, key: K, default: Optional[V] = None) -> Optional[V]:
        return self._forward.get(key, default)

    def get_key(self, value: V, default: Optional[K] = None) -> Optional[K]:
        return self._backward.get(value, default)

    def keys(self) -> List[K]:
        return list(self._forward)

    def values(self) -> List[V]:
        return list(self._backward)

    def __contains__(self, key: object) -> bool:
        return key in self._forward

    def __getitem__(self, key: K) -> V:
        return self._forward[key]

    def __iter__(self) -> Iterator[K]:
        return iter(self._forward)

    def __len__(self) -> int:
        return len(self._forward)

    def items(self) -> List[Tuple[K, V]]:
        return list(self._forward.items())
