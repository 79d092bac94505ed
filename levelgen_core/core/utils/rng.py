# levelgen_core/core/utils/rng.py
from __future__ import annotations
from typing import Union

import numpy as np

# golden ratio for 64-bit
_DEF_CONST = 0x9E3779B97F4A7C15
_MASK64 = 0xFFFFFFFFFFFFFFFF


def _splitmix64(x: int) -> int:
    x = (x + _DEF_CONST) & _MASK64
    z = x
    z = (z ^ (z >> 30)) * 0xBF58476D1CE4E5B9 & _MASK64
    z = (z ^ (z >> 27)) * 0x94D049BB133111EB & _MASK64
    return z ^ (z >> 31)


def seed_from_any(x: Union[int, str, bytes]) -> int:
    if isinstance(x, bool):
        raise TypeError("Unsupported seed type")
    if isinstance(x, int):
        return x & _MASK64
    if isinstance(x, bytes):
        acc = 0xcbf29ce484222325
        for b in x:
            acc ^= b
            acc = (acc * 0x100000001B3) & _MASK64
        return acc
    if isinstance(x, str):
        return seed_from_any(x.encode('utf-8'))
    raise TypeError("Unsupported seed type")


def hash64(*vals: int) -> int:
    h = 0x84222325CBF29CE4
    for v in vals:
        h ^= v & _MASK64
        h = _splitmix64(h)
    return h


def part_seed(level_seed: Union[int, str, bytes], index: int) -> int:
    """Сид для части уровня: зависит только от сида уровня и порядкового номера."""
    return hash64(seed_from_any(level_seed), index & _MASK64)


def parse_seed(text: str) -> Union[int, str]:
    """Сид из консоли/CLI: целое число, если строка на него похожа, иначе сама строка."""
    text = text.strip()
    if not text:
        raise ValueError("Seed must not be empty")
    try:
        return int(text)
    except ValueError:
        return text


def make_generator(seed: Union[int, str, bytes, None]) -> np.random.Generator:
    """
    Детерминированный numpy-генератор. None - недетерминированный
    (только для интерактивных запусков, в тестах всегда передаем сид).
    """
    if seed is None:
        return np.random.default_rng()
    return np.random.default_rng(seed_from_any(seed))
