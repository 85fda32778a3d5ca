"""Normalized-equality for employee keys.

Accounts and HR profiles are written by different tools and the shared key
drifts in formatting (``emp_001`` in one table, ``EMP001`` in the other).
``KeyNormalizer`` reduces a key to a comparable form: trimmed, case-folded,
separator characters removed and, optionally, one known prefix removed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from ..core.constants import DEFAULT_KEY_PREFIXES, DEFAULT_KEY_SEPARATORS


def _strip_separators(value: str, separators: Sequence[str]) -> str:
    for sep in separators:
        value = value.replace(sep, "")
    return value


@dataclass(frozen=True)
class KeyNormalizer:
    separators: tuple[str, ...] = DEFAULT_KEY_SEPARATORS
    prefixes: tuple[str, ...] = DEFAULT_KEY_PREFIXES
    _folded_prefixes: tuple[str, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "separators", tuple(s for s in self.separators if s))
        folded = [_strip_separators(p.strip().casefold(), self.separators) for p in self.prefixes]
        # longest first so "emp" never shadows "empl"
        ordered = tuple(sorted({p for p in folded if p}, key=len, reverse=True))
        object.__setattr__(self, "_folded_prefixes", ordered)

    def like_suffix(self, key: str) -> str:
        """Separator-free lower-cased tail every matching stored key ends with."""
        return self.normalize(key)

    def normalize(self, key: str) -> str:
        value = _strip_separators((key or "").strip().casefold(), self.separators)
        for prefix in self._folded_prefixes:
            if value.startswith(prefix) and len(value) > len(prefix):
                return value[len(prefix):]
        return value

    def matches(self, left: str, right: str) -> bool:
        a = self.normalize(left)
        return bool(a) and a == self.normalize(right)
