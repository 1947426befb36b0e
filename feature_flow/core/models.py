"""
Core value types for package and feature identity.

These are pure data structures: they carry no graph logic and are safe to use
as dictionary keys and set members.
"""

from dataclasses import dataclass, field
from functools import total_ordering
from typing import Optional, Tuple


@total_ordering
@dataclass(frozen=True)
class PackageIdentity:
    """One resolved node of the dependency graph."""
    name: str
    version: str
    source: Optional[str] = None  # registry/git/path token, None for local path packages

    def _sort_key(self) -> Tuple[str, str, str]:
        return (self.name, self.version, self.source or "")

    def __lt__(self, other: "PackageIdentity") -> bool:
        if not isinstance(other, PackageIdentity):
            return NotImplemented
        return self._sort_key() < other._sort_key()

    @property
    def pkgid(self) -> str:
        """Package-id spec form, e.g. ``serde@1.0.100``."""
        return f"{self.name}@{self.version}"

    def __str__(self) -> str:
        return f"{self.name}-{self.version}"


@total_ordering
@dataclass(frozen=True, eq=False)
class Feature:
    """
    A named feature owned by a resolved package.

    Equality, hashing and ordering use (owner name, owner version, feature name)
    so that reports group by owning package and sort the same way every run.
    """
    owner: PackageIdentity
    name: str
    _key: Tuple[str, str, str] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "_key", (self.owner.name, self.owner.version, self.name))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Feature):
            return NotImplemented
        return self._key == other._key

    def __lt__(self, other: "Feature") -> bool:
        if not isinstance(other, Feature):
            return NotImplemented
        return self._key < other._key

    def __hash__(self) -> int:
        return hash(self._key)

    def __str__(self) -> str:
        return f"{self.owner.name}-{self.owner.version}/{self.name}"
