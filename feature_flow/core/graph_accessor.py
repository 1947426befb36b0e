"""
Read-only access to a resolved dependency graph.

The aggregator only ever talks to a ``ResolvedGraphAccessor``. Implementations
must return effective (post-replacement) dependency identities and raise
``UnknownPackage`` for identities outside the resolved set.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

import yaml

from feature_flow.core.errors import GraphFormatError, UnknownPackage
from feature_flow.core.models import PackageIdentity


class ResolvedGraphAccessor(ABC):
    """Query interface over one resolution of a dependency graph."""

    root: Optional[PackageIdentity] = None

    @abstractmethod
    def dependencies_of(self, package: PackageIdentity) -> List[PackageIdentity]:
        """Direct dependencies of ``package`` with replacements already applied."""

    @abstractmethod
    def activated_features(self, package: PackageIdentity) -> Set[str]:
        """Feature names the resolver turned on for ``package``."""

    @abstractmethod
    def declared_features(self, package: PackageIdentity) -> Set[str]:
        """Every feature name ``package`` exposes."""


class InMemoryGraphAccessor(ResolvedGraphAccessor):
    """Accessor backed by plain mappings, e.g. a saved YAML graph snapshot."""

    def __init__(
        self,
        dependencies: Mapping[PackageIdentity, Iterable[PackageIdentity]],
        activated: Optional[Mapping[PackageIdentity, Iterable[str]]] = None,
        declared: Optional[Mapping[PackageIdentity, Iterable[str]]] = None,
        root: Optional[PackageIdentity] = None,
    ):
        self._dependencies: Dict[PackageIdentity, List[PackageIdentity]] = {
            pkg: list(deps) for pkg, deps in dependencies.items()
        }
        activated = activated or {}
        declared = declared or {}
        self._activated = {pkg: set(activated.get(pkg, ())) for pkg in self._dependencies}
        self._declared = {pkg: set(declared.get(pkg, ())) for pkg in self._dependencies}
        self.root = root

        for pkg, deps in self._dependencies.items():
            for dep in deps:
                if dep not in self._dependencies:
                    raise GraphFormatError(f"{pkg.pkgid} depends on {dep.pkgid}, which is not in the graph")

    def _require(self, package: PackageIdentity) -> None:
        if package not in self._dependencies:
            raise UnknownPackage(package)

    def dependencies_of(self, package: PackageIdentity) -> List[PackageIdentity]:
        self._require(package)
        return list(self._dependencies[package])

    def activated_features(self, package: PackageIdentity) -> Set[str]:
        self._require(package)
        return set(self._activated[package])

    def declared_features(self, package: PackageIdentity) -> Set[str]:
        self._require(package)
        return set(self._declared[package])

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InMemoryGraphAccessor":
        """
        Build an accessor from a graph snapshot mapping.

        Args:
            data: ``{"root": "name@version", "packages": [...]}`` where each package
                  entry has ``name``, ``version`` and optional ``source``,
                  ``features``, ``activated`` and ``dependencies`` (``name@version`` refs).

        Returns:
            InMemoryGraphAccessor: accessor with ``root`` set.
        """
        if not isinstance(data, dict):
            raise GraphFormatError("Graph snapshot must be a mapping")
        entries = data.get("packages")
        if not isinstance(entries, list) or not entries:
            raise GraphFormatError("Graph snapshot must list at least one package under 'packages'")

        by_pkgid: Dict[str, PackageIdentity] = {}
        for entry in entries:
            try:
                pkg = PackageIdentity(
                    name=str(entry["name"]),
                    version=str(entry["version"]),
                    source=entry.get("source"),
                )
            except (KeyError, TypeError, AttributeError) as e:
                raise GraphFormatError(f"Invalid package entry {entry!r}: missing {e}") from e
            if pkg.pkgid in by_pkgid:
                raise GraphFormatError(f"Duplicate package {pkg.pkgid} in graph snapshot")
            by_pkgid[pkg.pkgid] = pkg

        def lookup(ref: Any, context: str) -> PackageIdentity:
            ref = str(ref)
            if ref not in by_pkgid:
                raise GraphFormatError(f"Unknown package reference '{ref}' in {context}")
            return by_pkgid[ref]

        dependencies: Dict[PackageIdentity, List[PackageIdentity]] = {}
        activated: Dict[PackageIdentity, List[str]] = {}
        declared: Dict[PackageIdentity, List[str]] = {}
        for entry in entries:
            pkg = by_pkgid[f"{entry['name']}@{entry['version']}"]
            dependencies[pkg] = [lookup(ref, pkg.pkgid) for ref in entry.get("dependencies") or []]
            activated[pkg] = [str(name) for name in entry.get("activated") or []]
            declared[pkg] = [str(name) for name in entry.get("features") or []]

        if "root" not in data:
            raise GraphFormatError("Graph snapshot has no 'root' package")
        root = lookup(data["root"], "root")

        logging.info(f"Loaded graph snapshot with {len(by_pkgid)} packages, root {root.pkgid}")
        return cls(dependencies, activated=activated, declared=declared, root=root)

    @classmethod
    def from_yaml(cls, path: Path) -> "InMemoryGraphAccessor":
        """Load a graph snapshot from a YAML (or JSON) file."""
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise GraphFormatError(f"Could not read graph snapshot {path}: {e}") from e
        except yaml.YAMLError as e:
            raise GraphFormatError(f"Graph snapshot {path} is not valid YAML: {e}") from e
        return cls.from_dict(data)
