"""
Resolved graph accessor backed by ``cargo metadata``.

Cargo performs the resolution (including feature unification and source
replacement); this module only reads its ``--format-version 1`` document.
"""

import json
import logging
import re
import subprocess
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set

from feature_flow.core.errors import AccessorFailure, ConfigurationError, GraphFormatError, UnknownPackage
from feature_flow.core.graph_accessor import ResolvedGraphAccessor
from feature_flow.core.models import PackageIdentity

DEFAULT_CARGO_TIMEOUT_SECONDS = 120


def split_features(values: Optional[Iterable[str]]) -> List[str]:
    """Split ``--features`` values on whitespace and commas, the way cargo does."""
    features: List[str] = []
    for value in values or []:
        features.extend(part for part in re.split(r"[\s,]+", value) if part)
    return features


def build_metadata_command(
    cargo_path: str = "cargo",
    manifest_path: Optional[str] = None,
    features: Optional[Iterable[str]] = None,
    all_features: bool = False,
    no_default_features: bool = False,
    locked: bool = False,
    offline: bool = False,
) -> List[str]:
    cmd = [cargo_path, "metadata", "--format-version", "1"]
    if manifest_path:
        cmd += ["--manifest-path", str(manifest_path)]
    feature_list = split_features(features)
    if feature_list:
        cmd += ["--features", ",".join(feature_list)]
    if all_features:
        cmd.append("--all-features")
    if no_default_features:
        cmd.append("--no-default-features")
    if locked:
        cmd.append("--locked")
    if offline:
        cmd.append("--offline")
    return cmd


def run_cargo_metadata(cmd: List[str], timeout: int = DEFAULT_CARGO_TIMEOUT_SECONDS) -> Dict[str, Any]:
    """Run cargo and return the parsed metadata document."""
    logging.info(f"Running: {' '.join(cmd)}")
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout, check=False)
    except FileNotFoundError as e:
        raise AccessorFailure(f"cargo executable not found: {cmd[0]}") from e
    except subprocess.TimeoutExpired as e:
        raise AccessorFailure(f"cargo metadata timed out after {timeout}s") from e

    if result.returncode != 0:
        stderr = (result.stderr or "").strip()
        raise AccessorFailure(f"cargo metadata failed with exit code {result.returncode}: {stderr}")

    try:
        return json.loads(result.stdout)
    except json.JSONDecodeError as e:
        raise AccessorFailure(f"cargo metadata produced invalid JSON: {e}") from e


def _declared_feature_names(package: Dict[str, Any]) -> Set[str]:
    features: Dict[str, List[str]] = package.get("features") or {}
    declared = set(features)
    # Optional dependencies get an implicit feature unless some feature names them via "dep:".
    explicit_deps = {
        value[len("dep:"):]
        for values in features.values()
        for value in values
        if value.startswith("dep:")
    }
    for dep in package.get("dependencies") or []:
        if not dep.get("optional"):
            continue
        dep_name = dep.get("rename") or dep.get("name")
        if dep_name and dep_name not in explicit_deps:
            declared.add(dep_name)
    return declared


def _is_dev_only(dep: Dict[str, Any]) -> bool:
    kinds = dep.get("dep_kinds")
    if not kinds:
        return False
    return all(kind.get("kind") == "dev" for kind in kinds)


class CargoMetadataAccessor(ResolvedGraphAccessor):
    """Accessor over one ``cargo metadata`` resolution."""

    def __init__(
        self,
        metadata: Dict[str, Any],
        package: Optional[str] = None,
        no_dev_dependencies: bool = False,
    ):
        """
        Index a metadata document.

        Args:
            metadata: Parsed ``cargo metadata --format-version 1`` output.
            package: Workspace member to use as root. Defaults to ``resolve.root``.
            no_dev_dependencies: Drop edges that exist only as dev-dependencies.
        """
        if not isinstance(metadata, dict):
            raise GraphFormatError("cargo metadata document must be a JSON object")
        resolve = metadata.get("resolve")
        if not resolve:
            raise AccessorFailure("cargo metadata document has no 'resolve' section (was it run with --no-deps?)")

        self.no_dev_dependencies = no_dev_dependencies
        self._ids: Dict[str, PackageIdentity] = {}
        self._declared: Dict[PackageIdentity, Set[str]] = {}
        for pkg in metadata.get("packages") or []:
            try:
                identity = PackageIdentity(name=pkg["name"], version=pkg["version"], source=pkg.get("source"))
                self._ids[pkg["id"]] = identity
            except KeyError as e:
                raise GraphFormatError(f"cargo metadata package entry is missing {e}") from e
            self._declared[identity] = _declared_feature_names(pkg)

        self._dependencies: Dict[PackageIdentity, List[PackageIdentity]] = {}
        self._activated: Dict[PackageIdentity, Set[str]] = {}
        for node in resolve.get("nodes") or []:
            identity = self._identity(node.get("id"))
            deps: List[PackageIdentity] = []
            for dep in node.get("deps") or []:
                if no_dev_dependencies and _is_dev_only(dep):
                    continue
                deps.append(self._identity(dep.get("pkg")))
            self._dependencies[identity] = deps
            self._activated[identity] = set(node.get("features") or [])

        self.root = self._select_root(metadata, resolve, package)
        logging.info(
            f"Indexed cargo metadata: {len(self._dependencies)} resolved packages, root {self.root.pkgid}"
        )

    def _identity(self, package_id: Optional[str]) -> PackageIdentity:
        if package_id not in self._ids:
            raise GraphFormatError(f"cargo metadata references unknown package id {package_id!r}")
        return self._ids[package_id]

    def _select_root(self, metadata: Dict[str, Any], resolve: Dict[str, Any], package: Optional[str]) -> PackageIdentity:
        if package:
            members = [self._identity(pid) for pid in metadata.get("workspace_members") or []]
            matches = [m for m in members if m.name == package]
            if not matches:
                names = ", ".join(sorted(m.name for m in members)) or "none"
                raise ConfigurationError(f"Package '{package}' is not a workspace member (members: {names})")
            return matches[0]
        if resolve.get("root"):
            return self._identity(resolve["root"])
        raise ConfigurationError("Virtual workspace has no root package; select one with --package")

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
        return set(self._declared.get(package, ()))

    @classmethod
    def from_file(cls, path: Path, package: Optional[str] = None, no_dev_dependencies: bool = False) -> "CargoMetadataAccessor":
        """Load a saved ``cargo metadata`` JSON document."""
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                metadata = json.load(f)
        except OSError as e:
            raise AccessorFailure(f"Could not read cargo metadata file {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise GraphFormatError(f"cargo metadata file {path} is not valid JSON: {e}") from e
        return cls(metadata, package=package, no_dev_dependencies=no_dev_dependencies)

    @classmethod
    def from_cargo(
        cls,
        cargo_path: str = "cargo",
        manifest_path: Optional[str] = None,
        package: Optional[str] = None,
        features: Optional[Iterable[str]] = None,
        all_features: bool = False,
        no_default_features: bool = False,
        no_dev_dependencies: bool = False,
        locked: bool = False,
        offline: bool = False,
        timeout: int = DEFAULT_CARGO_TIMEOUT_SECONDS,
    ) -> "CargoMetadataAccessor":
        """Resolve the workspace with cargo and index the result."""
        cmd = build_metadata_command(
            cargo_path=cargo_path,
            manifest_path=manifest_path,
            features=features,
            all_features=all_features,
            no_default_features=no_default_features,
            locked=locked,
            offline=offline,
        )
        metadata = run_cargo_metadata(cmd, timeout=timeout)
        return cls(metadata, package=package, no_dev_dependencies=no_dev_dependencies)
