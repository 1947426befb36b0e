"""
Pytest configuration and fixtures shared by the feature analysis tests.
"""

import textwrap
from pathlib import Path

import pytest

from feature_flow.core.graph_accessor import InMemoryGraphAccessor
from feature_flow.core.models import PackageIdentity

CRATES_IO = "registry+https://github.com/rust-lang/crates.io-index"

SCENARIO_GRAPH_YAML = textwrap.dedent(
    """
    root: app@0.1.0
    packages:
      - name: app
        version: "0.1.0"
        dependencies: [lib@1.0.0, tool@1.0.0]
      - name: lib
        version: "1.0.0"
        source: registry+https://github.com/rust-lang/crates.io-index
        dependencies: [serde@1.0.100]
      - name: tool
        version: "1.0.0"
        source: registry+https://github.com/rust-lang/crates.io-index
        dependencies: [serde@1.0.100]
      - name: serde
        version: "1.0.100"
        source: registry+https://github.com/rust-lang/crates.io-index
        features: [derive, std]
        activated: [derive]
    """
)


def pkg(name: str, version: str = "1.0.0", source: str = CRATES_IO) -> PackageIdentity:
    return PackageIdentity(name=name, version=version, source=source)


@pytest.fixture
def scenario_packages():
    return {
        "app": PackageIdentity(name="app", version="0.1.0"),
        "lib": pkg("lib"),
        "tool": pkg("tool"),
        "serde": pkg("serde", "1.0.100"),
    }


@pytest.fixture
def scenario_accessor(scenario_packages) -> InMemoryGraphAccessor:
    """app -> {lib, tool}; lib -> serde; tool -> serde; serde/derive on, serde/std off."""
    p = scenario_packages
    return InMemoryGraphAccessor(
        dependencies={
            p["app"]: [p["lib"], p["tool"]],
            p["lib"]: [p["serde"]],
            p["tool"]: [p["serde"]],
            p["serde"]: [],
        },
        activated={p["serde"]: ["derive"]},
        declared={p["serde"]: ["derive", "std"]},
        root=p["app"],
    )


@pytest.fixture
def scenario_graph_file(tmp_path: Path) -> Path:
    path = tmp_path / "graph.yaml"
    path.write_text(SCENARIO_GRAPH_YAML, encoding="utf-8")
    return path
