import pytest

from feature_flow.core.errors import GraphFormatError, UnknownPackage
from feature_flow.core.graph_accessor import InMemoryGraphAccessor
from feature_flow.core.models import PackageIdentity


def test_from_yaml_loads_scenario(scenario_graph_file, scenario_packages) -> None:
    accessor = InMemoryGraphAccessor.from_yaml(scenario_graph_file)

    assert accessor.root == scenario_packages["app"]
    assert accessor.dependencies_of(scenario_packages["app"]) == [scenario_packages["lib"], scenario_packages["tool"]]
    assert accessor.activated_features(scenario_packages["serde"]) == {"derive"}
    assert accessor.declared_features(scenario_packages["serde"]) == {"derive", "std"}


def test_unknown_package_raises() -> None:
    root = PackageIdentity("root", "1.0.0")
    accessor = InMemoryGraphAccessor(dependencies={root: []})

    with pytest.raises(UnknownPackage):
        accessor.activated_features(PackageIdentity("root", "2.0.0"))


def test_dangling_dependency_rejected() -> None:
    root = PackageIdentity("root", "1.0.0")

    with pytest.raises(GraphFormatError):
        InMemoryGraphAccessor(dependencies={root: [PackageIdentity("missing", "1.0.0")]})


@pytest.mark.parametrize(
    "data, message",
    [
        ({"packages": [{"name": "a", "version": "1"}]}, "root"),
        ({"root": "a@1", "packages": []}, "at least one package"),
        ({"root": "a@1", "packages": [{"name": "a", "version": "1"}, {"name": "a", "version": "1"}]}, "Duplicate"),
        ({"root": "a@1", "packages": [{"name": "a", "version": "1", "dependencies": ["b@1"]}]}, "b@1"),
        ({"root": "a@1", "packages": [{"name": "a"}]}, "version"),
    ],
)
def test_malformed_snapshots_raise_graph_format_error(data, message) -> None:
    with pytest.raises(GraphFormatError) as exc_info:
        InMemoryGraphAccessor.from_dict(data)

    assert message in str(exc_info.value)


def test_invalid_yaml_file(tmp_path) -> None:
    path = tmp_path / "graph.yaml"
    path.write_text("root: [unclosed", encoding="utf-8")

    with pytest.raises(GraphFormatError):
        InMemoryGraphAccessor.from_yaml(path)
