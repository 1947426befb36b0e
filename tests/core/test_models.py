from feature_flow.core.models import Feature, PackageIdentity


def test_package_identity_equality_includes_source() -> None:
    registry = PackageIdentity("serde", "1.0.100", "registry+https://github.com/rust-lang/crates.io-index")
    git = PackageIdentity("serde", "1.0.100", "git+https://github.com/serde-rs/serde")

    assert registry != git
    assert registry == PackageIdentity("serde", "1.0.100", registry.source)
    assert len({registry, git}) == 2


def test_package_identity_renders_name_version() -> None:
    identity = PackageIdentity("serde", "1.0.100")

    assert str(identity) == "serde-1.0.100"
    assert identity.pkgid == "serde@1.0.100"


def test_feature_renders_external_contract() -> None:
    feature = Feature(PackageIdentity("serde", "1.0.100"), "derive")

    assert str(feature) == "serde-1.0.100/derive"


def test_features_order_by_owner_name_then_version_then_name() -> None:
    a1 = PackageIdentity("anyhow", "1.0.0")
    s1 = PackageIdentity("serde", "1.0.100")
    s2 = PackageIdentity("serde", "1.0.101")
    features = [
        Feature(s2, "alloc"),
        Feature(s1, "std"),
        Feature(a1, "std"),
        Feature(s1, "derive"),
    ]

    assert [str(f) for f in sorted(features)] == [
        "anyhow-1.0.0/std",
        "serde-1.0.100/derive",
        "serde-1.0.100/std",
        "serde-1.0.101/alloc",
    ]


def test_feature_is_usable_as_dict_key() -> None:
    owner = PackageIdentity("serde", "1.0.100", "registry+x")
    enabled = {Feature(owner, "derive"): ["lib"]}

    enabled.setdefault(Feature(PackageIdentity("serde", "1.0.100", "registry+x"), "derive"), []).append("tool")

    assert enabled == {Feature(owner, "derive"): ["lib", "tool"]}
