"""Feature report model and its text/JSON renderings."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from feature_flow.core.models import Feature, PackageIdentity

SEPARATOR = "-" * 19


@dataclass(frozen=True)
class FeatureReport:
    """
    Read-only result of one analysis run.

    ``enabled`` maps each activated feature to the names of the packages whose
    edges enabled it, in traversal order. ``disabled`` holds declared features
    nobody enabled. Both iterate in Feature order.
    """
    root: PackageIdentity
    enabled: Mapping[Feature, List[str]] = field(default_factory=dict)
    disabled: Tuple[Feature, ...] = ()

    def __post_init__(self):
        ordered = {feature: list(self.enabled[feature]) for feature in sorted(self.enabled)}
        object.__setattr__(self, "enabled", ordered)
        object.__setattr__(self, "disabled", tuple(sorted(set(self.disabled))))

    def enabled_features(self) -> Iterator[Tuple[Feature, List[str]]]:
        for feature, enablers in self.enabled.items():
            yield feature, list(enablers)

    def is_enabled(self, feature: Feature) -> bool:
        return feature in self.enabled

    def enablers(self, feature: Feature) -> List[str]:
        return list(self.enabled.get(feature, []))

    def for_package(self, name: str, feature: Optional[str] = None) -> FeatureReport:
        """Restrict the report to features owned by ``name`` (and optionally one feature name)."""
        def keep(f: Feature) -> bool:
            return f.owner.name == name and (feature is None or f.name == feature)

        return FeatureReport(
            root=self.root,
            enabled={f: enablers for f, enablers in self.enabled.items() if keep(f)},
            disabled=tuple(f for f in self.disabled if keep(f)),
        )

    def to_dict(self, unique_enablers: bool = False) -> Dict[str, Any]:
        return {
            "root": str(self.root),
            "enabled": [
                {**_serialize_feature(f), "enablers": _display_enablers(enablers, unique_enablers)}
                for f, enablers in self.enabled.items()
            ],
            "disabled": [_serialize_feature(f) for f in self.disabled],
            "summary": {
                "enabled": len(self.enabled),
                "disabled": len(self.disabled),
            },
        }


def _serialize_feature(feature: Feature) -> Dict[str, Any]:
    return {
        "feature": str(feature),
        "package": feature.owner.name,
        "version": feature.owner.version,
        "source": feature.owner.source,
        "name": feature.name,
    }


def _display_enablers(enablers: Iterable[str], unique: bool) -> List[str]:
    if not unique:
        return list(enablers)
    return list(dict.fromkeys(enablers))


@dataclass
class FeatureReportRenderer:
    """Formats a FeatureReport for people (text) or tools (JSON)."""
    unique_enablers: bool = False

    def render_text(self, report: FeatureReport) -> str:
        lines = ["Enabled Features", SEPARATOR]
        for feature, enablers in report.enabled_features():
            lines.append(f"{feature} {json.dumps(_display_enablers(enablers, self.unique_enablers))}")
        lines += ["", "Disabled Features", SEPARATOR]
        lines.extend(str(feature) for feature in report.disabled)
        return "\n".join(lines) + "\n"

    def render_json(self, report: FeatureReport) -> str:
        return json.dumps(report.to_dict(unique_enablers=self.unique_enablers), indent=2, ensure_ascii=False)

    def render(self, report: FeatureReport, output_format: str = "text") -> str:
        if output_format == "json":
            return self.render_json(report)
        if output_format == "text":
            return self.render_text(report)
        raise ValueError(f"Unsupported output format: {output_format}")
