"""
Builds the feature attribution report for a resolved dependency graph.

Edge expansion happens once per distinct package, but attribution happens once
per observed edge, so a shared dependency keeps every parent that enabled it.
Disabled features are computed only after the whole graph has been walked.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, List, Set

from feature_flow.core.errors import FeatureFlowError
from feature_flow.core.graph_accessor import ResolvedGraphAccessor
from feature_flow.core.models import Feature, PackageIdentity
from feature_flow.core.report import FeatureReport


@dataclass
class TraversalStats:
    """Counters describing one traversal."""
    packages_expanded: int = 0
    edges_observed: int = 0
    dependency_targets: int = 0


@dataclass
class FeatureGraphBuilder:
    """Aggregates enabled and disabled features over a resolved graph."""
    accessor: ResolvedGraphAccessor
    last_stats: TraversalStats = field(default_factory=TraversalStats)

    def build(self, root: PackageIdentity) -> FeatureReport:
        """
        Walk the graph from ``root`` and attribute every activated feature.

        Args:
            root: Package whose outgoing edges start the traversal. The root
                  itself never appears in the report.

        Returns:
            FeatureReport: enabled features with their enablers, plus the
            declared features nobody enabled.

        Raises:
            UnknownPackage: the accessor does not know a queried package.
            AccessorFailure: the accessor's underlying source failed.
        """
        logging.info(f"Building feature graph from root {root.pkgid}...")
        stats = TraversalStats()
        enabled: Dict[Feature, List[str]] = {}
        targets: Set[PackageIdentity] = set()

        try:
            self._walk(root, enabled, targets, stats)
            disabled = self._collect_disabled(enabled, targets)
        except FeatureFlowError as e:
            logging.error(f"Feature analysis aborted: {e}")
            raise

        stats.dependency_targets = len(targets)
        self.last_stats = stats
        logging.info(
            f"   Expanded {stats.packages_expanded} packages over {stats.edges_observed} edges "
            f"({stats.dependency_targets} dependency targets); "
            f"{len(enabled)} enabled, {len(disabled)} disabled features"
        )
        return FeatureReport(root=root, enabled=enabled, disabled=disabled)

    def _walk(
        self,
        root: PackageIdentity,
        enabled: Dict[Feature, List[str]],
        targets: Set[PackageIdentity],
        stats: TraversalStats,
    ) -> None:
        pending = deque([root])
        seen: Set[PackageIdentity] = {root}

        while pending:
            package = pending.popleft()
            stats.packages_expanded += 1
            for dep in self.accessor.dependencies_of(package):
                stats.edges_observed += 1
                if dep == root:
                    # Dev-dependency cycles can lead back to the root, which is never reported.
                    continue
                targets.add(dep)
                if dep not in seen:
                    seen.add(dep)
                    pending.append(dep)
                self._attribute_edge(package, dep, enabled)

    def _attribute_edge(self, parent: PackageIdentity, dep: PackageIdentity, enabled: Dict[Feature, List[str]]) -> None:
        activated = self.accessor.activated_features(dep)
        logging.debug(f"     {parent.pkgid} -> {dep.pkgid}: {sorted(activated)}")
        for feature_name in sorted(activated):
            enabled.setdefault(Feature(owner=dep, name=feature_name), []).append(parent.name)

    def _collect_disabled(self, enabled: Dict[Feature, List[str]], targets: Set[PackageIdentity]) -> Set[Feature]:
        disabled: Set[Feature] = set()
        for dep in targets:
            for feature_name in self.accessor.declared_features(dep):
                feature = Feature(owner=dep, name=feature_name)
                if feature not in enabled:
                    disabled.add(feature)
        return disabled
