"""
Orchestrates one feature analysis: pick a graph source, walk it, return the report.
"""

import logging
from pathlib import Path
from typing import Optional, Tuple

from feature_flow.core.cargo_metadata import CargoMetadataAccessor
from feature_flow.core.config import FeatureFlowConfig
from feature_flow.core.errors import ConfigurationError
from feature_flow.core.feature_graph_builder import FeatureGraphBuilder, TraversalStats
from feature_flow.core.graph_accessor import InMemoryGraphAccessor, ResolvedGraphAccessor
from feature_flow.core.models import PackageIdentity
from feature_flow.core.report import FeatureReport


class FeatureAnalyzer:
    """Main analyzer that wires configuration, graph source and aggregator together."""

    def __init__(self, config: FeatureFlowConfig):
        self.config = config
        self.last_stats: Optional[TraversalStats] = None

    def load_graph(self) -> Tuple[PackageIdentity, ResolvedGraphAccessor]:
        """
        Obtain the root package and an accessor for the configured graph source.

        A YAML graph snapshot wins over a saved metadata file, which wins over
        running cargo.
        """
        config = self.config
        if config.graph_file:
            logging.info(f"Using graph snapshot {config.graph_file}")
            accessor: ResolvedGraphAccessor = InMemoryGraphAccessor.from_yaml(Path(config.graph_file))
        elif config.metadata_file:
            logging.info(f"Using saved cargo metadata {config.metadata_file}")
            accessor = CargoMetadataAccessor.from_file(
                Path(config.metadata_file),
                package=config.package,
                no_dev_dependencies=config.no_dev_dependencies,
            )
        else:
            accessor = CargoMetadataAccessor.from_cargo(
                cargo_path=config.cargo_path,
                manifest_path=config.manifest_path,
                package=config.package,
                features=config.features,
                all_features=config.all_features,
                no_default_features=config.no_default_features,
                no_dev_dependencies=config.no_dev_dependencies,
                locked=config.locked,
                offline=config.offline,
                timeout=config.cargo_timeout_seconds,
            )

        if accessor.root is None:
            raise ConfigurationError("Graph source did not identify a root package")
        return accessor.root, accessor

    def analyze(self) -> FeatureReport:
        root, accessor = self.load_graph()
        builder = FeatureGraphBuilder(accessor)
        report = builder.build(root)
        self.last_stats = builder.last_stats
        return report
