"""
Command line entry point for feature attribution reports.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from feature_flow.core.analyzer import FeatureAnalyzer
from feature_flow.core.cargo_metadata import split_features
from feature_flow.core.config import FeatureFlowConfig, load_config
from feature_flow.core.errors import FeatureFlowError
from feature_flow.core.report import FeatureReport, FeatureReportRenderer


def parse_feature_spec(spec: str) -> Tuple[str, Optional[str]]:
    """Split ``name`` or ``name/feature`` into its parts."""
    name, sep, feature = spec.partition("/")
    if not name or (sep and not feature):
        raise argparse.ArgumentTypeError(f"Invalid feature spec '{spec}', expected NAME or NAME/FEATURE")
    return name, feature or None


def _add_directory_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "directory",
        nargs='?',
        default=None,
        help="Directory containing Cargo.toml. If not provided, uses 'manifest_path' from config or lets cargo search from the current directory.",
    )


def _add_common_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help="Path to configuration YAML file (default: featureflow.config.yaml)")
    parser.add_argument("--package", "-p", help="Workspace member to analyze (required for virtual workspaces)")
    parser.add_argument("--features", action="append", default=None, metavar="FEATURES",
                        help="Space or comma separated list of features to activate (repeatable)")
    parser.add_argument("--all-features", action="store_true", default=None,
                        help="Activate all available features")
    parser.add_argument("--no-default-features", action="store_true", default=None,
                        help="Do not activate the `default` feature")
    parser.add_argument("--no-dev-dependencies", action="store_true", default=None,
                        help="Skip dev dependencies")
    parser.add_argument("--locked", action="store_true", default=None,
                        help="Require Cargo.lock to be up to date")
    parser.add_argument("--offline", action="store_true", default=None,
                        help="Run cargo without accessing the network")
    parser.add_argument("--metadata-file",
                        help="Read a saved `cargo metadata --format-version 1` JSON document instead of running cargo")
    parser.add_argument("--graph-file",
                        help="Read a YAML graph snapshot instead of running cargo")
    parser.add_argument("--format", dest="output_format", choices=["text", "json"], default=None,
                        help="Output format (default: text)")
    parser.add_argument("--unique-enablers", action="store_true", default=None,
                        help="Collapse repeated enabler names in the output")
    parser.add_argument("--output", help="Write the report to a file instead of stdout")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log traversal progress to stderr")


def _resolve_config(args: argparse.Namespace) -> FeatureFlowConfig:
    cli_overrides: Dict[str, Any] = {}
    if getattr(args, "directory", None):
        cli_overrides['manifest_path'] = str(Path(args.directory).resolve() / "Cargo.toml")
    if getattr(args, "features", None):
        cli_overrides['features'] = split_features(args.features)
    for key in (
        "package",
        "all_features",
        "no_default_features",
        "no_dev_dependencies",
        "locked",
        "offline",
        "metadata_file",
        "graph_file",
        "output_format",
        "unique_enablers",
    ):
        cli_overrides[key] = getattr(args, key, None)

    return load_config(config_path=getattr(args, "config", None), cli_args=cli_overrides)


def _emit(text: str, output: Optional[str]) -> None:
    if output:
        Path(output).write_text(text, encoding="utf-8")
        print(f"📄 Report exported to {output}", file=sys.stderr)
    else:
        sys.stdout.write(text if text.endswith("\n") else text + "\n")


def _render(report: FeatureReport, config: FeatureFlowConfig) -> str:
    renderer = FeatureReportRenderer(unique_enablers=config.unique_enablers)
    return renderer.render(report, output_format=config.output_format)


def _analyze(config: FeatureFlowConfig, verbose: bool) -> FeatureReport:
    analyzer = FeatureAnalyzer(config)
    report = analyzer.analyze()
    if verbose and analyzer.last_stats:
        stats = analyzer.last_stats
        print(
            f"📊 {stats.packages_expanded} packages expanded, {stats.edges_observed} edges observed, "
            f"{stats.dependency_targets} dependency targets",
            file=sys.stderr,
        )
    return report


def _run_report(args: argparse.Namespace) -> int:
    config = _resolve_config(args)
    report = _analyze(config, args.verbose)
    _emit(_render(report, config), args.output)
    return 0


def _run_explain(args: argparse.Namespace) -> int:
    name, feature = args.spec
    config = _resolve_config(args)
    report = _analyze(config, args.verbose).for_package(name, feature)
    if not report.enabled and not report.disabled:
        target = f"{name}/{feature}" if feature else name
        print(f"❌ Error: no feature matching '{target}' in the dependency graph of {report.root}", file=sys.stderr)
        return 1
    _emit(_render(report, config), args.output)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="FeatureFlow CLI: report which dependency features are enabled, and by whom."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    report = subparsers.add_parser("report", help="Report enabled and disabled features of every dependency")
    _add_directory_arg(report)
    _add_common_flags(report)
    report.set_defaults(func=_run_report)

    explain = subparsers.add_parser("explain", help="Show why features of one dependency are on or off")
    explain.add_argument("spec", type=parse_feature_spec, help="Dependency name, or NAME/FEATURE")
    _add_directory_arg(explain)
    _add_common_flags(explain)
    explain.set_defaults(func=_run_explain)

    return parser


def main(argv=None):
    """Main entry point for the feature reporter."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        stream=sys.stderr,
        format="%(levelname)s %(message)s",
    )

    try:
        exit_code = args.func(args)
        sys.exit(exit_code)
    except FeatureFlowError as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"\n❌ An unexpected error occurred: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc(file=sys.stderr)
        sys.exit(1)

if __name__ == "__main__":
    main()
