"""Exception hierarchy for feature analysis."""

from typing import Optional

from feature_flow.core.models import PackageIdentity


class FeatureFlowError(Exception):
    """Base class for every failure that aborts an analysis run."""


class UnknownPackage(FeatureFlowError):
    """The graph accessor was asked about a package outside the resolved set."""

    def __init__(self, package: PackageIdentity):
        super().__init__(f"Package {package.pkgid} ({package.source or 'local'}) is not part of the resolved graph")
        self.package = package


class AccessorFailure(FeatureFlowError):
    """The underlying resolver or metadata source failed."""

    def __init__(self, message: str, package: Optional[PackageIdentity] = None):
        if package is not None:
            message = f"{message} (while querying {package.pkgid})"
        super().__init__(message)
        self.package = package


class GraphFormatError(FeatureFlowError):
    """A graph snapshot or metadata document could not be interpreted."""


class ConfigurationError(FeatureFlowError):
    """The configured options do not identify a graph to analyze."""
