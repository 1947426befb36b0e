from mcp.server.fastmcp import FastMCP
import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator
from dataclasses import dataclass
from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any

from feature_flow.core.analyzer import FeatureAnalyzer
from feature_flow.core.config import FeatureFlowConfig
from feature_flow.core.errors import ConfigurationError, FeatureFlowError, GraphFormatError
from feature_flow.core.report import FeatureReport


class MCPError(Exception):
    """Custom MCP error with code and hint."""

    def __init__(self, code: int, message: str, hint: str = ""):
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = {"hint": hint} if hint else {}


class PingResponse(BaseModel):
    status: str
    echoed: str
    root: Optional[str] = None


class FeatureReportResponse(BaseModel):
    root: str
    enabled: List[Dict[str, Any]]
    disabled: List[Dict[str, Any]]
    summary: Dict[str, int]


# Global logger for MCP
logger = logging.getLogger("mcp")
logger.addHandler(logging.StreamHandler(sys.stderr))
logger.setLevel(logging.INFO)


@dataclass
class AppContext:
    analyzer: Optional[FeatureAnalyzer] = None


async def on_shutdown():
    logger.info("Server shutdown")


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[AppContext]:
    config = getattr(server, 'config', None)
    if config:
        server.analyzer = FeatureAnalyzer(FeatureFlowConfig(**config))
        logger.info("Server started")
    else:
        logger.warning("No config provided to server, feature tools are unavailable")

    try:
        yield AppContext(analyzer=getattr(server, 'analyzer', None))
    finally:
        await on_shutdown()

server = FastMCP("FeatureFlowMCP", lifespan=lifespan)


def _require_analyzer() -> FeatureAnalyzer:
    analyzer = getattr(server, 'analyzer', None)
    if not analyzer:
        raise MCPError(5001, "Analyzer unavailable", "Start the server with a configuration file")
    return analyzer


async def _run_analysis(analyzer: FeatureAnalyzer) -> FeatureReport:
    try:
        return await asyncio.to_thread(analyzer.analyze)
    except (ConfigurationError, GraphFormatError) as e:
        raise MCPError(4001, str(e), "Check manifest_path, package, metadata_file or graph_file in config") from e
    except FeatureFlowError as e:
        raise MCPError(5002, str(e), "Ensure `cargo metadata` succeeds for this workspace") from e


def _to_response(report: FeatureReport, unique_enablers: bool) -> FeatureReportResponse:
    return FeatureReportResponse(**report.to_dict(unique_enablers=unique_enablers))


@server.tool(name="ping")
async def ping_tool(message: str = Field(description="Message to echo")) -> PingResponse:
    """
    Echo a message and report the configured root graph source.
    """
    analyzer = getattr(server, 'analyzer', None)
    root = None
    if analyzer:
        config = analyzer.config
        root = config.graph_file or config.metadata_file or config.manifest_path or "."
    return PingResponse(status="ok", echoed=message, root=root)


@server.tool(name="feature_report")
async def feature_report(
    unique_enablers: bool = Field(default=False, description="Collapse repeated enabler names"),
) -> FeatureReportResponse:
    """
    Report every enabled dependency feature with the packages that enabled it,
    and every declared feature left disabled.
    """
    analyzer = _require_analyzer()
    report = await _run_analysis(analyzer)
    return _to_response(report, unique_enablers)


@server.tool(name="explain_feature")
async def explain_feature(
    package: str = Field(description="Dependency name, e.g. 'serde'"),
    feature: Optional[str] = Field(default=None, description="Optional feature name, e.g. 'derive'"),
    unique_enablers: bool = Field(default=False, description="Collapse repeated enabler names"),
) -> FeatureReportResponse:
    """
    Explain why features of one dependency are enabled (and by whom) or disabled.
    """
    analyzer = _require_analyzer()
    report = (await _run_analysis(analyzer)).for_package(package, feature)
    if not report.enabled and not report.disabled:
        target = f"{package}/{feature}" if feature else package
        raise MCPError(4001, f"No feature matching '{target}'", "Check the dependency name with feature_report")
    return _to_response(report, unique_enablers)
