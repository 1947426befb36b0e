import argparse
import logging
import sys
import asyncio
from feature_flow.mcp_server.server import server
from feature_flow.core.config import load_config

def main():
    parser = argparse.ArgumentParser(
        description="FeatureFlow MCP Server - Dependency feature attribution reports",
        epilog="Example: python -m feature_flow.mcp_server --config custom.yaml"
    )
    parser.add_argument(
        "--config",
        help="Path to configuration YAML file (default: featureflow.config.yaml)"
    )
    parser.add_argument("--manifest-path", help="Path to Cargo.toml (overrides config)")
    parser.add_argument("--package", help="Workspace member to analyze (overrides config)")

    args = parser.parse_args()

    cli_args = {k: v for k, v in vars(args).items() if v is not None and k != "config"}
    config = load_config(config_path=args.config, cli_args=cli_args)

    logging.basicConfig(level=logging.INFO, stream=sys.stderr)

    server.config = config.model_dump()

    logging.info(f"Server starting with config: {server.config}")
    logging.info("Server running on stdio")
    try:
        asyncio.run(server.run_stdio_async())
    except KeyboardInterrupt:
        logging.info("Server stopped")

if __name__ == "__main__":
    main()
