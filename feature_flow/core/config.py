import logging
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from feature_flow.core.cargo_metadata import DEFAULT_CARGO_TIMEOUT_SECONDS
from feature_flow.core.errors import ConfigurationError

# Default configuration values
DEFAULT_CONFIG_PATH = "featureflow.config.yaml"
DEFAULT_CARGO_PATH = "cargo"
DEFAULT_OUTPUT_FORMAT = "text"


class FeatureFlowConfig(BaseModel):
    """
    Central configuration model for feature analysis.
    """
    # Where the resolved graph comes from: graph_file > metadata_file > cargo
    manifest_path: Optional[str] = None
    metadata_file: Optional[str] = None
    graph_file: Optional[str] = None
    package: Optional[str] = None

    # Resolution options forwarded to cargo
    features: List[str] = Field(default_factory=list)
    all_features: bool = False
    no_default_features: bool = False
    no_dev_dependencies: bool = False
    locked: bool = False
    offline: bool = False
    cargo_path: str = DEFAULT_CARGO_PATH
    cargo_timeout_seconds: int = DEFAULT_CARGO_TIMEOUT_SECONDS

    # Presentation
    output_format: Literal["text", "json"] = DEFAULT_OUTPUT_FORMAT
    unique_enablers: bool = False

    class Config:
        extra = "allow"


def load_config(
    config_path: Optional[str] = None,
    cli_args: Optional[Dict[str, Any]] = None
) -> FeatureFlowConfig:
    """
    Load configuration from file and overrides.

    Priority:
    1. CLI Arguments (if provided and not None)
    2. Config File (if provided or found at default path)
    3. Default Values

    Args:
        config_path: Path to the YAML config file. If None, tries 'featureflow.config.yaml'.
        cli_args: Dictionary of CLI arguments to override config values.

    Returns:
        FeatureFlowConfig: The resolved configuration object.
    """
    config_data: Dict[str, Any] = {}

    target_path = config_path if config_path else DEFAULT_CONFIG_PATH
    path_obj = Path(target_path)

    if path_obj.exists() and path_obj.is_file():
        try:
            with open(path_obj, 'r', encoding='utf-8') as f:
                file_data = yaml.safe_load(f)
                if file_data:
                    config_data.update(file_data)
            logging.info(f"Loaded configuration from {target_path}")
        except (OSError, yaml.YAMLError) as e:
            logging.warning(f"Failed to load config file {target_path}: {e}")
    elif config_path:
        logging.warning(f"Config file not found at explicit path: {config_path}")
    else:
        logging.info(f"No config file found at {DEFAULT_CONFIG_PATH}, using defaults.")

    if cli_args:
        for key, value in cli_args.items():
            if value is not None:
                config_data[key] = value

    try:
        return FeatureFlowConfig(**config_data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
