"""Configuration loading and merging for the statuspages command line."""

from dataclasses import asdict, dataclass, fields
from pathlib import Path

import yaml


@dataclass
class StatusPagesConfig:
    # Listener
    host: str = "127.0.0.1"
    port: int = 0  # OS-assigned

    # Serve the status pages on "/" as well as "/status"
    bind_root_path: bool = False

    # Mount the /pprof/ introspection endpoints
    diagnostics: bool = True

    log_level: str = "INFO"


def load_config(path: str | Path) -> StatusPagesConfig:
    """Load a StatusPagesConfig from a YAML file. Unknown keys are ignored."""
    path = Path(path)
    with open(path) as f:
        data = yaml.safe_load(f) or {}

    valid_fields = {f.name for f in fields(StatusPagesConfig)}
    filtered = {k: v for k, v in data.items() if k in valid_fields}
    return StatusPagesConfig(**filtered)


def merge_cli_args(config: StatusPagesConfig, args) -> StatusPagesConfig:
    """Overlay CLI arguments onto an existing config. CLI values take precedence."""
    for f in fields(StatusPagesConfig):
        cli_val = getattr(args, f.name, None)
        if cli_val is not None:
            setattr(config, f.name, cli_val)
    return config


def config_to_yaml(config: StatusPagesConfig) -> str:
    return yaml.dump(asdict(config), default_flow_style=False, sort_keys=False)
