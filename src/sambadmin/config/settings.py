import logging
import os
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel

logger = logging.getLogger(__name__)

CONFIG_SEARCH_PATHS = (
    "config.yaml",
    "~/.config/sambadmin/config.yaml",
    "/etc/sambadmin/config.yaml",
)

# Environment variable -> config field.
ENV_OVERRIDES = {
    "SAMBADMIN_HOME_DIR": "home_dir",
    "SAMBADMIN_SMB_CONF": "samba_config_path",
    "SAMBADMIN_USE_EXTRAUSERS": "use_extrausers",
    "SAMBADMIN_ACCOUNT_CACHE_TTL": "account_cache_ttl",
    "SAMBADMIN_QUEUE_SIZE": "queue_size",
    "SAMBADMIN_COMMAND_TIMEOUT": "command_timeout",
}


class Config(BaseModel):
    home_dir: str = "/home/samba"
    samba_config_path: str = "/etc/samba/smb.conf"
    use_extrausers: bool = True
    account_cache_ttl: float = 60.0
    queue_size: int = 100
    command_timeout: Optional[float] = None


def find_config_file(path: Optional[str] = None) -> Optional[str]:
    if path:
        return path
    for candidate in CONFIG_SEARCH_PATHS:
        expanded = os.path.expanduser(candidate)
        if os.path.exists(expanded):
            return expanded
    return None


def _flatten(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Accept both the flat layout and the nested ``samba:``/``queue:`` one."""
    values = {k: v for k, v in raw.items() if k in Config.model_fields}
    samba = raw.get("samba") or {}
    if "config_path" in samba:
        values["samba_config_path"] = samba["config_path"]
    if "use_extrausers" in samba:
        values["use_extrausers"] = samba["use_extrausers"]
    queue = raw.get("queue") or {}
    if "size" in queue:
        values["queue_size"] = queue["size"]
    return values


def load_config(path: Optional[str] = None) -> Config:
    """Build a :class:`Config` from a YAML file plus ``SAMBADMIN_*`` overrides.

    An explicit ``path`` must exist; otherwise the usual locations are
    searched and defaults are used when none is found.
    """
    values: Dict[str, Any] = {}
    config_path = find_config_file(path)
    if config_path:
        with open(config_path, "r") as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"Configuration file {config_path} must contain a mapping.")
        values.update(_flatten(raw))
        logger.debug(f"Loaded configuration from {config_path}")

    for env_name, field in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            values[field] = value

    return Config(**values)


def write_default_config(path: str) -> Config:
    """Write a default configuration file readable by its owner only."""
    config = Config()
    data = {
        "home_dir": config.home_dir,
        "samba": {
            "config_path": config.samba_config_path,
            "use_extrausers": config.use_extrausers,
        },
        "account_cache_ttl": config.account_cache_ttl,
        "queue": {"size": config.queue_size},
    }
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
    return config
