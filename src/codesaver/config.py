"""
Configuration and storage locations for code-saver
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from .transport import default_host_command

logger = logging.getLogger(__name__)

HOME_ENV = "CODE_SAVER_HOME"


def base_dir() -> Path:
    """Directory holding config, destinations, history and logs"""
    override = os.environ.get(HOME_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".code-saver"


def config_path(base: Optional[Path] = None) -> Path:
    return (base or base_dir()) / "config.json"


def destinations_path(base: Optional[Path] = None) -> Path:
    return (base or base_dir()) / "destinations.json5"


def history_path(base: Optional[Path] = None) -> Path:
    return (base or base_dir()) / "history.json5"


def log_dir(base: Optional[Path] = None) -> Path:
    return (base or base_dir()) / "logs"


def load_config(base: Optional[Path] = None) -> Dict[str, Any]:
    """Load configuration with smart defaults"""
    path = config_path(base)
    config: Dict[str, Any] = {}
    if path.exists():
        try:
            config = json.loads(path.read_text())
        except Exception as e:
            logger.warning(f"Ignoring unreadable config {path}: {e}")
            config = {}
        if not isinstance(config, dict):
            config = {}

    # Apply defaults
    config.setdefault("log_level", "INFO")
    config.setdefault("context_limit", 2000)
    config.setdefault("host_command", default_host_command())
    config.setdefault("host_timeout", 10)

    return config
