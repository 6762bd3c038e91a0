# infrastructure/config/settings.py
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import dotenv_values

_PROJECT_ROOT = Path(__file__).parent.parent.parent
_env_path = _PROJECT_ROOT / ".env"


@dataclass(frozen=True)
class NavigatorSettings:
    flows_dir: Path = _PROJECT_ROOT / "flows"
    log_level: str = "INFO"
    api_host: str = "0.0.0.0"
    api_port: int = 8000


def load_settings(env: Optional[Mapping[str, Optional[str]]] = None) -> NavigatorSettings:
    """
    Build settings from the environment.

    .env values are read first and real environment variables override them.
    Pass ``env`` to bypass both (tests).
    """
    if env is None:
        merged = dict(dotenv_values(_env_path)) if _env_path.exists() else {}
        merged.update(os.environ)
        env = merged

    defaults = NavigatorSettings()
    flows_dir = env.get("STEPNAV_FLOWS_DIR")
    port = env.get("STEPNAV_API_PORT")

    return NavigatorSettings(
        flows_dir=Path(flows_dir) if flows_dir else defaults.flows_dir,
        log_level=env.get("STEPNAV_LOG_LEVEL") or defaults.log_level,
        api_host=env.get("STEPNAV_API_HOST") or defaults.api_host,
        api_port=int(port) if port else defaults.api_port,
    )
