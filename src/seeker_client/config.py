from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from seeker_client.formatter import EventFormatter
from seeker_client.models import TargetConfig
from seeker_client.settings import get_settings


def load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config not found: {p}")
    with p.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError("YAML root must be a mapping/dict")
    return data


def load_target_config(path: Optional[Union[str, Path]] = None) -> TargetConfig:
    """
    Load a TargetConfig from a YAML file, or from SEEKER_* settings when no
    path is given. The YAML may hold the target at the root or under ``seeker``.

    Property templates are compiled here so syntax errors surface at startup.
    """
    if path is None:
        cfg = get_settings().target_config()
    else:
        data = load_yaml(path)
        section = data.get("seeker", data)
        if not isinstance(section, dict):
            raise ValueError("'seeker' section must be a mapping/dict")
        cfg = TargetConfig.model_validate(section)

    EventFormatter(cfg.properties)
    return cfg
