import json
import os
from typing import Any, Dict


def load_squat_config(config_path: str = None) -> Dict[str, Any]:
    """Load squat config from JSON file."""
    if config_path is None:
        config_path = os.path.join(os.path.dirname(__file__), 'squat_config.json')
    with open(config_path, 'r') as f:
        return json.load(f)


def resolve_level_values(section: Dict[str, Any], user_level) -> Dict[str, Any]:
    """
    Flatten a config section whose values may be per-user-level dicts.

    A value such as {"beginner": 40, "advanced": 35} resolves to the entry for
    the given level, falling back to the first value listed.
    """
    level = user_level.name.lower() if hasattr(user_level, "name") else str(user_level).lower()
    result = {}
    for k, v in section.items():
        if isinstance(v, dict):
            if not v:
                raise ValueError(f"Empty per-level value for '{k}' in squat config")
            result[k] = v.get(level, next(iter(v.values())))
        else:
            result[k] = v
    return result


def get_metric_config(config: Dict[str, Any], metric_key: str, user_level) -> Dict[str, Any]:
    try:
        section = config["metrics"][metric_key]
    except KeyError as e:
        raise ValueError(f"No metric config for '{metric_key}' in squat config") from e
    return resolve_level_values(section, user_level)
