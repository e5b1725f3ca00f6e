from __future__ import annotations

import copy
import math
from pathlib import Path
from typing import Any, Dict, Mapping, Tuple

import yaml

from common.errors import ConfigurationError


DEFAULTS: Dict[str, Any] = {
    "tiles": {
        "info_url": "",
        "tile_matrix_set": "WebMercatorQuad",
        "values": "",
    },
    "view": {
        "center": "0,0",
        "zoom": 0,
        "size": "800x600",
    },
    "http": {"timeout": 10.0},
    "logging": {"level": "INFO"},
    "output": {"path": "map.png"},
}


def _merge(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    for k, v in override.items():
        if isinstance(v, Mapping) and isinstance(base.get(k), dict):
            _merge(base[k], v)
        else:
            base[k] = v
    return base


def load_config(path: str = "config/params.yaml") -> Dict[str, Any]:
    """YAML config merged over DEFAULTS. A missing file yields the defaults."""
    cfg = copy.deepcopy(DEFAULTS)
    p = Path(path)
    if not p.exists():
        return cfg
    try:
        with p.open("r") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"{path}: invalid YAML: {e}") from e
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"{path}: top level must be a mapping")
    return _merge(cfg, data)


def parse_values(s: Any) -> Dict[str, str]:
    """
    'style=dark&lang=en' -> {'style': 'dark', 'lang': 'en'}.
    Empty segments are skipped, a bare key maps to '', later keys win.
    A mapping (as written in YAML) is passed through with str() values.
    """
    if not s:
        return {}
    if isinstance(s, Mapping):
        return {str(k): str(v) for k, v in s.items()}
    out: Dict[str, str] = {}
    for part in str(s).split("&"):
        if not part:
            continue
        key, _, value = part.partition("=")
        out[key] = value
    return out


def parse_center(s: Any) -> Tuple[float, float]:
    """'x,y' (or a two-item list) -> (x, y) in map units."""
    parts = s if isinstance(s, (list, tuple)) else str(s).split(",")
    if len(parts) != 2:
        raise ConfigurationError(f"center must be 'x,y', got {s!r}")
    try:
        x, y = float(parts[0]), float(parts[1])
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"center must be numeric, got {s!r}") from e
    if not (math.isfinite(x) and math.isfinite(y)):
        raise ConfigurationError(f"center must be finite, got {s!r}")
    return (x, y)


def parse_zoom(s: Any) -> int:
    try:
        return int(s)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"zoom must be an integer, got {s!r}") from e


def parse_size(s: Any) -> Tuple[int, int]:
    """'WxH' or 'W,H' -> (W, H) in pixels."""
    parts = str(s).lower().replace(",", "x").split("x")
    if len(parts) != 2:
        raise ConfigurationError("Size must be WxH or W,H")
    try:
        w, h = int(parts[0]), int(parts[1])
    except ValueError as e:
        raise ConfigurationError(f"size must be integers, got {s!r}") from e
    if w <= 0 or h <= 0:
        raise ConfigurationError(f"size must be positive, got {s!r}")
    return (w, h)
