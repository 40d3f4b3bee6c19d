"""
YAML configuration with built-in defaults.

The file (default config/params.yaml, or env JIA_CONFIG) is merged over
DEFAULTS, so a partial file only needs the keys it changes. A missing file
means "all defaults".
"""
from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from common.types import PrevalenceRates
from towns.reference import MAP_CENTER, MAP_ZOOM


CONFIG_PATH_DEFAULT = "config/params.yaml"

DEFAULTS: Dict[str, Any] = {
    "prevalence": {"center_per_1000": 1.5, "low_per_1000": 1.0, "high_per_1000": 2.0},
    "storage": {"root": "data/storage", "key": "jia_markers_v1"},
    "report": {"filename": "jia_town_summary.csv", "decimals": 2},
    "display": {"decimals": 1},
    "map": {"center_lat": MAP_CENTER[0], "center_lon": MAP_CENTER[1], "zoom": MAP_ZOOM},
    "logging": {"level": "INFO"},
    "api": {"host": "0.0.0.0", "port": 8000},
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load the YAML config and merge it over DEFAULTS.

    Path precedence: explicit `path`, env JIA_CONFIG, config/params.yaml.
    Env JIA_STORAGE_ROOT overrides storage.root.
    Raises yaml.YAMLError for malformed YAML and ValueError if the document
    is not a mapping.
    """
    cfg_path = Path(path or os.environ.get("JIA_CONFIG") or CONFIG_PATH_DEFAULT)
    P = copy.deepcopy(DEFAULTS)
    if cfg_path.exists():
        with cfg_path.open("r", encoding="utf-8") as f:
            doc = yaml.safe_load(f)
        if doc is None:
            doc = {}
        if not isinstance(doc, dict):
            raise ValueError(f"config root must be a mapping: {cfg_path}")
        P = _deep_merge(P, doc)

    env_root = os.environ.get("JIA_STORAGE_ROOT")
    if env_root:
        P["storage"]["root"] = env_root
    return P


def rates_from_config(P: Dict[str, Any]) -> PrevalenceRates:
    """Build the prevalence band from the `prevalence` section (per 1000 children)."""
    prev = P.get("prevalence", {})
    d = DEFAULTS["prevalence"]
    return PrevalenceRates(
        center=float(prev.get("center_per_1000", d["center_per_1000"])),
        low=float(prev.get("low_per_1000", d["low_per_1000"])),
        high=float(prev.get("high_per_1000", d["high_per_1000"])),
    )
