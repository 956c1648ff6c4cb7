from __future__ import annotations
from copy import deepcopy
from pathlib import Path
import yaml

DEFAULT_RULES_PATH = Path("presets/rules.yaml")

DEFAULT_RULES = {
    "analyze": {
        "output": "analysis.json",
        "include": ["**/*.js", "**/*.mjs", "**/*.cjs"],
        "exclude": [".git/**", "**/node_modules/**", "**/dist/**", "**/build/**"],
        "max_bytes": 2_000_000,
        "workers": 4,
    },
    "optimize": {
        "output": "output.js",
        "max_iterations": 5,
    },
}


def _merge(base: dict, override: dict) -> dict:
    out = deepcopy(base)
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge(out[k], v)
        else:
            out[k] = v
    return out


def load_rules(rules_path: Path | None) -> dict:
    p = rules_path or DEFAULT_RULES_PATH
    if not p.exists():
        return deepcopy(DEFAULT_RULES)
    try:
        loaded = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError):
        return deepcopy(DEFAULT_RULES)
    if not isinstance(loaded, dict):
        return deepcopy(DEFAULT_RULES)
    return _merge(DEFAULT_RULES, loaded)

