"""Configuration management for lorecache."""

import copy
import os
from pathlib import Path
from typing import Any

import yaml


DEFAULT_CONFIG = {
    "backend_url": "http://localhost:3001",
    "graphql_url": "https://rickandmortyapi.com/graphql",
    "generator": "backend",
    "claude_model": "claude-sonnet-4-20250514",
    "storage_backend": "json",
    "storage_path": "~/.lorecache/store.json",
    "request_timeout": 60.0,
    "search": {"debounce_seconds": 0.3, "limit": 10},
}


def _find_config_file() -> Path | None:
    """Look for a config file in standard locations."""
    candidates = [
        Path.cwd() / "config" / "config.yaml",
        Path.cwd() / "lorecache.yaml",
        Path.home() / ".lorecache" / "config.yaml",
    ]
    for p in candidates:
        if p.exists():
            return p
    return None


def load_config(config_path: str | Path | None = None) -> dict[str, Any]:
    """Load configuration, merging defaults with file and env vars."""
    cfg = copy.deepcopy(DEFAULT_CONFIG)

    path = Path(config_path) if config_path else _find_config_file()
    if path and path.exists():
        with open(path) as f:
            file_cfg = yaml.safe_load(f) or {}
        _deep_merge(cfg, file_cfg)

    # Env overrides
    if backend_url := os.environ.get("LORECACHE_BACKEND_URL"):
        cfg["backend_url"] = backend_url
    if storage_path := os.environ.get("LORECACHE_STORAGE_PATH"):
        cfg["storage_path"] = storage_path
    if api_key := os.environ.get("ANTHROPIC_API_KEY"):
        cfg["claude_api_key"] = api_key

    cfg["backend_url"] = cfg["backend_url"].rstrip("/")
    cfg["storage_path"] = str(Path(cfg["storage_path"]).expanduser().resolve())

    return cfg


def _deep_merge(base: dict, override: dict) -> None:
    """Merge override into base in-place."""
    for k, v in override.items():
        if k in base and isinstance(base[k], dict) and isinstance(v, dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
