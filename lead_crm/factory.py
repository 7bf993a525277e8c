"""Factory helpers for constructing readers and the lifecycle store from configuration."""
from __future__ import annotations

import importlib
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import ConfigurationError, iter_enabled_source_configs
from .lifecycle import JsonFileStorage, LeadLifecycleStore, MemoryStorage
from .models import ORIGINS
from .sources.base import SourceReader


def _load_class(path: str):
    module_name, _, attr = path.rpartition(".")
    if not module_name:
        raise ConfigurationError(f"Invalid source class path '{path}'")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigurationError(f"Unable to import module '{module_name}'") from exc
    try:
        return getattr(module, attr)
    except AttributeError as exc:
        raise ConfigurationError(f"Module '{module_name}' does not define '{attr}'") from exc


def _resolve_path(value: Any, base_dir: Optional[Path]) -> Any:
    if base_dir is None or not isinstance(value, str):
        return value
    candidate = Path(value)
    return str(candidate if candidate.is_absolute() else base_dir / candidate)


def build_sources(config: Dict[str, Any], base_dir: str | Path | None = None) -> Dict[str, List[SourceReader]]:
    """Instantiate the reader classes defined in the configuration file, grouped by origin."""

    base = Path(base_dir) if base_dir is not None else None
    sources: Dict[str, List[SourceReader]] = {origin: [] for origin in ORIGINS}
    for source_cfg in iter_enabled_source_configs(config):
        class_path = source_cfg.get("class")
        if not class_path:
            raise ConfigurationError("Source configuration missing required 'class' field")
        origin = source_cfg.get("origin")
        if origin not in ORIGINS:
            raise ConfigurationError(f"Source '{source_cfg.get('name')}' has unknown origin '{origin}'")

        options = dict(source_cfg.get("options", {}))
        if "path" in options:
            options["path"] = _resolve_path(options["path"], base)
        if source_cfg.get("name"):
            options.setdefault("name", source_cfg["name"])

        source_cls = _load_class(class_path)
        sources[origin].append(source_cls(origin=origin, **options))
    return sources


def build_store(config: Dict[str, Any], base_dir: str | Path | None = None) -> LeadLifecycleStore:
    store_cfg = config.get("store") or {}
    key_prefix = store_cfg.get("key_prefix", "lead_status:")
    path = store_cfg.get("path")
    if not path:
        return LeadLifecycleStore(MemoryStorage(), key_prefix=key_prefix)
    base = Path(base_dir) if base_dir is not None else None
    return LeadLifecycleStore(JsonFileStorage(_resolve_path(path, base)), key_prefix=key_prefix)


def allow_partial(config: Dict[str, Any]) -> bool:
    return bool((config.get("aggregation") or {}).get("allow_partial", False))
