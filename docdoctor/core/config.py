"""Configuration for doc-doctor."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)


CONFIG_FILENAME = ".doc-doctor.yaml"
_DEFAULT_DB_PATH = ".doc-doctor/problems.db"

# Whitelist kind (CLI/API name) → config key
WHITELIST_KEYS = {
    "file": "file_whitelist",
    "function": "function_whitelist",
    "return": "return_type_whitelist",
}

# Key for function whitelist entries that apply to every file
GLOBAL_FUNCTION_KEY = "*"


@dataclass(frozen=True)
class WhitelistConfig:
    """Snapshot of the exemption rules for one check run."""

    check_main_function: bool = False
    file_whitelist: tuple = ()
    function_whitelist: Dict[str, frozenset] = field(default_factory=dict)
    return_type_whitelist: frozenset = frozenset()
    workspace_root: Optional[str] = None


@dataclass
class Config:
    # Storage
    db_path: str = _DEFAULT_DB_PATH

    # Run limits
    max_files: int = 1000
    max_file_size: int = 1024 * 1024
    max_problems: int = 1000
    snippet_chars: int = 200

    # Syntax diagnostics, e.g. "gcc -fsyntax-only"; None disables them
    diagnostics_command: Optional[str] = None

    # Whitelists
    check_main_function: bool = False
    file_whitelist: List[str] = field(default_factory=list)
    function_whitelist: Dict[str, List[str]] = field(default_factory=dict)
    return_type_whitelist: List[str] = field(default_factory=list)

    @staticmethod
    def config_path(path: Optional[str] = None, workspace: Optional[str] = None) -> Path:
        if path:
            return Path(path).expanduser()
        if env_path := os.getenv("DOCDOCTOR_CONFIG"):
            return Path(env_path).expanduser()
        return Path(workspace or os.getcwd()) / CONFIG_FILENAME

    @classmethod
    def load(cls, path: Optional[str] = None, workspace: Optional[str] = None) -> Config:
        """Load config from YAML file, falling back to defaults."""
        config_path = cls.config_path(path, workspace)

        data: dict = {}
        if config_path.exists():
            try:
                with open(config_path) as f:
                    data = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                logger.warning(f"Cannot read config {config_path}: {e}")
            if not isinstance(data, dict):
                logger.warning(f"Ignoring config {config_path}: not a mapping")
                data = {}

        cfg = cls()

        if "db_path" in data:
            cfg.db_path = str(data["db_path"])
        for key in ("max_files", "max_file_size", "max_problems", "snippet_chars"):
            if key in data:
                setattr(cfg, key, int(data[key]))
        if data.get("diagnostics_command"):
            cfg.diagnostics_command = str(data["diagnostics_command"])

        if "check_main_function" in data:
            cfg.check_main_function = bool(data["check_main_function"])
        cfg.file_whitelist = _normalize_list(data.get("file_whitelist"))
        cfg.function_whitelist = _normalize_function_whitelist(
            data.get("function_whitelist")
        )
        cfg.return_type_whitelist = _normalize_list(data.get("return_type_whitelist"))

        # Environment overrides
        if env_db := os.getenv("DOCDOCTOR_DB_PATH"):
            cfg.db_path = env_db
        if env_diag := os.getenv("DOCDOCTOR_DIAGNOSTICS"):
            cfg.diagnostics_command = env_diag

        return cfg

    def resolved_db_path(self, workspace: Optional[str] = None) -> Path:
        p = Path(self.db_path).expanduser()
        if not p.is_absolute():
            p = Path(workspace or os.getcwd()) / p
        return p

    def whitelist(self, workspace: Optional[str] = None) -> WhitelistConfig:
        """Freeze the whitelist settings for a single run."""
        return WhitelistConfig(
            check_main_function=self.check_main_function,
            file_whitelist=tuple(self.file_whitelist),
            function_whitelist={
                k: frozenset(v) for k, v in self.function_whitelist.items()
            },
            return_type_whitelist=frozenset(self.return_type_whitelist),
            workspace_root=str(Path(workspace).resolve()) if workspace else None,
        )

    @classmethod
    def set_config(
        cls,
        key: str,
        value: Any,
        path: Optional[str] = None,
        workspace: Optional[str] = None,
    ) -> Path:
        """Write a single key into the YAML config, keeping other keys."""
        config_path = cls.config_path(path, workspace)
        data = _read_raw(config_path)
        data[key] = value
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w") as f:
            yaml.safe_dump(data, f, default_flow_style=False, allow_unicode=True)
        return config_path

    @classmethod
    def add_to_whitelist(
        cls,
        kind: str,
        value: str,
        *,
        file: Optional[str] = None,
        path: Optional[str] = None,
        workspace: Optional[str] = None,
    ) -> bool:
        """Append a whitelist entry. Returns False if it was already present.

        For kind "function", ``file`` selects the per-file list; without it
        the entry goes under the global "*" key.
        """
        key = WHITELIST_KEYS.get(kind)
        if key is None:
            raise ValueError(f"Unknown whitelist kind: {kind}")
        value = value.strip()
        if not value:
            raise ValueError("Whitelist entry must not be empty")

        data = _read_raw(cls.config_path(path, workspace))
        if key == "function_whitelist":
            current = _normalize_function_whitelist(data.get(key))
            entries = current.setdefault(
                (file or GLOBAL_FUNCTION_KEY).replace("\\", "/"), []
            )
            if value in entries:
                return False
            entries.append(value)
            new_value: Any = current
        else:
            entries = _normalize_list(data.get(key))
            if value in entries:
                return False
            entries.append(value)
            new_value = entries

        cls.set_config(key, new_value, path=path, workspace=workspace)
        return True


def _read_raw(config_path: Path) -> dict:
    if not config_path.exists():
        return {}
    with open(config_path) as f:
        data = yaml.safe_load(f) or {}
    return data if isinstance(data, dict) else {}


def _normalize_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    items = [str(v).strip() for v in value if v is not None]
    return [v for v in items if v]


def _normalize_function_whitelist(value: Any) -> Dict[str, List[str]]:
    """Keep only {file: [names...]} entries with at least one name."""
    if not isinstance(value, dict):
        return {}
    result: Dict[str, List[str]] = {}
    for file, funcs in value.items():
        names = _normalize_list(funcs)
        if names:
            result[str(file)] = names
    return result
