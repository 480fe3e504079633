"""
doc-doctor API — importable functions for all operations.

Every function returns JSON-serializable dicts/lists.
``workspace`` defaults to the current directory.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

if TYPE_CHECKING:
    from .check.project import CancelFlag


def _workspace(workspace: Optional[str]) -> str:
    return str(Path(workspace or os.getcwd()).resolve())


def _config(workspace: str):
    from .core.config import Config
    return Config.load(workspace=workspace)


def _store(workspace: str, cfg=None):
    from .core.db import get_store
    cfg = cfg or _config(workspace)
    return get_store(cfg.resolved_db_path(workspace))


# ── Init ─────────────────────────────────────────────────────────────────────

def init(workspace: Optional[str] = None) -> Dict[str, Any]:
    """Create the default config file and the problem database."""
    from .core.config import Config

    ws = _workspace(workspace)
    results: Dict[str, Any] = {"created": [], "existing": []}

    config_path = Config.config_path(workspace=ws)
    if config_path.exists():
        results["existing"].append(str(config_path))
    else:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(_DEFAULT_CONFIG_TEMPLATE)
        results["created"].append(str(config_path))

    cfg = Config.load(workspace=ws)
    db_path = cfg.resolved_db_path(ws)
    if db_path.exists():
        results["existing"].append(str(db_path))
    else:
        _store(ws, cfg)
        results["created"].append(str(db_path))

    return results


_DEFAULT_CONFIG_TEMPLATE = """\
# doc-doctor configuration

# ── Whitelists ───────────────────────────────────────────
# main() is skipped unless this is true
check_main_function: false

# Path prefixes (relative to the workspace) that are never checked
file_whitelist: []
#  - "src/legacy/"
#  - "test/"

# Functions to skip, per file; "*" applies to every file.
# Entries match the full signature first, then the bare name.
function_whitelist: {}
#  "src/file1.c": ["function1", "int function2(int x)"]
#  "*": ["init"]

# Return types whose functions are skipped
return_type_whitelist: []
#  - "void"

# ── Limits ───────────────────────────────────────────────
# max_files: 1000
# max_file_size: 1048576
# max_problems: 1000

# ── Syntax diagnostics ───────────────────────────────────
# Files with compiler errors are reported once and not checked further.
# diagnostics_command: "gcc -fsyntax-only"

# ── Database ─────────────────────────────────────────────
# db_path: ".doc-doctor/problems.db"
"""


# ── Checks ───────────────────────────────────────────────────────────────────

def check(
    workspace: Optional[str] = None,
    *,
    save: bool = True,
    progress: Optional[Callable[[str], None]] = None,
    cancel: Optional[CancelFlag] = None,
) -> Dict[str, Any]:
    """Check every C/C++ file in the workspace.

    On success the stored problems are replaced by this run's findings,
    even when there are none.
    """
    from .check.project import check_project

    ws = _workspace(workspace)
    cfg = _config(ws)
    result = check_project(ws, cfg, progress=progress, cancel=cancel)

    out = result.to_dict()
    if save and result.success:
        out["saved"] = _store(ws, cfg).replace_all(result.problems)
    return out


def check_file(path: str, workspace: Optional[str] = None) -> Dict[str, Any]:
    """Scan a single file and report its functions and problems.

    The whitelist is applied; nothing is stored.
    """
    from .check import rules
    from .check.scanner import read_source
    from .check.whitelist import should_skip

    file_path = str(Path(path).resolve())
    if not Path(file_path).is_file():
        return {"error": f"File not found: {path}"}

    ws = _workspace(workspace)
    cfg = _config(ws)
    whitelist = cfg.whitelist(ws)

    parsed = read_source(file_path)
    if not parsed.success:
        return {
            "success": False,
            "file_path": file_path,
            "error_code": parsed.error_code,
            "error": parsed.error,
        }

    problems = []
    skipped = []
    for func in parsed.functions:
        if should_skip(func, whitelist):
            skipped.append(func.function_name)
            continue
        problems.extend(rules.check(func, snippet_chars=cfg.snippet_chars))

    return {
        "success": True,
        "file_path": file_path,
        "functions": [
            {
                "name": f.function_name,
                "signature": f.function_signature,
                "line": f.line,
                "column": f.column,
                "documented": bool(f.comment),
            }
            for f in parsed.functions
        ],
        "skipped_functions": skipped,
        "problems": [p.to_dict() for p in problems],
    }


# ── Stored problems ──────────────────────────────────────────────────────────

def problems(
    workspace: Optional[str] = None,
    *,
    include_ignored: bool = False,
) -> List[Dict[str, Any]]:
    from .core.models import ProblemStatus

    ws = _workspace(workspace)
    status = None if include_ignored else ProblemStatus.NORMAL
    return [p.to_dict() for p in _store(ws).load_all(status=status)]


def mark(problem_id: int, status: int, workspace: Optional[str] = None) -> Dict[str, Any]:
    """Set a stored problem's status (0 = normal, 1 = ignored)."""
    from .core.models import ProblemStatus

    try:
        new_status = ProblemStatus(status)
    except ValueError:
        return {"error": f"Unknown status: {status}"}

    ws = _workspace(workspace)
    if not _store(ws).update_status(problem_id, new_status):
        return {"error": f"Problem not found: {problem_id}"}
    return {"id": problem_id, "status": int(new_status)}


def clear(workspace: Optional[str] = None) -> Dict[str, Any]:
    ws = _workspace(workspace)
    return {"cleared": _store(ws).clear()}


def status(workspace: Optional[str] = None) -> Dict[str, Any]:
    """Config summary and problem store stats."""
    from .core.config import Config

    ws = _workspace(workspace)
    cfg = _config(ws)
    config_path = Config.config_path(workspace=ws)

    result: Dict[str, Any] = {
        "workspace": ws,
        "config_path": str(config_path),
        "config_exists": config_path.exists(),
        "diagnostics_command": cfg.diagnostics_command,
        "check_main_function": cfg.check_main_function,
        "file_whitelist": len(cfg.file_whitelist),
        "function_whitelist": sum(len(v) for v in cfg.function_whitelist.values()),
        "return_type_whitelist": len(cfg.return_type_whitelist),
    }

    db_path = cfg.resolved_db_path(ws)
    if db_path.exists():
        result.update(_store(ws, cfg).stats())
    else:
        result["db_path"] = str(db_path)
        result["db_error"] = "Database not initialized. Run: docdoc init"

    return result


def whitelist_add(
    kind: str,
    value: str,
    *,
    file: Optional[str] = None,
    workspace: Optional[str] = None,
) -> Dict[str, Any]:
    """Add a file prefix, function or return type to the whitelist."""
    from .core.config import Config

    ws = _workspace(workspace)
    try:
        added = Config.add_to_whitelist(kind, value, file=file, workspace=ws)
    except ValueError as e:
        return {"error": str(e)}
    return {
        "kind": kind,
        "value": value.strip(),
        "file": file,
        "status": "added" if added else "exists",
    }
