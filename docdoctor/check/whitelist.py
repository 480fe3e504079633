"""
Whitelist policy — decide whether a function or file is exempt.

Rules, first match wins:
    1. ``main`` unless check_main_function is set
    2. file path starts with a file_whitelist prefix
    3. function listed for its file or under "*" (signature, then name)
    4. return type in return_type_whitelist

Example .doc-doctor.yaml:

    check_main_function: false
    file_whitelist: ["src/legacy/", "test/"]
    function_whitelist:
      "src/file1.c": ["function1", "int function2(int x)"]
      "*": ["init"]
    return_type_whitelist: ["void", "unsigned long"]
"""

from __future__ import annotations

import os
import re

from ..core.config import GLOBAL_FUNCTION_KEY, WhitelistConfig
from ..core.models import FunctionRecord

_MODIFIERS_RE = re.compile(r"\b(static|const|inline|virtual|constexpr|friend|extern)\b")
_POINTER_RE = re.compile(r"[*&]+")


def relative_path(file_path: str, config: WhitelistConfig) -> str:
    """Workspace-relative path with forward slashes, when resolvable."""
    if config.workspace_root and os.path.isabs(file_path):
        try:
            rel = os.path.relpath(file_path, config.workspace_root)
        except ValueError:
            rel = None  # different drive on Windows
        if rel is not None and not rel.startswith(".."):
            return rel.replace("\\", "/")
    return file_path.replace("\\", "/")


def is_file_whitelisted(file_path: str, config: WhitelistConfig) -> bool:
    if not config.file_whitelist:
        return False
    rel = relative_path(file_path, config)
    for prefix in config.file_whitelist:
        p = prefix.replace("\\", "/")
        if p and (rel == p or rel.startswith(p)):
            return True
    return False


def is_function_whitelisted(record: FunctionRecord, config: WhitelistConfig) -> bool:
    """Per-file list first, then the global "*" list.

    Within a list the exact signature is tried before the bare name, so a
    project can silence one overload without hiding same-named functions.
    """
    rel = relative_path(record.file_path, config)
    for key in (rel, GLOBAL_FUNCTION_KEY):
        names = config.function_whitelist.get(key)
        if not names:
            continue
        if record.function_signature in names:
            return True
        if record.function_name in names:
            return True
    return False


def is_return_type_whitelisted(record: FunctionRecord, config: WhitelistConfig) -> bool:
    if not config.return_type_whitelist:
        return False

    sig = record.function_signature.strip()
    paren = sig.find("(")
    if paren <= 0:
        return False

    before = sig[:paren].strip()
    name = record.function_name.strip()
    if name:
        idx = before.rfind(name)
        if idx >= 0:
            before = before[:idx].strip()
    if not before:
        return False

    cleaned = _MODIFIERS_RE.sub(" ", before)
    cleaned = _POINTER_RE.sub(" ", cleaned)
    cleaned = " ".join(cleaned.split())
    if not cleaned:
        return False

    base = cleaned.split()[-1]
    for entry in config.return_type_whitelist:
        t = entry.strip()
        if t and (t == base or t == cleaned):
            return True
    return False


def should_skip(record: FunctionRecord, config: WhitelistConfig) -> bool:
    if not config.check_main_function and record.function_name == "main":
        return True
    if is_file_whitelisted(record.file_path, config):
        return True
    if is_function_whitelisted(record, config):
        return True
    return is_return_type_whitelisted(record, config)
