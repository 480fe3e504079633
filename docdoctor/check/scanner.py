"""
Source scanner — extract function definitions from C/C++ text.

Matching is an approximate regex over the flat text, not a parser.
Known limitations of the pattern:
  - control statements shaped like a definition (``else if (x) {``, or a
    bare ``if (x) {`` at the start of a line) are reported as functions;
  - the words of a ``//`` comment directly above a definition become part
    of its signature;
  - a ``*`` glued to the name (``char *dup(...)``) hides the definition;
  - parameter lists containing ``)`` (function pointers) are not matched.
The function body runs to the first ``}``, so nested blocks truncate it.
Line and column give the match start, which is usually the line break
before the definition rather than its first token.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List

from ..core.models import FunctionRecord, ParseResult

logger = logging.getLogger(__name__)

SOURCE_SUFFIXES = (".c", ".cpp")

_FUNCTION_RE = re.compile(
    r"([\w\s*]+?)\s+([A-Za-z_][A-Za-z0-9_]*)\s*\([^)]*\)\s*\{",
    re.ASCII,
)


def scan(file_text: str, file_path: str) -> List[FunctionRecord]:
    """Return the function definitions found in ``file_text``, in source order."""
    functions: List[FunctionRecord] = []

    for match in _FUNCTION_RE.finditer(file_text):
        full = match.group(0)
        # the lazy type group often starts on the previous line break
        start = match.start()
        line, column = _position(file_text, start)

        brace = match.end() - 1
        close = file_text.find("}", brace)
        body = file_text[brace:close + 1] if close >= 0 else file_text[brace:]

        functions.append(FunctionRecord(
            file_path=file_path,
            function_name=match.group(2),
            function_signature=full.replace("{", "", 1).strip(),
            comment=_preceding_comment(file_text, start),
            function_body=body,
            line=line,
            column=column,
        ))

    return functions


def read_source(path: str) -> ParseResult:
    """Read a .c/.cpp file and scan it."""
    if not path.endswith(SOURCE_SUFFIXES):
        return ParseResult(
            success=False,
            error_code="UNSUPPORTED_FILE_TYPE",
            error="Only .c / .cpp files are supported",
        )

    try:
        text = Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.debug(f"Cannot read {path}: {e}")
        return ParseResult(success=False, error_code="READ_ERROR", error=str(e))

    return ParseResult(success=True, functions=scan(text, path))


def _position(text: str, index: int):
    """1-based (line, column) of ``index``."""
    before = text[:index]
    line = before.count("\n") + 1
    last_nl = before.rfind("\n")
    partial = before[last_nl + 1:]
    return line, len(partial) + 1


def _preceding_comment(text: str, start: int) -> str:
    """Block comment ending right before ``start`` (whitespace allowed)."""
    before = text[:start].rstrip()
    if not before.endswith("*/"):
        return ""
    opening = before.rfind("/*", 0, len(before) - 2)
    if opening < 0:
        return ""
    return before[opening:]
