"""
Syntax diagnostics — ask a compiler whether a file parses.

The command is configured (``diagnostics_command``), e.g.
``gcc -fsyntax-only`` or ``clang -fsyntax-only -Iinclude``; the file path
is appended. A missing or failing compiler yields no diagnostics, so the
scan carries on as if the file were clean.
"""

from __future__ import annotations

import logging
import os
import re
import shlex
import shutil
import subprocess
from typing import Callable, List, Optional

from ..core.models import Diagnostic

logger = logging.getLogger(__name__)

# gcc/clang format: file:line:col: severity: message
_DIAG_RE = re.compile(
    r"^(?P<file>.*?):(?P<line>\d+):(?:(?P<col>\d+):)?\s*"
    r"(?P<severity>fatal error|error|warning|note):\s*(?P<message>.*)$"
)

Diagnostics = Callable[[str], List[Diagnostic]]


class NullDiagnostics:
    """No diagnostics source configured."""

    def __call__(self, path: str) -> List[Diagnostic]:
        return []


class CompilerDiagnostics:
    """Run a compiler in syntax-only mode and parse its stderr."""

    def __init__(self, command: str, *, timeout: float = 30.0):
        self.argv = shlex.split(command)
        self.timeout = timeout
        self._available: Optional[bool] = None

    @property
    def available(self) -> bool:
        if self._available is None:
            self._available = bool(self.argv) and shutil.which(self.argv[0]) is not None
            if not self._available:
                logger.warning(
                    "Diagnostics command not found: %s; syntax checks disabled",
                    self.argv[0] if self.argv else "<empty>",
                )
        return self._available

    def __call__(self, path: str) -> List[Diagnostic]:
        if not self.available:
            return []
        try:
            result = subprocess.run(
                self.argv + [path],
                capture_output=True, text=True, timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            logger.warning("Diagnostics timed out on %s", path)
            return []
        except OSError as e:
            logger.warning("Diagnostics failed on %s: %s", path, e)
            return []
        return parse_compiler_output(result.stderr)


def parse_compiler_output(output: str) -> List[Diagnostic]:
    diags = []
    for line in output.splitlines():
        m = _DIAG_RE.match(line.strip())
        if not m:
            continue
        severity = m.group("severity")
        diags.append(Diagnostic(
            severity="error" if severity == "fatal error" else severity,
            message=m.group("message").strip(),
            line=int(m.group("line")),
            column=int(m.group("col") or 1),
            file=m.group("file"),
        ))
    return diags


def error_diagnostics(diags: List[Diagnostic]) -> List[Diagnostic]:
    return [d for d in diags if d.severity == "error"]


def is_from(diag: Diagnostic, path: str) -> bool:
    """True when ``diag`` points into ``path`` rather than an included file."""
    if not diag.file:
        return True
    return os.path.normpath(diag.file) == os.path.normpath(path)


def make_diagnostics(command: Optional[str]) -> Diagnostics:
    if not command:
        return NullDiagnostics()
    return CompilerDiagnostics(command)
