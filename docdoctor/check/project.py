"""
Project check — run the scanner, whitelist and rules over every source file.

Per file, first failure wins:
    whitelist → stat/size → syntax diagnostics → read+scan → rules
Recoverable failures become skip reasons; the run itself never raises.
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union

from ..core.config import Config, WhitelistConfig
from ..core.models import (
    SYNTAX_ERROR_SENTINEL,
    CheckRunResult,
    Diagnostic,
    ParseResult,
    ProblemRecord,
    ProblemType,
)
from . import rules
from .diagnostics import (
    Diagnostics,
    NullDiagnostics,
    error_diagnostics,
    is_from,
    make_diagnostics,
)
from .scanner import SOURCE_SUFFIXES, read_source
from .whitelist import is_file_whitelisted, relative_path, should_skip

logger = logging.getLogger(__name__)

_EXCLUDED_DIRS = {"node_modules"}

ProgressSink = Callable[[str], None]
CancelFlag = Union[threading.Event, Callable[[], bool]]


def enumerate_files(root: str, max_files: int = 1000) -> Tuple[List[str], bool]:
    """Find .c/.cpp files under root, sorted, skipping node_modules.

    Returns (files, truncated); at most max_files paths are returned.
    """
    files: List[str] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in _EXCLUDED_DIRS)
        for name in sorted(filenames):
            if name.endswith(SOURCE_SUFFIXES):
                files.append(os.path.join(dirpath, name))
                if len(files) > max_files:
                    return files[:max_files], True
    return files, False


class ProjectChecker:
    """One configured check; ``run`` may be called once per file set."""

    def __init__(
        self,
        config: Config,
        whitelist: WhitelistConfig,
        *,
        diagnostics: Optional[Diagnostics] = None,
        reader: Callable[[str], ParseResult] = read_source,
    ):
        self.config = config
        self.whitelist = whitelist
        self.diagnostics = diagnostics or NullDiagnostics()
        self.reader = reader

    def run(
        self,
        files: Sequence[str],
        *,
        progress: Optional[ProgressSink] = None,
        cancel: Optional[CancelFlag] = None,
    ) -> CheckRunResult:
        result = CheckRunResult(total_files=len(files))
        cap = self.config.max_problems

        try:
            for path in files:
                if _is_cancelled(cancel):
                    result.cancelled = True
                    result.error_message = (
                        f"Check cancelled after {result.checked_files} files"
                    )
                    logger.info(result.error_message)
                    break

                outcome = self._check_one(path, result, progress)
                if outcome is None:
                    continue

                batch, checked = outcome
                result.problems.extend(batch)
                if len(result.problems) >= cap:
                    del result.problems[cap:]
                    result.error_message = (
                        f"Reached the maximum number of problems ({cap}), check stopped"
                    )
                    logger.info(result.error_message)
                    break

                if checked:
                    result.checked_files += 1
        except Exception as e:
            logger.exception("Project check failed")
            result.success = False
            result.error_message = f"Error during check: {e}"

        return result

    def _check_one(
        self,
        path: str,
        result: CheckRunResult,
        progress: Optional[ProgressSink],
    ) -> Optional[Tuple[List[ProblemRecord], bool]]:
        """(problems, fully_checked) for one file, or None when it is skipped."""
        rel = relative_path(path, self.whitelist)

        if is_file_whitelisted(path, self.whitelist):
            result.skipped_files.append(f"{rel} (in whitelist)")
            return None

        if progress:
            progress(f"Checking {rel}")

        try:
            size = os.stat(path).st_size
        except OSError as e:
            logger.debug(f"Cannot stat {path}: {e}")
            result.skipped_files.append(f"{rel} (cannot stat file)")
            return None
        if size > self.config.max_file_size:
            result.skipped_files.append(
                f"{rel} (file too large: {size / 1024 / 1024:.2f}MB)"
            )
            return None

        try:
            errors = error_diagnostics(self.diagnostics(path))
        except Exception as e:
            logger.warning(f"Diagnostics failed on {rel}: {e}; treating it as clean")
            errors = []
        if errors:
            result.skipped_files.append(f"{rel} (has syntax errors)")
            return [_syntax_error_problem(path, errors)], False

        parsed = self.reader(path)
        if not parsed.success:
            result.skipped_files.append(f"{rel} ({parsed.error_code}: {parsed.error})")
            return None

        batch: List[ProblemRecord] = []
        for func in parsed.functions:
            if should_skip(func, self.whitelist):
                continue
            batch.extend(rules.check(func, snippet_chars=self.config.snippet_chars))
        logger.debug(f"{rel}: {len(parsed.functions)} functions, {len(batch)} problems")
        return batch, True


def _syntax_error_problem(path: str, errors: List[Diagnostic]) -> ProblemRecord:
    own = [d for d in errors if is_from(d, path)]
    if own:
        first = own[0]
        line, column = first.line, first.column
        description = f"Syntax error at line {line}, column {column}: {first.message}"
    else:
        # every error sits in an included file
        first = errors[0]
        line, column = 1, 1
        description = (
            f"Syntax error in {first.file} at line {first.line}, "
            f"column {first.column}: {first.message}"
        )
    if len(errors) > 1:
        description += f" ({len(errors)} errors total)"
    return ProblemRecord(
        problem_type=ProblemType.SYNTAX_ERROR,
        file_path=path,
        function_name=SYNTAX_ERROR_SENTINEL,
        function_signature="",
        line=line,
        column=column,
        description=description,
        snippet="",
    )


def _is_cancelled(cancel: Optional[CancelFlag]) -> bool:
    if cancel is None:
        return False
    if isinstance(cancel, threading.Event):
        return cancel.is_set()
    return bool(cancel())


def check_project(
    root: str,
    config: Optional[Config] = None,
    *,
    diagnostics: Optional[Diagnostics] = None,
    progress: Optional[ProgressSink] = None,
    cancel: Optional[CancelFlag] = None,
) -> CheckRunResult:
    """Enumerate and check every C/C++ file under ``root``.

    The config is read once here (unless given) and stays fixed for the run.
    """
    if not root or not Path(root).is_dir():
        return CheckRunResult(
            success=False,
            error_message=f"Workspace folder not found: {root}",
        )

    root = str(Path(root).resolve())
    try:
        config = config or Config.load(workspace=root)
        files, truncated = enumerate_files(root, config.max_files)
    except Exception as e:
        logger.exception("Cannot prepare project check")
        return CheckRunResult(success=False, error_message=f"Error during check: {e}")

    if not files:
        return CheckRunResult(error_message="No C/C++ files found in workspace")

    if diagnostics is None:
        diagnostics = make_diagnostics(config.diagnostics_command)

    checker = ProjectChecker(config, config.whitelist(root), diagnostics=diagnostics)
    result = checker.run(files, progress=progress, cancel=cancel)

    if truncated and result.error_message is None:
        result.error_message = (
            f"More than {config.max_files} source files found; "
            f"only the first {config.max_files} were checked"
        )

    logger.info(
        f"Checked {result.checked_files}/{result.total_files} files, "
        f"{len(result.problems)} problems, {len(result.skipped_files)} skipped"
    )
    return result
