"""
Documentation rules — decide which Doxygen tags a function is missing.

Problems come out in a fixed order: brief, each missing param (in
parameter order), return.
"""

from __future__ import annotations

import re
from typing import List

from ..core.models import FunctionRecord, ProblemRecord, ProblemType

SNIPPET_CHARS = 200

_BRIEF_RE = re.compile(r"@brief\s+\S")
_RETURN_RE = re.compile(r"@return\s+\S")
_COMMENT_MARKS_RE = re.compile(r"/\*\*?|\*/|\*")
_PARAMS_RE = re.compile(r"\(([^)]*)\)")


def check(record: FunctionRecord, *, snippet_chars: int = SNIPPET_CHARS) -> List[ProblemRecord]:
    """Return the documentation problems of one function."""
    comment = record.comment
    snippet = record.function_body[:snippet_chars]
    problems: List[ProblemRecord] = []

    def add(problem_type: ProblemType, description: str) -> None:
        problems.append(ProblemRecord(
            problem_type=problem_type,
            file_path=record.file_path,
            function_name=record.function_name,
            function_signature=record.function_signature,
            line=record.line,
            column=record.column,
            description=description,
            snippet=snippet,
        ))

    if not has_brief(comment):
        add(ProblemType.BRIEF_MISSING, "Missing function description (@brief)")

    for name in extract_parameters(record.function_signature):
        if not has_param(comment, name):
            add(
                ProblemType.PARAM_MISSING,
                f'Missing description for parameter "{name}" (@param {name})',
            )

    if returns_value(record.function_signature) and not has_return(comment):
        add(ProblemType.RETURN_MISSING, "Missing return value description (@return)")

    return problems


def extract_parameters(signature: str) -> List[str]:
    """Parameter names of a signature: ``int add(int a, int b)`` -> ['a', 'b']."""
    match = _PARAMS_RE.search(signature)
    if not match or not match.group(1).strip():
        return []

    names = []
    for param in match.group(1).split(","):
        param = param.strip()
        if not param or param == "void":
            continue
        name = param.split()[-1].replace("*", "").replace("&", "")
        if name:
            names.append(name)
    return names


def returns_value(signature: str) -> bool:
    return not signature.strip().startswith("void ")


def has_brief(comment: str) -> bool:
    """An ``@brief`` with text, or any free text inside the comment."""
    if not comment:
        return False
    if _BRIEF_RE.search(comment):
        return True
    return bool(_COMMENT_MARKS_RE.sub("", comment).strip())


def has_param(comment: str, name: str) -> bool:
    if not comment:
        return False
    pattern = rf"@param\s+{re.escape(name)}\s+\S"
    return re.search(pattern, comment, re.IGNORECASE) is not None


def has_return(comment: str) -> bool:
    if not comment:
        return False
    return _RETURN_RE.search(comment) is not None
