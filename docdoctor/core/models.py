"""Data models for doc-doctor."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import IntEnum
from typing import Any, Dict, List, Optional


# function_name used by file-level syntax error records
SYNTAX_ERROR_SENTINEL = "<file>"


class ProblemType(IntEnum):
    PARAM_MISSING = 1
    RETURN_MISSING = 2
    BRIEF_MISSING = 3
    CONTENT_CHANGED = 4  # reserved, never produced
    SYNTAX_ERROR = 5


class ProblemStatus(IntEnum):
    NORMAL = 0
    IGNORED = 1  # done / ignored by the user


@dataclass(frozen=True)
class FunctionRecord:
    file_path: str
    function_name: str
    function_signature: str
    comment: str
    function_body: str
    line: int
    column: int


@dataclass
class ProblemRecord:
    problem_type: ProblemType
    file_path: str
    function_name: str
    function_signature: str
    line: int
    column: int
    description: str
    snippet: str = ""

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["problem_type"] = int(self.problem_type)
        return d


@dataclass
class StoredProblem(ProblemRecord):
    id: int = 0
    check_timestamp: str = ""
    status: ProblemStatus = ProblemStatus.NORMAL

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["status"] = int(self.status)
        return d


@dataclass
class ParseResult:
    success: bool
    functions: List[FunctionRecord] = field(default_factory=list)
    error_code: Optional[str] = None  # "UNSUPPORTED_FILE_TYPE" | "READ_ERROR"
    error: Optional[str] = None


@dataclass
class Diagnostic:
    severity: str  # "error" | "warning" | "note"
    message: str
    line: int = 1
    column: int = 1
    file: str = ""  # as reported by the compiler; "" = the checked file


@dataclass
class CheckRunResult:
    success: bool = True
    total_files: int = 0
    checked_files: int = 0
    skipped_files: List[str] = field(default_factory=list)
    problems: List[ProblemRecord] = field(default_factory=list)
    error_message: Optional[str] = None
    cancelled: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "total_files": self.total_files,
            "checked_files": self.checked_files,
            "skipped_files": list(self.skipped_files),
            "problems": [p.to_dict() for p in self.problems],
            "error_message": self.error_message,
            "cancelled": self.cancelled,
        }
