from __future__ import annotations

from typing import Any, Optional, Tuple


Span = Tuple[int, int]


class PrereqError(ValueError):
    """Base class for everything the prerequisite compiler/evaluator raises.

    Subclasses ValueError so callers that already guard input with
    `except ValueError` (HTTP handlers, scripts) keep working.
    """

    kind = "prereq_error"

    def __init__(self, message: str, span: Optional[Span] = None):
        super().__init__(message)
        self.message = message
        self.span = span

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"type": self.kind, "message": self.message}
        if self.span is not None:
            out["span"] = list(self.span)
        return out


class LexError(PrereqError):
    kind = "lex_error"

    def __init__(self, substring: str, offset: int):
        self.substring = substring
        self.offset = offset
        super().__init__(
            f"Unrecognized text {substring!r} at offset {offset}",
            span=(offset, offset + len(substring)),
        )


class ParseError(PrereqError):
    kind = "parse_error"


class NormalizationError(PrereqError):
    # Should be unreachable: a Set with zero children made it past normalization.
    kind = "normalization_error"


class DepthExceeded(PrereqError):
    kind = "depth_exceeded"

    def __init__(self, limit: int, where: str = "tree"):
        self.limit = limit
        self.where = where
        super().__init__(f"{where} nesting exceeds the maximum depth of {limit}")


class GradeComparisonError(PrereqError):
    kind = "grade_comparison_error"

    def __init__(self, grade: Any):
        self.grade = grade
        super().__init__(f"Grade {grade!r} is not on the known grade scale")


def check_depth(depth: int, limit: int, where: str = "tree") -> None:
    if depth > limit:
        raise DepthExceeded(limit, where)
