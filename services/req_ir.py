from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, Tuple, Union

from config import Config
from services.errors import NormalizationError, check_depth


# Letter grades are ordered A > B > C > D > F. Pass/fail markers are only ever
# compared for equality.
LETTER_GRADES = ("A", "B", "C", "D", "F")
PASS_FAIL_GRADES = ("T", "S", "U", "V")
KNOWN_GRADES = frozenset(LETTER_GRADES + PASS_FAIL_GRADES)

COURSE_ID_RE = re.compile(r"^([A-Za-z]{2,4})\s+(\d{4}[A-Za-z]?)$")


def canonical_course_id(subject: str, number: str) -> str:
    return f"{subject.upper()} {number.upper()}"


_LOOSE_COURSE_ID_RE = re.compile(r"^([A-Za-z]{2,4})[\s-]*(\d{4}[A-Za-z]?)$")


def normalize_course_id(raw) -> str:
    """Map 'cs-1331', 'CS1331' or ' cs  1331 ' to 'CS 1331'.

    Anything that is not a course code is upper-cased with whitespace collapsed.
    """
    s = " ".join(str(raw or "").split())
    m = _LOOSE_COURSE_ID_RE.match(s)
    if m:
        return canonical_course_id(m.group(1), m.group(2))
    return s.upper()


class Operator(str, Enum):
    AND = "and"
    OR = "or"


@dataclass(frozen=True)
class ReqCourse:
    # Leaf: one course requirement. 'grade' is the minimum grade (None = any).
    id: str
    grade: str | None = None
    concurrent: bool = False

    def key(self) -> tuple:
        return ("course", self.id.casefold(), self.grade)

    def __str__(self) -> str:
        s = self.id
        if self.grade:
            s += f" (min {self.grade})"
        if self.concurrent:
            s += " [concurrent ok]"
        return s


@dataclass(frozen=True)
class ReqSet:
    operator: Operator
    items: Tuple["Clause", ...]

    def __post_init__(self):
        if not self.items:
            raise NormalizationError(f"'{self.operator.value}' set has no clauses")

    def key(self) -> tuple:
        return (self.operator.value,) + tuple(it.key() for it in self.items)

    def __str__(self) -> str:
        joiner = f" {self.operator.value} "
        return "(" + joiner.join(str(it) for it in self.items) + ")"


class EmptyPrereqs:
    """'No prerequisites'. Never represented by an empty ReqSet."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "EMPTY"

    def __bool__(self) -> bool:
        return False

    def key(self) -> tuple:
        return ()


EMPTY = EmptyPrereqs()

Clause = Union[ReqCourse, ReqSet]
Prerequisites = Union[ReqSet, EmptyPrereqs]


def iter_courses(prereqs: Prerequisites | Clause) -> Iterator[ReqCourse]:
    # leaves in catalog order, without recursion
    if prereqs is EMPTY:
        return
    stack: list = [prereqs]
    while stack:
        clause = stack.pop()
        if isinstance(clause, ReqCourse):
            yield clause
        else:
            stack.extend(reversed(clause.items))


# -----------------------------
# Wire format
# -----------------------------
# Set -> [operator, *clauses], leaf -> {"id": ..., "grade": ...}, empty -> []

def clause_to_wire(clause: Clause) -> Any:
    if isinstance(clause, ReqCourse):
        out: dict[str, Any] = {"id": clause.id}
        if clause.grade is not None:
            out["grade"] = clause.grade
        if clause.concurrent:
            out["concurrent"] = True
        return out
    return [clause.operator.value] + [clause_to_wire(it) for it in clause.items]


def to_wire(prereqs: Prerequisites) -> list:
    if prereqs is EMPTY:
        return []
    return clause_to_wire(prereqs)


def _clause_from_wire(data: Any, depth: int, max_depth: int) -> Clause:
    if isinstance(data, dict):
        course_id = str(data.get("id") or "").strip()
        if not course_id:
            raise NormalizationError(f"Course clause without an id: {data!r}")
        grade = data.get("grade")
        return ReqCourse(
            id=course_id,
            grade=str(grade).upper() if grade else None,
            concurrent=bool(data.get("concurrent", False)),
        )

    if isinstance(data, (list, tuple)):
        check_depth(depth, max_depth, "stored prerequisite")
        if not data:
            raise NormalizationError("Empty set found below the root")
        if not isinstance(data[0], str):
            # [{...}, {...}] shorthand: implicit AND
            data = ["and", *data]
        try:
            op = Operator(str(data[0]).lower())
        except ValueError:
            raise NormalizationError(f"Unknown set operator {data[0]!r}") from None
        items = tuple(_clause_from_wire(it, depth + 1, max_depth) for it in data[1:])
        return ReqSet(op, items)

    raise NormalizationError(f"Unrecognized clause {data!r}")


def from_wire(data: Any, max_depth: int | None = None) -> Prerequisites:
    """Decode the stored tuple form. A bare leaf at the root is wrapped in a
    one-child AND set so the root type stays stable."""
    limit = Config.PREREQ_MAX_DEPTH if max_depth is None else max_depth
    if data is None or (isinstance(data, (list, tuple)) and len(data) == 0):
        return EMPTY
    clause = _clause_from_wire(data, 1, limit)
    if isinstance(clause, ReqCourse):
        return ReqSet(Operator.AND, (clause,))
    return clause
