from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from config import Config
from services.errors import GradeComparisonError, check_depth
from services.req_ir import (
    EMPTY,
    KNOWN_GRADES,
    LETTER_GRADES,
    PASS_FAIL_GRADES,
    Clause,
    Operator,
    Prerequisites,
    ReqCourse,
    ReqSet,
    clause_to_wire,
)


# -----------------------------
# Student record (owned by the caller, read only here)
# -----------------------------

class CourseStatus(str, Enum):
    COMPLETED = "completed"
    IN_PROGRESS = "in-progress"
    PLANNED = "planned"


@dataclass(frozen=True)
class CourseRecord:
    status: CourseStatus
    grade: Optional[str] = None


class StudentRecord:
    """Course id -> CourseRecord, looked up case-insensitively."""

    def __init__(self, courses: Optional[Mapping[str, CourseRecord]] = None):
        self._courses: Dict[str, CourseRecord] = {}
        for course_id, rec in (courses or {}).items():
            self._courses[_id_key(course_id)] = rec

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StudentRecord":
        """
        {"CS 1331": {"status": "completed", "grade": "B"}, ...}
        A bare string value is read as the grade of a completed course.
        """
        courses: Dict[str, CourseRecord] = {}
        for course_id, raw in (data or {}).items():
            if isinstance(raw, str):
                courses[course_id] = CourseRecord(CourseStatus.COMPLETED, raw.strip().upper() or None)
                continue
            grade = raw.get("grade")
            courses[course_id] = CourseRecord(
                status=CourseStatus(str(raw.get("status", CourseStatus.COMPLETED.value)).strip().lower()),
                grade=str(grade).strip().upper() if grade else None,
            )
        return cls(courses)

    def lookup(self, course_id: str) -> Optional[CourseRecord]:
        return self._courses.get(_id_key(course_id))

    def __contains__(self, course_id: str) -> bool:
        return _id_key(course_id) in self._courses

    def __len__(self) -> int:
        return len(self._courses)


def _id_key(course_id: str) -> str:
    return " ".join(str(course_id).split()).casefold()


# -----------------------------
# Grades
# -----------------------------

_LETTER_RANK = {g: len(LETTER_GRADES) - i for i, g in enumerate(LETTER_GRADES)}


def _check_grade(grade: str) -> str:
    g = str(grade).strip().upper()
    if g not in KNOWN_GRADES:
        raise GradeComparisonError(grade)
    return g


def grade_meets(recorded: str, required: str) -> bool:
    """A > B > C > D > F; pass/fail markers only match themselves."""
    rec = _check_grade(recorded)
    req = _check_grade(required)
    if req in PASS_FAIL_GRADES or rec in PASS_FAIL_GRADES:
        return rec == req
    return _LETTER_RANK[rec] >= _LETTER_RANK[req]


# -----------------------------
# Result
# -----------------------------

class NodeStatus(str, Enum):
    SATISFIED = "satisfied"
    UNSATISFIED = "unsatisfied"
    PENDING = "pending"
    NOT_APPLICABLE = "not-applicable"

    @property
    def ok(self) -> bool:
        return self in (NodeStatus.SATISFIED, NodeStatus.PENDING, NodeStatus.NOT_APPLICABLE)


@dataclass(frozen=True)
class NodeResult:
    clause: Optional[Clause]
    status: NodeStatus
    children: Tuple["NodeResult", ...] = ()
    missing: Tuple[ReqCourse, ...] = ()
    # OR sets: index of the child used for the explanation
    selected: Optional[int] = None

    @property
    def satisfied(self) -> bool:
        return self.status.ok

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"status": self.status.value}
        if isinstance(self.clause, ReqCourse):
            out["course"] = clause_to_wire(self.clause)
        elif isinstance(self.clause, ReqSet):
            out["operator"] = self.clause.operator.value
            out["children"] = [c.to_dict() for c in self.children]
            if self.selected is not None:
                out["selected"] = self.selected
        return out


@dataclass(frozen=True)
class EvaluationResult:
    satisfied: bool
    tree: NodeResult
    missing: List[ReqCourse] = field(default_factory=list)

    @property
    def pending(self) -> bool:
        return self.tree.status == NodeStatus.PENDING

    def to_dict(self) -> dict[str, Any]:
        return {
            "satisfied": self.satisfied,
            "status": self.tree.status.value,
            "tree": self.tree.to_dict(),
            "missing": [clause_to_wire(m) for m in self.missing],
        }


# -----------------------------
# Tree walk
# -----------------------------

def _eval_course(course: ReqCourse, record: StudentRecord) -> NodeResult:
    rec = record.lookup(course.id)
    if rec is None or rec.status == CourseStatus.PLANNED:
        return NodeResult(course, NodeStatus.UNSATISFIED, missing=(course,))

    if rec.grade is None:
        if rec.status == CourseStatus.IN_PROGRESS:
            # no final grade yet; counts for planning, flagged separately
            return NodeResult(course, NodeStatus.PENDING)
        if course.grade is not None:
            # completed but grade unknown: can't verify a minimum
            return NodeResult(course, NodeStatus.UNSATISFIED, missing=(course,))
        return NodeResult(course, NodeStatus.SATISFIED)

    if course.grade is not None and not grade_meets(rec.grade, course.grade):
        return NodeResult(course, NodeStatus.UNSATISFIED, missing=(course,))
    if course.grade is None:
        _check_grade(rec.grade)
    return NodeResult(course, NodeStatus.SATISFIED)


def _eval_and(node: ReqSet, children: List[NodeResult]) -> NodeResult:
    statuses = [c.status for c in children]
    if NodeStatus.UNSATISFIED in statuses:
        status = NodeStatus.UNSATISFIED
    elif NodeStatus.PENDING in statuses:
        status = NodeStatus.PENDING
    else:
        status = NodeStatus.SATISFIED

    missing: List[ReqCourse] = []
    for c in children:
        missing.extend(c.missing)
    return NodeResult(node, status, tuple(children), tuple(missing))


def _eval_or(node: ReqSet, children: List[NodeResult]) -> NodeResult:
    # completed branch beats pending one; otherwise first in catalog order
    for wanted in (NodeStatus.SATISFIED, NodeStatus.PENDING):
        for i, c in enumerate(children):
            if c.status == wanted:
                return NodeResult(node, wanted, tuple(children), (), selected=i)

    # nothing satisfies: explain via the branch with the fewest unmet leaves
    best = min(range(len(children)), key=lambda i: len(children[i].missing))
    return NodeResult(
        node,
        NodeStatus.UNSATISFIED,
        tuple(children),
        children[best].missing,
        selected=best,
    )


def _eval_clause(clause: Clause, record: StudentRecord, depth: int, limit: int) -> NodeResult:
    if isinstance(clause, ReqCourse):
        return _eval_course(clause, record)

    check_depth(depth, limit, "prerequisite")
    # every child is evaluated so the UI sees each unmet branch
    children = [_eval_clause(c, record, depth + 1, limit) for c in clause.items]
    if clause.operator == Operator.AND:
        return _eval_and(clause, children)
    return _eval_or(clause, children)


def as_student_record(record: StudentRecord | Mapping[str, Any] | None) -> StudentRecord:
    if isinstance(record, StudentRecord):
        return record
    return StudentRecord.from_dict(record or {})


def evaluate(
    prereqs: Prerequisites,
    record: StudentRecord | Mapping[str, Any] | None,
    max_depth: int | None = None,
) -> EvaluationResult:
    limit = Config.PREREQ_MAX_DEPTH if max_depth is None else max_depth
    if prereqs is EMPTY:
        return EvaluationResult(True, NodeResult(None, NodeStatus.NOT_APPLICABLE), [])

    tree = _eval_clause(prereqs, as_student_record(record), 1, limit)
    return EvaluationResult(tree.satisfied, tree, list(tree.missing))


def is_satisfied(
    prereqs: Prerequisites,
    record: StudentRecord | Mapping[str, Any] | None,
    max_depth: int | None = None,
) -> bool:
    if prereqs is EMPTY:
        return True

    limit = Config.PREREQ_MAX_DEPTH if max_depth is None else max_depth
    rec = as_student_record(record)

    def check(clause: Clause, depth: int) -> bool:
        if isinstance(clause, ReqCourse):
            return _eval_course(clause, rec).satisfied
        check_depth(depth, limit, "prerequisite")
        if clause.operator == Operator.AND:
            return all(check(c, depth + 1) for c in clause.items)
        return any(check(c, depth + 1) for c in clause.items)

    return check(prereqs, 1)
