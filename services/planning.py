"""
Catalog-wide questions asked of one student record, answered over a crawled
term (the Dict[str, CoursePrereqs] from load_term_dataset or CrawlResult.by_id).

- check_courses(ids, catalog, record)  -> BatchCheck (overall verdict + one check per course)
- unlocked_by(course_id, catalog)      -> ids of courses that list it as a prerequisite
- eligible_courses(catalog, record)    -> ids of untaken courses whose prerequisites are met

A course whose prerequisites could not be determined is never reported as
satisfied or eligible.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

from services.crawl import UNKNOWN_PREREQS_MESSAGE, CoursePrereqs
from services.eligibility import EvaluationResult, StudentRecord, as_student_record, evaluate, is_satisfied
from services.errors import PrereqError
from services.req_ir import iter_courses, normalize_course_id


logger = logging.getLogger(__name__)


Catalog = Mapping[str, CoursePrereqs]


def _index(catalog: Catalog) -> Dict[str, CoursePrereqs]:
    return {normalize_course_id(k): v for k, v in catalog.items()}


@dataclass(frozen=True)
class CourseCheck:
    course_id: str
    known: bool
    result: Optional[EvaluationResult] = None
    error: Optional[Dict[str, Any]] = None

    @property
    def satisfied(self) -> bool:
        return self.result is not None and self.result.satisfied

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "course_id": self.course_id,
            "known": self.known,
            "satisfied": self.satisfied,
        }
        if self.result is not None:
            out.update(self.result.to_dict())
            out["satisfied"] = self.satisfied
        if self.error is not None:
            out["error"] = self.error
        if not self.known:
            out["display"] = UNKNOWN_PREREQS_MESSAGE
        return out


@dataclass(frozen=True)
class BatchCheck:
    checks: List[CourseCheck] = field(default_factory=list)

    @property
    def overall(self) -> bool:
        return all(c.satisfied for c in self.checks)

    @property
    def blocked(self) -> List[str]:
        return [c.course_id for c in self.checks if not c.satisfied]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall": self.overall,
            "blocked": self.blocked,
            "checks": [c.to_dict() for c in self.checks],
        }


def _check_entry(
    course_id: str,
    entry: Optional[CoursePrereqs],
    record: StudentRecord,
    max_depth: int | None,
) -> CourseCheck:
    if entry is None:
        return CourseCheck(course_id, False, error={"type": "missing", "message": f"{course_id} is not in the catalog"})
    if not entry.is_known:
        return CourseCheck(course_id, False, error=entry.error)

    try:
        result = evaluate(entry.prerequisites, record, max_depth=max_depth)
    except PrereqError as e:
        # one bad comparison fails this course only
        logger.warning("Could not evaluate prerequisites for %s: %s", course_id, e)
        return CourseCheck(course_id, True, error=e.to_dict())
    return CourseCheck(course_id, True, result)


def check_courses(
    course_ids: Iterable[str],
    catalog: Catalog,
    record: StudentRecord | Mapping[str, Any] | None,
    max_depth: int | None = None,
) -> BatchCheck:
    """Check several courses against one record, in the order given."""
    index = _index(catalog)
    rec = as_student_record(record)
    checks = []
    for cid in course_ids:
        wanted = normalize_course_id(cid)
        checks.append(_check_entry(wanted, index.get(wanted), rec, max_depth))
    return BatchCheck(checks)


def unlocked_by(course_id: str, catalog: Catalog) -> List[str]:
    """Courses whose prerequisite tree mentions course_id anywhere (in any branch)."""
    wanted = normalize_course_id(course_id).casefold()
    out = []
    for cid, entry in catalog.items():
        if not entry.is_known:
            continue
        if any(normalize_course_id(c.id).casefold() == wanted for c in iter_courses(entry.prerequisites)):
            out.append(cid)
    return sorted(out)


def eligible_courses(
    catalog: Catalog,
    record: StudentRecord | Mapping[str, Any] | None,
    max_depth: int | None = None,
) -> List[str]:
    """
    Courses the student could sign up for next: not already in the record
    (completed, in progress or planned) and with prerequisites satisfied.
    Courses with undetermined prerequisites are skipped.
    """
    rec = as_student_record(record)
    out = []
    for cid, entry in catalog.items():
        if cid in rec or not entry.is_known:
            continue
        try:
            ok = is_satisfied(entry.prerequisites, rec, max_depth=max_depth)
        except PrereqError as e:
            logger.warning("Skipping %s: %s", cid, e)
            continue
        if ok:
            out.append(cid)
    return sorted(out)
