# services/validation.py

from __future__ import annotations
from typing import Any, Dict, List

from services.eligibility import CourseStatus
from services.req_ir import COURSE_ID_RE, KNOWN_GRADES


_STATUSES = {s.value for s in CourseStatus}


def validate_student_record(record: Any) -> List[str]:
    """
    Validate a student record payload BEFORE building a StudentRecord.
    Returns a list of readable hints. Empty list => safe to evaluate.

    Expected shape:
      {"CS 1331": {"status": "completed", "grade": "B"},
       "MATH 1554": {"status": "in-progress"},
       "CS 1301": "A"}            (bare grade => completed)
    """
    hints: List[str] = []

    if record is None:
        return hints
    if not isinstance(record, dict):
        hints.append("Student record must be an object mapping course ids to entries.")
        return hints

    for course_id, entry in record.items():
        if not COURSE_ID_RE.match(" ".join(str(course_id).split())):
            hints.append(f'"{course_id}" does not look like a course id (e.g. "CS 1331").')

        if isinstance(entry, str):
            grade = entry.strip().upper()
            if grade and grade not in KNOWN_GRADES:
                hints.append(f'Course "{course_id}" has unknown grade "{entry}".')
            continue

        if not isinstance(entry, dict):
            hints.append(f'Course "{course_id}" entry must be a grade or an object with status/grade.')
            continue

        status = str(entry.get("status", "completed")).strip().lower()
        if status not in _STATUSES:
            hints.append(
                f'Course "{course_id}" has unknown status "{entry.get("status")}". '
                f"Use one of: {', '.join(sorted(_STATUSES))}."
            )

        grade = entry.get("grade")
        if grade and str(grade).strip().upper() not in KNOWN_GRADES:
            hints.append(f'Course "{course_id}" has unknown grade "{grade}".')

    return hints


def summarize_record(record: Dict[str, Any]) -> Dict[str, int]:
    # counts per status, for log lines
    counts: Dict[str, int] = {s: 0 for s in sorted(_STATUSES)}
    for entry in (record or {}).values():
        status = "completed" if isinstance(entry, str) else str(entry.get("status", "completed")).lower()
        if status in counts:
            counts[status] += 1
    return counts
