from __future__ import annotations

import json
import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from config import Config
from services.prereqs import try_parse
from services.req_ir import Prerequisites, from_wire, to_wire
from utils.course_catalog import CatalogCourse


logger = logging.getLogger(__name__)

DATASET_VERSION = 1

UNKNOWN_PREREQS_MESSAGE = "Prerequisites could not be determined - consult the catalog"
NO_PREREQS_MESSAGE = "None"


@dataclass(frozen=True)
class CoursePrereqs:
    """Parse result for one course in one term.

    prerequisites is None only when parsing failed; "no prerequisites" is the
    EMPTY sentinel, never None.
    """

    course_id: str
    term: str
    prerequisites: Optional[Prerequisites] = None
    error: Optional[Dict[str, Any]] = None
    raw_text: Optional[str] = None

    @property
    def is_known(self) -> bool:
        return self.error is None and self.prerequisites is not None

    def display_text(self) -> str:
        # never fall back to "None" on failure: that would read as eligible
        if not self.is_known:
            return UNKNOWN_PREREQS_MESSAGE
        if not self.prerequisites:
            return NO_PREREQS_MESSAGE
        return str(self.prerequisites)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "prerequisites": to_wire(self.prerequisites) if self.is_known else None,
            "error": self.error,
            "raw": self.raw_text,
        }


@dataclass
class CrawlResult:
    term: str
    courses: List[CoursePrereqs] = field(default_factory=list)

    @property
    def failures(self) -> List[CoursePrereqs]:
        return [c for c in self.courses if not c.is_known]

    def by_id(self) -> Dict[str, CoursePrereqs]:
        return {c.course_id: c for c in self.courses}

    def error_counts(self) -> Counter:
        return Counter(c.error["type"] for c in self.failures)


def parse_course(course: CatalogCourse, term: str) -> CoursePrereqs:
    outcome = try_parse(course.prereq_text)
    if outcome.ok:
        return CoursePrereqs(course.code, term, outcome.value, raw_text=course.prereq_text)

    logger.warning("Could not parse prerequisites for %s (%s): %s", course.code, term, outcome.error)
    return CoursePrereqs(course.code, term, None, outcome.error.to_dict(), raw_text=course.prereq_text)


def parse_catalog(
    courses: Iterable[CatalogCourse],
    term: str,
    max_workers: int | None = None,
) -> CrawlResult:
    """
    Parse every course's prerequisite text for one term.

    Each course is independent, so this is a plain fan-out over a thread pool;
    results come back in input order. A course that fails to parse becomes a
    per-course error record and never stops the rest of the crawl.
    """
    courses = list(courses)
    workers = max_workers if max_workers is not None else Config.CRAWL_MAX_WORKERS

    with ThreadPoolExecutor(max_workers=workers) as pool:
        parsed = list(pool.map(lambda c: parse_course(c, term), courses))

    result = CrawlResult(term=term, courses=parsed)
    logger.info(
        "Parsed prerequisites for %d courses in term %s (%d failed)",
        len(parsed), term, len(result.failures),
    )
    return result


# -----------------------------
# Term dataset (JSON on disk)
# -----------------------------

def dataset_path(term: str, directory: str | None = None) -> Path:
    return Path(directory or Config.DATASET_DIR) / f"{term}.json"


def write_term_dataset(result: CrawlResult, path: str | Path) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)

    payload = {
        "version": DATASET_VERSION,
        "term": result.term,
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "courses": {c.course_id: c.to_dict() for c in result.courses},
    }
    out.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    logger.info("Wrote %s with %d courses", out, len(result.courses))
    return out


def load_term_dataset(path: str | Path) -> Dict[str, CoursePrereqs]:
    """
    Read a term file back. Courses whose stored tree failed to parse (or no
    longer decodes) come back with is_known == False.
    """
    p = Path(path)
    data = json.loads(p.read_text(encoding="utf-8"))
    term = str(data.get("term") or p.stem)

    out: Dict[str, CoursePrereqs] = {}
    for course_id, entry in (data.get("courses") or {}).items():
        error = entry.get("error")
        stored = entry.get("prerequisites")
        raw = entry.get("raw")

        if error is not None or stored is None:
            out[course_id] = CoursePrereqs(course_id, term, None, error or {"type": "missing"}, raw)
            continue
        try:
            out[course_id] = CoursePrereqs(course_id, term, from_wire(stored), raw_text=raw)
        except ValueError as e:
            logger.warning("Stored prerequisites for %s (%s) do not decode: %s", course_id, term, e)
            out[course_id] = CoursePrereqs(
                course_id, term, None, {"type": "decode_error", "message": str(e)}, raw
            )
    return out
