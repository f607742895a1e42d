from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import csv
import logging
import re
import pandas as pd

from services.req_ir import normalize_course_id


logger = logging.getLogger(__name__)


# One catalog row: the course and its raw prerequisite text as published.
# Parsing happens later, in services.crawl.
@dataclass(frozen=True)
class CatalogCourse:
    code: str
    name: str
    prereq_text: str | None = None


CODE_COLUMNS = ("code", "course", "course_id", "id")
NAME_COLUMNS = ("name", "title", "course_title")
PREREQ_COLUMNS = ("prereq_text", "prerequisites", "prereqs", "prerequisite")


def normalize_text(s) -> str:
    s = str(s or "").strip()
    s = s.replace("–", "-").replace("\u00a0", " ")
    s = re.sub(r"\s+", " ", s)
    return s


def _pick(row: dict, names: tuple[str, ...]) -> str:
    for n in names:
        v = row.get(n)
        if v is None or (isinstance(v, float) and pd.isna(v)):
            continue
        s = normalize_text(v)
        if s:
            return s
    return ""


def _lower_keys(row: dict) -> dict:
    return {str(k).strip().lower(): v for k, v in row.items() if k is not None}


def _row_to_course(row: dict) -> CatalogCourse | None:
    row = _lower_keys(row)
    code = _pick(row, CODE_COLUMNS)
    if not code:
        return None
    return CatalogCourse(
        code=normalize_course_id(code),
        name=_pick(row, NAME_COLUMNS),
        prereq_text=_pick(row, PREREQ_COLUMNS) or None,
    )


def load_catalog(directory: str) -> list[CatalogCourse]:
    p = Path(directory)
    if not p.exists() or not p.is_dir():
        logger.warning("Catalog directory %s does not exist", directory)
        return []

    items: list[CatalogCourse] = []

    for f in sorted(p.glob("*.xlsx")):
        try:
            items.extend(_load_xlsx_catalog(f))
        except Exception as e:
            # one unreadable workbook shouldn't sink the whole catalog
            logger.warning("Skipping %s: %s", f.name, e)

    for f in sorted(p.glob("*.csv")):
        try:
            items.extend(_load_csv_catalog(f))
        except (OSError, csv.Error, UnicodeDecodeError) as e:
            logger.warning("Skipping %s: %s", f.name, e)

    # De-dup by code, later files win
    uniq = {c.code: c for c in items}
    out = list(uniq.values())
    out.sort(key=lambda c: c.code)
    logger.info("Loaded %d catalog courses from %s", len(out), directory)
    return out


def _load_csv_catalog(f: Path) -> list[CatalogCourse]:
    items: list[CatalogCourse] = []
    with f.open(newline="", encoding="utf-8") as fh:
        reader = csv.DictReader(fh)
        for row in reader:
            course = _row_to_course(row)
            if course is not None:
                items.append(course)
    return items


def _load_xlsx_catalog(f: Path) -> list[CatalogCourse]:
    df = pd.read_excel(f)
    items: list[CatalogCourse] = []
    for _, r in df.iterrows():
        course = _row_to_course(r.to_dict())
        if course is not None:
            items.append(course)
    return items
