"""Crawled term endpoints

- GET  /api/terms/<term>/courses/<id>/prereqs   stored tree or "could not be determined"
- GET  /api/terms/<term>/courses/<id>/unlocks   courses that list <id> as a prerequisite
- POST /api/terms/<term>/check                  {"courses": [...], "record": {...}} -> per-course verdicts
- POST /api/terms/<term>/eligible               {"record": {...}} -> untaken courses open to the student
"""

from flask import abort, current_app, jsonify, request

from . import prereq_bp
from services.crawl import dataset_path, load_term_dataset
from services.planning import check_courses, eligible_courses, unlocked_by
from services.req_ir import normalize_course_id, to_wire
from services.validation import validate_student_record


def _load_term(term: str):
    path = dataset_path(term, current_app.config["DATASET_DIR"])
    if not path.exists():
        abort(404, description=f"No crawled dataset for term {term}")
    return load_term_dataset(path)


def _max_depth():
    return current_app.config.get("PREREQ_MAX_DEPTH")


@prereq_bp.route("/terms/<term>/courses/<course_id>/prereqs")
def course_prereqs(term: str, course_id: str):
    courses = _load_term(term)
    # URLs carry "CS%201331" or "CS-1331"
    wanted = normalize_course_id(course_id)
    entry = courses.get(wanted)
    if entry is None:
        abort(404, description=f"Course {wanted} not found in term {term}")

    return jsonify(
        {
            "course_id": entry.course_id,
            "term": entry.term,
            "known": entry.is_known,
            "prerequisites": to_wire(entry.prerequisites) if entry.is_known else None,
            "display": entry.display_text(),
            "error": entry.error,
        }
    )


@prereq_bp.route("/terms/<term>/courses/<course_id>/unlocks")
def course_unlocks(term: str, course_id: str):
    courses = _load_term(term)
    wanted = normalize_course_id(course_id)
    return jsonify({"course_id": wanted, "term": term, "unlocks": unlocked_by(wanted, courses)})


@prereq_bp.route("/terms/<term>/check", methods=["POST"])
def check_term_courses(term: str):
    body = request.get_json(silent=True) or {}
    wanted = body.get("courses")
    record_raw = body.get("record") or {}

    hints = validate_student_record(record_raw)
    if not isinstance(wanted, list) or not all(isinstance(c, str) for c in wanted):
        hints.append('"courses" must be a list of course ids.')
    if hints:
        return jsonify({"ok": False, "hints": hints}), 400

    batch = check_courses(wanted, _load_term(term), record_raw, max_depth=_max_depth())
    return jsonify({"ok": True, "term": term, **batch.to_dict()})


@prereq_bp.route("/terms/<term>/eligible", methods=["POST"])
def eligible_term_courses(term: str):
    body = request.get_json(silent=True) or {}
    record_raw = body.get("record") or {}

    hints = validate_student_record(record_raw)
    if hints:
        return jsonify({"ok": False, "hints": hints}), 400

    eligible = eligible_courses(_load_term(term), record_raw, max_depth=_max_depth())
    return jsonify({"ok": True, "term": term, "eligible": eligible})
