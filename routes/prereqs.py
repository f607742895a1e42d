"""Prerequisite endpoints

- POST /api/prereqs/parse     text -> stored tree (or the parse error)
- POST /api/prereqs/evaluate  tree/text + student record -> eligibility
"""

import logging

from flask import current_app, jsonify, request

from . import prereq_bp
from services.crawl import UNKNOWN_PREREQS_MESSAGE
from services.eligibility import StudentRecord, evaluate
from services.errors import PrereqError
from services.prereqs import try_parse
from services.req_ir import from_wire
from services.validation import summarize_record, validate_student_record


logger = logging.getLogger(__name__)


def _policy():
    return current_app.config.get("PREREQ_GROUPING")


def _max_depth():
    return current_app.config.get("PREREQ_MAX_DEPTH")


@prereq_bp.route("/prereqs/parse", methods=["POST"])
def parse_prereqs():
    body = request.get_json(silent=True) or {}
    text = body.get("text")
    if text is not None and not isinstance(text, str):
        return jsonify({"ok": False, "hints": ['"text" must be a string.']}), 400

    outcome = try_parse(text, policy=_policy(), max_depth=_max_depth())
    payload = outcome.to_dict()
    if not outcome.ok:
        payload["display"] = UNKNOWN_PREREQS_MESSAGE
    return jsonify(payload)


@prereq_bp.route("/prereqs/evaluate", methods=["POST"])
def evaluate_prereqs():
    body = request.get_json(silent=True) or {}
    record_raw = body.get("record") or {}

    hints = validate_student_record(record_raw)
    if hints:
        return jsonify({"ok": False, "hints": hints}), 400

    if "prerequisites" in body:
        try:
            prereqs = from_wire(body["prerequisites"], max_depth=_max_depth())
        except PrereqError as e:
            return jsonify({"ok": False, "error": e.to_dict()}), 400
    else:
        outcome = try_parse(body.get("text"), policy=_policy(), max_depth=_max_depth())
        if not outcome.ok:
            return jsonify({
                "ok": False,
                "error": outcome.error.to_dict(),
                "display": UNKNOWN_PREREQS_MESSAGE,
            }), 400
        prereqs = outcome.value

    logger.debug("Evaluating against record %s", summarize_record(record_raw))
    try:
        result = evaluate(prereqs, StudentRecord.from_dict(record_raw), max_depth=_max_depth())
    except PrereqError as e:
        return jsonify({"ok": False, "error": e.to_dict()}), 400

    return jsonify({"ok": True, **result.to_dict()})
