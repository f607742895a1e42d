"""
Public entry points of the prerequisite compiler.

    parse(text)      -> Prerequisites        raises PrereqError subclasses
    try_parse(text)  -> ParseOutcome          never raises on bad input
    evaluate(p, rec) -> EvaluationResult
    is_satisfied(p, rec) -> bool
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from services.eligibility import EvaluationResult, evaluate, is_satisfied  # noqa: F401
from services.errors import PrereqError
from services.normalizer import normalize
from services.req_ir import EMPTY, Prerequisites, to_wire
from utils.req_parser import GroupingPolicy, parse_req_text


def parse(
    raw_text: str | None,
    policy: str | GroupingPolicy | None = None,
    max_depth: int | None = None,
) -> Prerequisites:
    tree = parse_req_text(raw_text, policy=policy, max_depth=max_depth)
    if tree is None:
        return EMPTY
    return normalize(tree, max_depth=max_depth)


@dataclass(frozen=True)
class ParseOutcome:
    ok: bool
    value: Optional[Prerequisites] = None
    error: Optional[PrereqError] = None

    def to_dict(self) -> dict[str, Any]:
        if self.ok:
            return {"ok": True, "value": to_wire(self.value)}
        return {"ok": False, "error": self.error.to_dict()}


def try_parse(
    raw_text: str | None,
    policy: str | GroupingPolicy | None = None,
    max_depth: int | None = None,
) -> ParseOutcome:
    try:
        return ParseOutcome(ok=True, value=parse(raw_text, policy=policy, max_depth=max_depth))
    except PrereqError as e:
        return ParseOutcome(ok=False, error=e)
