from __future__ import annotations

from typing import Any, Iterable

from config import Config
from services.errors import NormalizationError, check_depth
from services.req_ir import EMPTY, Clause, Operator, Prerequisites, ReqCourse, ReqSet
from utils.req_parser import ParseBinary, ParseCourse


def _op_and_children(node: Any) -> tuple[Operator | None, tuple]:
    if isinstance(node, ParseBinary):
        return node.operator, (node.left, node.right)
    if isinstance(node, ReqSet):
        return node.operator, node.items
    return None, ()


def _operands(node: Any, op: Operator) -> list[Any]:
    # Unroll a same-operator chain without recursion; a long "A or B or ..."
    # list is a left-leaning binary spine straight out of the parser.
    out = []
    stack = [node]
    while stack:
        cur = stack.pop()
        cur_op, children = _op_and_children(cur)
        if cur_op == op:
            stack.extend(reversed(children))
        else:
            out.append(cur)
    return out


def dedupe(items: Iterable[Clause]) -> list[Clause]:
    seen = set()
    out = []
    for it in items:
        key = it.key()
        if key in seen:
            continue
        seen.add(key)
        out.append(it)
    return out


def _normalize_clause(node: Any, depth: int, limit: int) -> Clause:
    if isinstance(node, ParseCourse):
        return node.course
    if isinstance(node, ReqCourse):
        return node

    op, _ = _op_and_children(node)
    if op is None:
        raise NormalizationError(f"Cannot normalize {node!r}")
    check_depth(depth, limit, "prerequisite")

    items: list[Clause] = []
    for operand in _operands(node, op):
        child = _normalize_clause(operand, depth + 1, limit)
        if isinstance(child, ReqSet) and child.operator == op:
            items.extend(child.items)
        else:
            items.append(child)

    items = dedupe(items)
    if not items:
        raise NormalizationError(f"'{op.value}' set lost all of its clauses")
    if len(items) == 1:
        return items[0]
    return ReqSet(op, tuple(items))


def normalize(tree: Any, max_depth: int | None = None) -> Prerequisites:
    """
    Raw parse tree (or an already-normalized value) -> canonical Prerequisites.

      - same-operator runs flatten into one n-ary set
      - single-child sets collapse into the child
      - repeated course+grade clauses in one set are dropped (first one wins)
      - catalog order is kept

    The root is always a ReqSet or EMPTY: a lone course comes back as a
    one-child AND set.
    """
    limit = Config.PREREQ_MAX_DEPTH if max_depth is None else max_depth
    if tree is None or tree is EMPTY:
        return EMPTY

    clause = _normalize_clause(tree, 1, limit)
    if isinstance(clause, ReqCourse):
        return ReqSet(Operator.AND, (clause,))
    return clause
