from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence, Union

from config import Config
from services.errors import ParseError, check_depth
from services.req_ir import Operator, ReqCourse
from utils.req_lexer import Token, TokenKind, TokenStream, tokenize


# -----------------------------
# Raw parse tree
# -----------------------------
# Binary and un-flattened on purpose; services.normalizer turns it into the
# n-ary ReqSet form.

@dataclass(frozen=True)
class ParseCourse:
    course: ReqCourse
    span: tuple[int, int]


@dataclass(frozen=True)
class ParseBinary:
    operator: Operator
    left: "ParseNode"
    right: "ParseNode"

    @property
    def span(self) -> tuple[int, int]:
        return (self.left.span[0], self.right.span[1])


ParseNode = Union[ParseCourse, ParseBinary]


# -----------------------------
# Grouping policies
# -----------------------------
# The catalog has no published precedence for un-parenthesized mixed and/or,
# so how a flat "A op B op C ..." sequence is grouped is a swappable policy.
# A policy gets n operands and n-1 operators and returns one node.

GroupingPolicy = Callable[[Sequence[ParseNode], Sequence[Operator]], ParseNode]


def _fold_left(operands: Sequence[ParseNode], operators: Sequence[Operator]) -> ParseNode:
    node = operands[0]
    for op, rhs in zip(operators, operands[1:]):
        node = ParseBinary(op, node, rhs)
    return node


def group_left_to_right(operands: Sequence[ParseNode], operators: Sequence[Operator]) -> ParseNode:
    """Strict textual order, no precedence: A or B and C == (A or B) and C."""
    return _fold_left(operands, operators)


def group_and_first(operands: Sequence[ParseNode], operators: Sequence[Operator]) -> ParseNode:
    """Conventional precedence: A or B and C == A or (B and C)."""
    runs: list[ParseNode] = []
    run = [operands[0]]
    for op, rhs in zip(operators, operands[1:]):
        if op == Operator.OR:
            runs.append(_fold_left(run, [Operator.AND] * (len(run) - 1)))
            run = [rhs]
        else:
            run.append(rhs)
    runs.append(_fold_left(run, [Operator.AND] * (len(run) - 1)))
    return _fold_left(runs, [Operator.OR] * (len(runs) - 1))


GROUPING_POLICIES: dict[str, GroupingPolicy] = {
    "left_to_right": group_left_to_right,
    "and_first": group_and_first,
}


def get_grouping_policy(policy: str | GroupingPolicy | None = None) -> GroupingPolicy:
    if policy is None:
        policy = Config.PREREQ_GROUPING
    if callable(policy):
        return policy
    try:
        return GROUPING_POLICIES[policy]
    except KeyError:
        raise ValueError(f"Unknown grouping policy {policy!r}") from None


def resolve_commas(connectives: Sequence[Token]) -> list[Operator]:
    """A comma takes the nearest explicit connective to its right, else AND.

    "A, B, or C" -> or, or     "A and B, C" -> and, and
    """
    out: list[Operator] = []
    pending = Operator.AND
    for tok in reversed(connectives):
        if tok.is_comma:
            out.append(pending)
        else:
            pending = Operator(tok.kind.value)
            out.append(pending)
    out.reverse()
    return out


# -----------------------------
# Recursive descent
# -----------------------------
# expression := term (connective term)*
# term       := "(" expression ")" | course [grade] [concurrent]

class Parser:
    def __init__(self, stream: TokenStream, policy: GroupingPolicy, max_depth: int):
        self.stream = stream
        self.tokens = stream.tokens
        self.pos = 0
        self.policy = policy
        self.max_depth = max_depth

    def _peek(self) -> Token | None:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _next(self) -> Token | None:
        tok = self._peek()
        if tok is not None:
            self.pos += 1
        return tok

    def parse(self) -> ParseNode:
        if not self.tokens:
            raise ParseError("No prerequisite terms found", span=(0, len(self.stream.text)))

        node = self._expression(depth=0)

        extra = self._peek()
        if extra is not None:
            # _expression only stops early on ')'
            raise ParseError("Unmatched ')'", extra.span)
        return node

    def _expression(self, depth: int) -> ParseNode:
        operands = [self._term(depth)]
        connectives: list[Token] = []

        while True:
            tok = self._peek()
            if tok is None or tok.kind == TokenKind.RPAREN:
                break
            if not tok.is_connective:
                raise ParseError(f"Expected 'and' or 'or' before {tok.text!r}", tok.span)

            conn = self._connective()
            following = self._peek()
            if following is None or following.kind == TokenKind.RPAREN:
                raise ParseError(f"Dangling connective {conn.text!r}", conn.span)

            connectives.append(conn)
            operands.append(self._term(depth))

        if len(operands) == 1:
            return operands[0]
        return self.policy(operands, resolve_commas(connectives))

    def _connective(self) -> Token:
        tok = self._next()
        nxt = self._peek()
        # ", or" / ", and": the explicit word wins
        if tok.is_comma and nxt is not None and nxt.is_connective and not nxt.is_comma:
            return self._next()
        return tok

    def _term(self, depth: int) -> ParseNode:
        tok = self._next()
        if tok is None:
            raise ParseError("Expected a course or '('", span=(len(self.stream.text), len(self.stream.text)))

        if tok.kind == TokenKind.LPAREN:
            check_depth(depth + 1, self.max_depth, "parenthesis")
            nxt = self._peek()
            if nxt is None:
                raise ParseError("Unmatched '('", tok.span)
            if nxt.kind == TokenKind.RPAREN:
                raise ParseError("Empty parenthesized group", (tok.offset, nxt.end))

            inner = self._expression(depth + 1)
            if self._next() is None:
                raise ParseError("Unmatched '('", tok.span)
            return inner

        if tok.kind == TokenKind.COURSE:
            return self._course_clause(tok)

        if tok.is_connective:
            raise ParseError(f"Connective {tok.text!r} has nothing before it", tok.span)
        if tok.kind == TokenKind.RPAREN:
            raise ParseError("Unmatched ')'", tok.span)

        # GRADE / CONCURRENT with no course right before it
        raise ParseError(f"{tok.text!r} does not follow a course", tok.span)

    def _course_clause(self, tok: Token) -> ParseCourse:
        grade: str | None = None
        concurrent = False
        end = tok.end

        while True:
            nxt = self._peek()
            if nxt is None or nxt.kind not in (TokenKind.GRADE, TokenKind.CONCURRENT):
                break
            self._next()
            if nxt.kind == TokenKind.GRADE:
                if grade is not None:
                    raise ParseError(f"{tok.value} has more than one grade clause", nxt.span)
                grade = nxt.value
            else:
                if concurrent:
                    raise ParseError(f"{tok.value} has more than one concurrency clause", nxt.span)
                concurrent = True
            end = nxt.end

        return ParseCourse(ReqCourse(id=tok.value, grade=grade, concurrent=concurrent), (tok.offset, end))


def parse_tokens(
    stream: TokenStream,
    policy: str | GroupingPolicy | None = None,
    max_depth: int | None = None,
) -> ParseNode:
    limit = Config.PREREQ_MAX_DEPTH if max_depth is None else max_depth
    return Parser(stream, get_grouping_policy(policy), limit).parse()


def parse_req_text(
    text: str | None,
    policy: str | GroupingPolicy | None = None,
    max_depth: int | None = None,
) -> ParseNode | None:
    """
    Strict text -> raw parse tree. Returns None for blank text (no
    prerequisites); raises the first LexError, or a ParseError/DepthExceeded.
    """
    if not text or not text.strip():
        return None

    stream = tokenize(text)
    stream.raise_for_errors()
    return parse_tokens(stream, policy=policy, max_depth=max_depth)
