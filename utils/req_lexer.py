from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

from services.errors import LexError
from services.req_ir import KNOWN_GRADES, canonical_course_id


class TokenKind(str, Enum):
    COURSE = "course"
    AND = "and"
    OR = "or"
    LPAREN = "lparen"
    RPAREN = "rparen"
    GRADE = "grade"
    CONCURRENT = "concurrent"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str       # raw span as it appears in the catalog text
    offset: int
    value: str | None = None  # canonical course id / grade letter

    @property
    def end(self) -> int:
        return self.offset + len(self.text)

    @property
    def span(self) -> tuple[int, int]:
        return (self.offset, self.end)

    @property
    def is_connective(self) -> bool:
        return self.kind in (TokenKind.AND, TokenKind.OR)

    @property
    def is_comma(self) -> bool:
        return self.kind == TokenKind.AND and self.text == ","


@dataclass
class TokenStream:
    text: str
    tokens: list[Token] = field(default_factory=list)
    errors: list[LexError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        if self.errors:
            raise self.errors[0]

    def __iter__(self):
        return iter(self.tokens)

    def __len__(self) -> int:
        return len(self.tokens)


_FLAGS = re.IGNORECASE

_CONCURRENT_PHRASE = r"(?:(?:course|prerequisite|prereq)\s+)?may\s+be\s+taken\s+concurrently"
_GRADE_VALUE = r"(?P<grade>[A-Za-z]{1,2}[+-]?)"

# Order matters: earlier patterns win at the same position.
_SKIP = re.compile(r"\s+|\.(?=\s*$)|\b(?:under)?graduate\s+(?:(?:semester|quarter)\s+)?level\b", _FLAGS)

_PATTERNS: list[tuple[TokenKind, re.Pattern[str]]] = [
    (TokenKind.CONCURRENT, re.compile(rf"\(\s*{_CONCURRENT_PHRASE}\s*\)|{_CONCURRENT_PHRASE}\b", _FLAGS)),
    (TokenKind.GRADE, re.compile(rf"\[\s*min(?:imum)?\.?\s+grade\s*:?\s*(?:of\s+)?{_GRADE_VALUE}\s*\]", _FLAGS)),
    (TokenKind.GRADE, re.compile(rf"\bmin(?:imum)?\.?\s+grade\s*(?:of\b|:)?\s*{_GRADE_VALUE}(?![A-Za-z])", _FLAGS)),
    (TokenKind.COURSE, re.compile(r"\b(?!(?:and|or)\b)(?P<subject>[A-Za-z]{2,4})\s+(?P<number>\d{4}[A-Za-z]?)\b", _FLAGS)),
    (TokenKind.AND, re.compile(r"\band\b|&|,|;", _FLAGS)),
    (TokenKind.OR, re.compile(r"\bor\b", _FLAGS)),
    (TokenKind.LPAREN, re.compile(r"\(")),
    (TokenKind.RPAREN, re.compile(r"\)")),
]

# What an unrecognized chunk looks like: a run up to the next delimiter.
_UNKNOWN_CHUNK = re.compile(r"[^\s()\[\],&;]+|.")


def _make_token(kind: TokenKind, m: re.Match[str], errors: list[LexError]) -> Token | None:
    text = m.group(0)
    if kind == TokenKind.COURSE:
        return Token(kind, text, m.start(), canonical_course_id(m.group("subject"), m.group("number")))

    if kind == TokenKind.GRADE:
        grade = m.group("grade").upper()
        if grade not in KNOWN_GRADES:
            errors.append(LexError(m.group("grade"), m.start("grade")))
            return None
        return Token(kind, text, m.start(), grade)

    return Token(kind, text, m.start())


def tokenize(raw_text: str | None) -> TokenStream:
    """Split catalog prerequisite text into tokens.

    Never raises. Unrecognized spans become LexErrors collected on the stream
    (adjacent unknown words are merged into one error) and lexing carries on,
    so a caller can look at both what was understood and what was not.
    """
    text = raw_text or ""
    stream = TokenStream(text=text)

    pos = 0
    unknown_start: int | None = None
    unknown_end = 0

    def close_unknown():
        nonlocal unknown_start
        if unknown_start is not None:
            stream.errors.append(LexError(text[unknown_start:unknown_end], unknown_start))
            unknown_start = None

    while pos < len(text):
        skip = _SKIP.match(text, pos)
        if skip and skip.end() > pos:
            # whitespace between two unknown words keeps the error open
            if not skip.group(0).isspace():
                close_unknown()
            pos = skip.end()
            continue

        for kind, rx in _PATTERNS:
            m = rx.match(text, pos)
            if m:
                close_unknown()
                tok = _make_token(kind, m, stream.errors)
                if tok is not None:
                    stream.tokens.append(tok)
                pos = m.end()
                break
        else:
            chunk = _UNKNOWN_CHUNK.match(text, pos)
            if unknown_start is None:
                unknown_start = pos
            unknown_end = chunk.end()
            pos = chunk.end()

    close_unknown()
    return stream
