import pytest

from services.errors import LexError
from utils.req_lexer import TokenKind, tokenize


def kinds(stream):
    return [t.kind for t in stream.tokens]


class TestTokenize:
    def test_catalog_sentence(self):
        s = tokenize(
            "CS 1331 Minimum Grade of C or CS 1301 Minimum Grade of C "
            "and (MATH 1554 or MATH 1564)"
        )
        assert s.ok
        assert kinds(s) == [
            TokenKind.COURSE, TokenKind.GRADE, TokenKind.OR,
            TokenKind.COURSE, TokenKind.GRADE, TokenKind.AND,
            TokenKind.LPAREN, TokenKind.COURSE, TokenKind.OR,
            TokenKind.COURSE, TokenKind.RPAREN,
        ]
        assert s.tokens[0].value == "CS 1331"
        assert s.tokens[1].value == "C"

    def test_offsets_point_into_source(self):
        text = "CS 1331 and MATH 1554"
        s = tokenize(text)
        for tok in s.tokens:
            assert text[tok.offset:tok.end] == tok.text

    def test_level_modifiers_are_dropped(self):
        s = tokenize("Undergraduate Semester level CS 1331 Minimum Grade of D or Graduate level CS 6300")
        assert s.ok
        assert kinds(s) == [TokenKind.COURSE, TokenKind.GRADE, TokenKind.OR, TokenKind.COURSE]

    def test_concurrency_phrase_in_parens_is_one_token(self):
        s = tokenize("MATH 1551 Minimum Grade of D (Course may be taken concurrently)")
        assert kinds(s) == [TokenKind.COURSE, TokenKind.GRADE, TokenKind.CONCURRENT]

    def test_bracket_grade_form(self):
        s = tokenize("CS 2110 [Min Grade: C]")
        assert kinds(s) == [TokenKind.COURSE, TokenKind.GRADE]
        assert s.tokens[1].value == "C"

    def test_course_ids_are_canonicalized(self):
        s = tokenize("cs 1331 or ece 2020l")
        assert [t.value for t in s.tokens if t.kind == TokenKind.COURSE] == ["CS 1331", "ECE 2020L"]

    def test_comma_is_an_implicit_and(self):
        s = tokenize("CS 1331, CS 1332")
        assert kinds(s) == [TokenKind.COURSE, TokenKind.AND, TokenKind.COURSE]
        assert s.tokens[1].is_comma

    def test_ampersand_is_and(self):
        s = tokenize("CS 1331 & CS 1332")
        assert kinds(s) == [TokenKind.COURSE, TokenKind.AND, TokenKind.COURSE]
        assert not s.tokens[1].is_comma

    def test_empty_text(self):
        assert len(tokenize("")) == 0
        assert len(tokenize(None)) == 0


class TestLexErrors:
    def test_unknown_words_merge_into_one_error(self):
        s = tokenize("CS 1331 or consent of instructor")
        assert kinds(s) == [TokenKind.COURSE, TokenKind.OR]
        assert len(s.errors) == 1
        err = s.errors[0]
        assert err.substring == "consent of instructor"
        assert err.offset == 11

    def test_collects_every_error(self):
        s = tokenize("foo CS 1331 and bar")
        assert [e.substring for e in s.errors] == ["foo", "bar"]
        assert kinds(s) == [TokenKind.COURSE, TokenKind.AND]

    def test_grade_off_the_scale(self):
        s = tokenize("CS 1331 Minimum Grade of Z")
        assert kinds(s) == [TokenKind.COURSE]
        assert s.errors[0].substring == "Z"
        assert s.errors[0].offset == 25

    def test_raise_for_errors(self):
        s = tokenize("CS 1331 or permission")
        with pytest.raises(LexError) as exc:
            s.raise_for_errors()
        assert exc.value.to_dict()["type"] == "lex_error"
        assert exc.value.span == (11, 21)

    def test_clean_stream_does_not_raise(self):
        tokenize("CS 1331").raise_for_errors()


def test_semicolon_and_final_period():
    s = tokenize("CS 1331; MATH 1554.")
    assert s.ok
    assert kinds(s) == [TokenKind.COURSE, TokenKind.AND, TokenKind.COURSE]
