import json
import logging

from conftest import AND, course
from scripts.crawl_prereqs import main as crawl_main
from services.crawl import (
    UNKNOWN_PREREQS_MESSAGE,
    load_term_dataset,
    parse_catalog,
    write_term_dataset,
)
from services.req_ir import EMPTY
from utils.course_catalog import CatalogCourse, load_catalog


CATALOG = [
    CatalogCourse("CS 1332", "Data Struct & Algorithms", "CS 1331 Minimum Grade of C"),
    CatalogCourse("CS 1301", "Intro to Computing", None),
    CatalogCourse("CS 9999", "Broken Listing", "CS 1331 and ("),
    CatalogCourse("CS 2340", "Objects and Design", "CS 1331 or consent of instructor"),
]


class TestParseCatalog:
    def test_one_bad_course_does_not_stop_the_crawl(self):
        result = parse_catalog(CATALOG, "202508", max_workers=2)
        assert [c.course_id for c in result.courses] == ["CS 1332", "CS 1301", "CS 9999", "CS 2340"]

        by_id = result.by_id()
        assert by_id["CS 1332"].prerequisites == AND(course("CS 1331", "C"))
        assert by_id["CS 1301"].prerequisites is EMPTY
        assert [c.course_id for c in result.failures] == ["CS 9999", "CS 2340"]
        assert result.error_counts() == {"parse_error": 1, "lex_error": 1}

    def test_failure_is_never_shown_as_none(self):
        by_id = parse_catalog(CATALOG, "202508").by_id()
        assert by_id["CS 1301"].display_text() == "None"
        assert by_id["CS 9999"].display_text() == UNKNOWN_PREREQS_MESSAGE
        assert not by_id["CS 9999"].is_known

    def test_failures_are_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="services.crawl"):
            parse_catalog(CATALOG, "202508")
        assert "CS 9999" in caplog.text


class TestTermDataset:
    def test_write_then_load(self, tmp_path):
        path = write_term_dataset(parse_catalog(CATALOG, "202508"), tmp_path / "202508.json")

        payload = json.loads(path.read_text(encoding="utf-8"))
        assert payload["version"] == 1
        assert payload["term"] == "202508"
        assert payload["courses"]["CS 1332"]["prerequisites"] == ["and", {"id": "CS 1331", "grade": "C"}]
        assert payload["courses"]["CS 1301"]["prerequisites"] == []
        assert payload["courses"]["CS 9999"]["prerequisites"] is None

        loaded = load_term_dataset(path)
        assert loaded["CS 1332"].prerequisites == AND(course("CS 1331", "C"))
        assert loaded["CS 1301"].prerequisites is EMPTY
        assert not loaded["CS 9999"].is_known
        assert loaded["CS 9999"].error["type"] == "parse_error"

    def test_undecodable_stored_tree(self, tmp_path):
        path = tmp_path / "202601.json"
        path.write_text(json.dumps({"term": "202601", "courses": {"CS 1332": {"prerequisites": ["and"]}}}))
        loaded = load_term_dataset(path)
        assert not loaded["CS 1332"].is_known
        assert loaded["CS 1332"].error["type"] == "decode_error"


class TestCatalogLoading:
    def test_csv(self, tmp_path):
        (tmp_path / "cs.csv").write_text(
            "Code,Name,Prerequisites\n"
            "CS 1332,Data Structures,CS 1331 Minimum Grade of C\n"
            "cs 1301,Intro to Computing,\n",
            encoding="utf-8",
        )
        courses = load_catalog(str(tmp_path))
        assert [c.code for c in courses] == ["CS 1301", "CS 1332"]
        assert courses[0].prereq_text is None
        assert courses[1].prereq_text == "CS 1331 Minimum Grade of C"

    def test_hyphenated_codes_are_canonicalized(self, tmp_path):
        (tmp_path / "cs.csv").write_text(
            "code,name,prereq_text\n"
            "CS-1332,Data Structures,CS 1331\n",
            encoding="utf-8",
        )
        assert [c.code for c in load_catalog(str(tmp_path))] == ["CS 1332"]

    def test_missing_directory(self, tmp_path):
        assert load_catalog(str(tmp_path / "nope")) == []

    def test_cli(self, tmp_path, capsys):
        catalog_dir = tmp_path / "catalog"
        catalog_dir.mkdir()
        (catalog_dir / "cs.csv").write_text(
            "code,name,prereq_text\n"
            "CS 1332,Data Structures,CS 1331 Minimum Grade of C\n"
            "CS 9999,Broken,CS 1331 and (\n",
            encoding="utf-8",
        )
        out = tmp_path / "terms" / "202508.json"

        assert crawl_main(["202508", "--catalog-dir", str(catalog_dir), "--out", str(out)]) == 0
        assert out.exists()
        printed = capsys.readouterr().out
        assert "Courses parsed: 2" in printed
        assert "Failed: 1" in printed
        assert "parse_error" in printed
