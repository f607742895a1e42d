import pytest

from conftest import AND, OR, course
from services.eligibility import (
    CourseRecord,
    CourseStatus,
    NodeStatus,
    StudentRecord,
    evaluate,
    grade_meets,
    is_satisfied,
)
from services.errors import DepthExceeded, GradeComparisonError
from services.prereqs import parse
from services.req_ir import EMPTY, Operator, ReqSet, from_wire


def nested(levels):
    clause = course("CS 1331")
    for i in range(levels):
        op = Operator.AND if i % 2 else Operator.OR
        clause = ReqSet(op, (clause, course(f"CS {2000 + i}")))
    return clause


class TestGrades:
    @pytest.mark.parametrize(
        "recorded,required,expected",
        [("A", "C", True), ("C", "C", True), ("D", "C", False), ("F", "D", False),
         ("S", "S", True), ("A", "S", False), ("S", "C", False), ("b", "c", True)],
    )
    def test_grade_meets(self, recorded, required, expected):
        assert grade_meets(recorded, required) is expected

    def test_unknown_grade(self):
        with pytest.raises(GradeComparisonError):
            grade_meets("W", "C")


class TestEvaluate:
    def test_empty_prereqs_always_satisfied(self):
        result = evaluate(EMPTY, {"CS 1331": "A"})
        assert result.satisfied
        assert result.tree.status == NodeStatus.NOT_APPLICABLE
        assert evaluate(EMPTY, None).satisfied
        assert is_satisfied(EMPTY, {})

    def test_and_needs_every_clause(self):
        prereqs = from_wire(["and", {"id": "CS 1331"}, {"id": "CS 1301"}])
        result = evaluate(prereqs, {"CS 1331": "C"})
        assert not result.satisfied
        assert result.missing == [course("CS 1301")]

    def test_or_needs_one_clause(self):
        prereqs = from_wire(["or", {"id": "CS 1331"}, {"id": "CS 1301"}])
        assert evaluate(prereqs, {"CS 1301": "B"}).satisfied

    def test_grade_threshold(self):
        prereqs = from_wire([{"id": "MATH 1554", "grade": "C"}])
        assert not evaluate(prereqs, {"MATH 1554": "D"}).satisfied
        assert evaluate(prereqs, {"MATH 1554": "B"}).satisfied

    def test_nested_grouping(self):
        prereqs = parse("(CS 1331 or CS 1301) and MATH 1554")
        record = {"CS 1301": "B", "MATH 1554": {"status": "completed"}}
        assert evaluate(prereqs, record).satisfied

    def test_in_progress_is_pending(self):
        prereqs = parse("CS 1331 Minimum Grade of C")
        result = evaluate(prereqs, {"CS 1331": {"status": "in-progress"}})
        assert result.satisfied
        assert result.pending
        assert result.tree.children[0].status == NodeStatus.PENDING

    def test_planned_does_not_count(self):
        prereqs = parse("CS 1331")
        assert not evaluate(prereqs, {"CS 1331": {"status": "planned"}}).satisfied

    def test_completed_without_grade_cannot_prove_a_minimum(self):
        prereqs = parse("CS 1331 Minimum Grade of C")
        assert not evaluate(prereqs, {"CS 1331": {"status": "completed"}}).satisfied

    def test_pass_fail_requirement(self):
        prereqs = from_wire([{"id": "CS 1100", "grade": "S"}])
        assert evaluate(prereqs, {"CS 1100": "S"}).satisfied
        assert not evaluate(prereqs, {"CS 1100": "A"}).satisfied

    def test_record_lookup_is_case_insensitive(self):
        assert evaluate(parse("CS 1331"), {"cs  1331": "A"}).satisfied

    def test_unknown_recorded_grade_raises(self):
        with pytest.raises(GradeComparisonError):
            evaluate(parse("CS 1331 Minimum Grade of C"), {"CS 1331": "W"})

    def test_and_explains_every_unmet_branch(self):
        result = evaluate(parse("CS 1331 and CS 1332"), {})
        assert [c.status for c in result.tree.children] == [NodeStatus.UNSATISFIED] * 2
        assert result.missing == [course("CS 1331"), course("CS 1332")]


class TestOrSelection:
    def test_completed_branch_beats_pending(self):
        record = {"CS 1331": {"status": "in-progress"}, "CS 1301": "A"}
        result = evaluate(parse("CS 1331 or CS 1301"), record)
        assert result.tree.status == NodeStatus.SATISFIED
        assert result.tree.selected == 1

    def test_first_satisfying_branch_wins_ties(self):
        result = evaluate(parse("CS 1331 or CS 1301"), {"CS 1331": "A", "CS 1301": "A"})
        assert result.tree.selected == 0

    def test_pending_only(self):
        result = evaluate(parse("CS 1331 or CS 1301"), {"CS 1301": {"status": "in-progress"}})
        assert result.tree.status == NodeStatus.PENDING
        assert result.tree.selected == 1

    def test_missing_follows_most_nearly_satisfied_branch(self):
        prereqs = parse("(CS 1331 and CS 1332 and CS 1333) or (MATH 1554 and MATH 1555)")
        result = evaluate(prereqs, {"CS 1331": "A", "MATH 1554": "A"})
        assert not result.satisfied
        assert result.tree.selected == 1
        assert result.missing == [course("MATH 1555")]

    def test_missing_tie_goes_to_catalog_order(self):
        result = evaluate(parse("CS 1331 or CS 1301"), {})
        assert result.missing == [course("CS 1331")]

    def test_nested_or_inside_and(self):
        prereqs = parse("(CS 1331 or CS 1301) and (MATH 1554 or MATH 1564)")
        result = evaluate(prereqs, {"CS 1301": "B"})
        assert result.missing == [course("MATH 1554")]


class TestDepthAndShortcut:
    def test_deep_tree_raises(self):
        with pytest.raises(DepthExceeded):
            evaluate(nested(50), {})
        with pytest.raises(DepthExceeded):
            is_satisfied(nested(50), {})

    def test_within_limit(self):
        assert not evaluate(nested(5), {}).satisfied
        assert evaluate(nested(5), {}, max_depth=5) is not None

    @pytest.mark.parametrize(
        "text,record",
        [
            ("CS 1331 and CS 1301", {"CS 1331": "C"}),
            ("CS 1331 or CS 1301", {"CS 1301": "B"}),
            ("(CS 1331 or CS 1301) and MATH 1554", {"CS 1301": "B", "MATH 1554": "A"}),
            ("CS 1331 Minimum Grade of B", {"CS 1331": "C"}),
        ],
    )
    def test_is_satisfied_agrees_with_evaluate(self, text, record):
        prereqs = parse(text)
        assert is_satisfied(prereqs, record) == evaluate(prereqs, record).satisfied


class TestStudentRecord:
    def test_from_dict(self):
        rec = StudentRecord.from_dict({"CS 1331": "b", "CS 1332": {"status": "In-Progress"}})
        assert rec.lookup("CS 1331") == CourseRecord(CourseStatus.COMPLETED, "B")
        assert rec.lookup("cs 1332") == CourseRecord(CourseStatus.IN_PROGRESS, None)
        assert "CS 1333" not in rec
        assert len(rec) == 2

    def test_result_to_dict(self):
        prereqs = from_wire(["and", {"id": "CS 1331"}, {"id": "CS 1301"}])
        out = evaluate(prereqs, {"CS 1331": "C"}).to_dict()
        assert out["satisfied"] is False
        assert out["missing"] == [{"id": "CS 1301"}]
        assert out["tree"]["operator"] == "and"
        assert [c["status"] for c in out["tree"]["children"]] == ["satisfied", "unsatisfied"]
