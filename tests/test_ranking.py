"""Tests for the deterministic ranking of report rows."""

from usageaudit.models import UsageReportRow
from usageaudit.ranking import rank


def _row(name: str, score: int, active: bool, path: str | None = None) -> UsageReportRow:
    return UsageReportRow(
        name=name,
        slug=name.lower(),
        install_path=path or f"{name.lower()}/{name.lower()}.php",
        is_active=active,
        usage_score=score,
    )


class TestRank:
    def test_score_descending(self):
        rows = [_row("A", 2, True), _row("B", 9, False), _row("C", 5, True)]
        assert [r.name for r in rank(rows)] == ["B", "C", "A"]

    def test_active_before_inactive_on_equal_score(self):
        rows = [_row("Alpha", 0, False), _row("Zeta", 0, True)]
        assert [r.name for r in rank(rows)] == ["Zeta", "Alpha"]

    def test_name_case_insensitive(self):
        rows = [_row("beta", 3, True), _row("Alpha", 3, True), _row("GAMMA", 3, True)]
        assert [r.name for r in rank(rows)] == ["Alpha", "beta", "GAMMA"]

    def test_full_tie_keeps_input_order(self):
        first = _row("Same", 2, True, path="one/x.php")
        second = _row("same", 2, True, path="two/x.php")
        assert [r.install_path for r in rank([first, second])] == ["one/x.php", "two/x.php"]
        assert [r.install_path for r in rank([second, first])] == ["two/x.php", "one/x.php"]

    def test_input_not_mutated(self):
        rows = [_row("A", 1, True), _row("B", 2, True)]
        rank(rows)
        assert [r.name for r in rows] == ["A", "B"]

    def test_empty(self):
        assert rank([]) == []
