"""Tests for result rows and results table reconciliation."""

import pytest

from errors import SchemaViolationError
from experiment.results import ResultsDictionary, build_results_table, collect_headers


class _StubTrial:
    def __init__(self, result):
        self.result = result


def _result(values, headers=("trial_num",), ad_hoc=True):
    result = ResultsDictionary(headers, ad_hoc=ad_hoc)
    for key, value in values.items():
        result[key] = value
    return result


class TestResultsDictionary:
    """Tests for ResultsDictionary."""

    def test_preseeded_with_empty_strings(self):
        result = ResultsDictionary(["a", "b"])
        assert result.to_dict() == {"a": "", "b": ""}

    def test_strict_rejects_undeclared(self):
        """Strict mode fails at the assignment."""
        result = ResultsDictionary(["a"], ad_hoc=False)
        with pytest.raises(SchemaViolationError):
            result["b"] = 1
        assert "b" not in result

    def test_ad_hoc_appends_in_order(self):
        result = ResultsDictionary(["a"], ad_hoc=True)
        result["c"] = 3
        result["b"] = 2
        assert result.keys() == ["a", "c", "b"]

    def test_add_column_ignores_mode(self):
        result = ResultsDictionary(["a"], ad_hoc=False)
        result.add_column("loc", "path")
        assert result["loc"] == "path"


class TestBuildResultsTable:
    """Tests for two-pass results reconciliation."""

    def test_header_union_first_appearance(self):
        results = [_result({"score": 5}), _result({"bonus": 1, "score": 7})]
        assert collect_headers(results) == ["trial_num", "score", "bonus"]

    def test_partial_overlap(self):
        """N trials give N + 1 equal-width lines."""
        trials = [
            _StubTrial(_result({"trial_num": 1, "score": 5})),
            _StubTrial(_result({"trial_num": 2, "score": 7, "bonus": 1})),
            _StubTrial(_result({"trial_num": 3, "rt": 0.4})),
        ]
        table = build_results_table(trials)
        lines = table.get_csv_lines()

        assert lines[0] == "trial_num,score,bonus,rt"
        assert lines[1] == "1,5,,"
        assert lines[2] == "2,7,1,"
        assert lines[3] == "3,,,0.4"
        assert len(lines) == 4
        assert {line.count(",") for line in lines} == {3}

    def test_unbegun_trials_skipped(self):
        """Trials without a result contribute no row."""
        trials = [_StubTrial(_result({"trial_num": 1})), _StubTrial(None)]
        table = build_results_table(trials)
        assert table.num_rows == 1

    def test_no_results(self):
        table = build_results_table([])
        assert table.get_csv_lines() == [""]

    def test_values_with_commas(self):
        trials = [_StubTrial(_result({"trial_num": "1,2"}))]
        assert build_results_table(trials).get_csv_lines()[1] == "1_2"
