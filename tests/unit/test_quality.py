"""
Unit Tests for missing-value handling

1. Issue listing order
2. Bulk remediation
3. Manual cell correction
"""

import numpy as np
import pandas as pd
import pytest

from statscope.core.exceptions import InvalidNumericInput, ValidationError
from statscope.engine.quality import edit_cell, find_issues, parse_numeric, remediate
from statscope.engine.types import QualityAction

pytestmark = pytest.mark.unit


class TestFindIssues:

    def test_row_major_order(self):
        df = pd.DataFrame({"a": [np.nan, 1.0], "b": [np.nan, np.nan]})

        issues = find_issues(df)

        assert [(i.row, i.column) for i in issues] == [(0, "a"), (0, "b"), (1, "b")]
        assert all(i.kind == "missing" for i in issues)

    def test_clean_frame(self):
        assert find_issues(pd.DataFrame({"a": [1, 2]})) == []


class TestRemediate:

    def test_delete_then_no_issues(self, missing_frame):
        out = remediate(missing_frame, QualityAction.DELETE)

        assert find_issues(out) == []
        assert len(out) == 3
        assert out.index.tolist() == [0, 1, 2]
        assert out["y"].tolist() == [1.0, 4.0, 5.0]

    def test_does_not_modify_input(self, missing_frame):
        before = missing_frame.copy()
        remediate(missing_frame, "impute_mean")
        pd.testing.assert_frame_equal(missing_frame, before)

    def test_impute_mode(self):
        df = pd.DataFrame({"C": [1, 1, 2, np.nan], "D": [np.nan, 5.0, 6.0, 7.0]})

        out = remediate(df, "impute_mode", ["C"])

        assert out.loc[3, "C"] == 1
        assert np.isnan(out.loc[0, "D"])

    def test_impute_mean_skips_text(self, missing_frame):
        out = remediate(missing_frame, "impute_mean")

        assert out.loc[2, "y"] == pytest.approx(3.0)
        assert out.loc[1, "x1"] == pytest.approx(32.5)
        assert out["label"].isna().sum() == 1

    def test_impute_median(self, missing_frame):
        out = remediate(missing_frame, "impute_median", ["x1"])

        assert out.loc[1, "x1"] == pytest.approx(35.0)
        assert np.isnan(out.loc[2, "y"])

    def test_impute_mode_on_text(self, missing_frame):
        out = remediate(missing_frame, "impute_mode", ["label"])
        # ties: the smallest value wins
        assert out.loc[2, "label"] == "a"

    def test_unknown_targets_are_skipped(self, missing_frame):
        out = remediate(missing_frame, "impute_mean", ["nope", "y"])
        assert not out["y"].isna().any()

    def test_unknown_action(self, missing_frame):
        with pytest.raises(ValidationError):
            remediate(missing_frame, "interpolate")


class TestManualEdit:

    @pytest.mark.parametrize("text, expected", [("3.5", 3.5), (" -2 ", -2.0), ("1e3", 1000.0)])
    def test_parse_numeric(self, text, expected):
        assert parse_numeric(text) == expected

    @pytest.mark.parametrize("text", ["abc", "", "nan", "inf", "1,5"])
    def test_parse_numeric_rejects(self, text):
        with pytest.raises(InvalidNumericInput) as exc_info:
            parse_numeric(text)
        assert exc_info.value.raw_text == text

    def test_edit_numeric_cell(self, missing_frame):
        out = edit_cell(missing_frame, 2, "y", "9.5")

        assert out.loc[2, "y"] == 9.5
        assert np.isnan(missing_frame.loc[2, "y"])

    def test_edit_int_column_becomes_float(self, missing_frame):
        out = edit_cell(missing_frame, 0, "x2", "1.25")

        assert out["x2"].dtype == float
        assert out["x2"].tolist() == [1.25, 1.0, 2.0, 2.0, 3.0]

    def test_invalid_text_is_lenient_by_default(self, missing_frame):
        out = edit_cell(missing_frame, 2, "y", "oops")
        pd.testing.assert_frame_equal(out, missing_frame)

    def test_invalid_text_strict(self, missing_frame):
        with pytest.raises(InvalidNumericInput) as exc_info:
            edit_cell(missing_frame, 2, "y", "oops", strict=True)
        assert exc_info.value.details["row"] == 2

    @pytest.mark.parametrize("row, column", [(5, "y"), (-1, "y"), (0, "missing")])
    def test_bad_target(self, missing_frame, row, column):
        with pytest.raises(ValidationError):
            edit_cell(missing_frame, row, column, "1")

    def test_text_column_is_not_editable(self, missing_frame):
        with pytest.raises(ValidationError):
            edit_cell(missing_frame, 2, "label", "1")
