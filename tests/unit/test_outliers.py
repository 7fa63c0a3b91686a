"""
Unit Tests for outlier detection and treatment
"""

import numpy as np
import pandas as pd
import pytest

from statscope.core.exceptions import ValidationError
from statscope.engine.outliers import detect, flag_values, treat
from statscope.engine.types import OutlierAction, OutlierMethod

pytestmark = pytest.mark.unit

METHODS = list(OutlierMethod)


class TestFlagging:

    def test_iqr_bounds(self, scenario_frame):
        flags = flag_values(scenario_frame["A"], OutlierMethod.IQR)

        assert flags.lower == pytest.approx(-1.0)
        assert flags.upper == pytest.approx(7.0)
        assert flags.indices == [4]

    def test_z_score_single_spike(self):
        flags = flag_values(pd.Series([10.0] * 20 + [1000.0]), OutlierMethod.Z_SCORE)
        assert flags.indices == [20]

    def test_modified_z(self, scenario_frame):
        flags = flag_values(scenario_frame["A"], "MODIFIED_Z")
        assert flags.indices == [4]

    @pytest.mark.parametrize("method", METHODS)
    def test_constant_column_flags_nothing(self, method):
        assert flag_values(pd.Series([5.0] * 8), method).indices == []

    def test_custom_threshold(self):
        data = pd.Series([1.0, 2.0, 3.0, 4.0, 6.5])
        assert flag_values(data, "IQR").indices == []
        assert flag_values(data, "IQR", iqr_multiplier=0.5).indices == [4]

    def test_missing_values_never_flagged(self):
        data = pd.Series([np.nan, 1.0, 2.0, 3.0, np.nan, 4.0, 100.0])
        assert flag_values(data, "IQR").indices == [6]

    def test_unknown_method(self):
        with pytest.raises(ValidationError):
            flag_values(pd.Series([1.0, 2.0]), "DBSCAN")


class TestDetect:

    @pytest.mark.parametrize("method", METHODS)
    def test_indices_in_range_and_idempotent(self, method):
        rng = np.random.default_rng(7)
        values = rng.normal(0, 1, 60)
        values[[3, 30]] = [15.0, -12.0]
        df = pd.DataFrame({"v": values, "w": rng.exponential(1, 60), "t": ["x"] * 60})

        first = detect(df, method)
        second = detect(df, method)

        assert first == second
        for record in first.values():
            assert all(0 <= i < len(df) for i in record.indices)
        assert {3, 30} <= set(first["v"].indices)

    def test_skips_non_numeric_and_clean_columns(self, scenario_frame):
        df = scenario_frame.assign(label=list("abcde"))
        records = detect(df, "IQR")

        assert list(records) == ["A"]
        assert records["A"].values == [100.0]
        assert records["A"].to_dict()["upper"] == pytest.approx(7.0)

    def test_column_filter(self, scenario_frame):
        assert detect(scenario_frame, "IQR", columns=["B"]) == {}


class TestTreat:

    def test_delete_renumbers(self, scenario_frame):
        out = treat(scenario_frame, "A", OutlierAction.DELETE, OutlierMethod.IQR)

        assert out["A"].tolist() == [1, 2, 3, 4]
        assert out.index.tolist() == [0, 1, 2, 3]
        assert len(scenario_frame) == 5

    def test_winsorize_iqr_clips_to_bounds(self, scenario_frame):
        out = treat(scenario_frame, "A", "winsorize", "IQR")
        assert out["A"].tolist() == [1.0, 2.0, 3.0, 4.0, 7.0]

    def test_winsorize_z_clips_to_kept_range(self):
        df = pd.DataFrame({"v": [10.0 + i % 3 for i in range(20)] + [1000.0]})

        out = treat(df, "v", "winsorize", "Z_SCORE")

        assert out["v"].iloc[-1] == 12.0
        assert out["v"].iloc[:-1].tolist() == df["v"].iloc[:-1].tolist()

    @pytest.mark.parametrize("action", ["impute_mean", "impute_median"])
    def test_impute_flagged_cells(self, scenario_frame, action):
        out = treat(scenario_frame, "A", action, "IQR")

        assert out["A"].tolist() == [1.0, 2.0, 3.0, 4.0, 2.5]
        assert out["B"].tolist() == scenario_frame["B"].tolist()

    def test_log_shifts_non_positive_column(self):
        df = pd.DataFrame({"v": [-5.0, 0.0, 5.0]})

        out = treat(df, "v", "log", "IQR")

        np.testing.assert_allclose(out["v"], np.log([1.0, 6.0, 11.0]))
        assert out["v"].min() == 0.0

    def test_log_positive_column_unshifted(self):
        out = treat(pd.DataFrame({"v": [1.0, np.e]}), "v", "log", "IQR")
        np.testing.assert_allclose(out["v"], [0.0, 1.0])

    def test_sqrt_shifts_negative_column(self):
        out = treat(pd.DataFrame({"v": [-4.0, 0.0, 5.0]}), "v", "sqrt", "IQR")
        np.testing.assert_allclose(out["v"], [0.0, 2.0, 3.0])

    def test_sqrt_keeps_zero_minimum(self):
        out = treat(pd.DataFrame({"v": [0.0, 4.0, 9.0]}), "v", "sqrt", "IQR")
        np.testing.assert_allclose(out["v"], [0.0, 2.0, 3.0])

    def test_ignore(self, scenario_frame):
        out = treat(scenario_frame, "A", "ignore")

        pd.testing.assert_frame_equal(out, scenario_frame)
        assert out is not scenario_frame

    def test_redetects_on_given_frame(self, scenario_frame):
        once = treat(scenario_frame, "A", "delete", "IQR")
        twice = treat(once, "A", "delete", "IQR")
        pd.testing.assert_frame_equal(once, twice)

    @pytest.mark.parametrize(
        "column, action",
        [("missing", "delete"), ("A", "clip"), ("label", "delete")],
    )
    def test_invalid_requests(self, scenario_frame, column, action):
        df = scenario_frame.assign(label=list("abcde"))
        with pytest.raises(ValidationError):
            treat(df, column, action)
