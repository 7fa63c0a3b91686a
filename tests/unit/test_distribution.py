import numpy as np
import pandas as pd
import pytest

from statscope.core.exceptions import ValidationError
from statscope.engine.distribution import (
    bivariate_descriptors,
    box_summary,
    univariate_descriptors,
)
from statscope.engine.types import ReferenceDistribution

pytestmark = pytest.mark.unit


@pytest.fixture
def normal_frame():
    rng = np.random.default_rng(0)
    return pd.DataFrame({"v": rng.normal(10, 2, 80), "t": ["a"] * 80})


# ─────────────────────────────────────────────────────────────────────────────
# Univariate
# ─────────────────────────────────────────────────────────────────────────────

def test_univariate_normal(normal_frame):
    desc = univariate_descriptors(normal_frame, "v", "normal", kde_points=150)

    assert desc.n == 80
    assert len(desc.kde.x) == len(desc.kde.density) == 150
    assert min(desc.kde.density) >= 0
    assert desc.kde.x[0] < normal_frame["v"].min()
    assert desc.box.q1 <= desc.box.median <= desc.box.q3
    assert len(desc.qq.ordered) == 80
    assert desc.qq.ordered == sorted(desc.qq.ordered)
    assert desc.qq.r > 0.95


@pytest.mark.parametrize("reference", list(ReferenceDistribution))
def test_reference_distributions(normal_frame, reference):
    desc = univariate_descriptors(normal_frame, "v", reference.value)

    assert desc.qq.reference is reference
    assert len(desc.qq.theoretical) == 80


def test_missing_values_are_ignored():
    df = pd.DataFrame({"v": [1.0, np.nan, 2.0, 3.0, np.nan]})
    assert univariate_descriptors(df, "v").n == 3


def test_single_value_has_only_box():
    desc = univariate_descriptors(pd.DataFrame({"v": [4.0]}), "v")

    assert desc.kde is None
    assert desc.qq is None
    assert desc.box.median == 4.0
    assert desc.to_dict()["kde"] is None


def test_box_whiskers_and_fliers():
    box = box_summary(np.array([1.0, 2.0, 3.0, 4.0, 100.0]))

    assert (box.q1, box.median, box.q3) == (2.0, 3.0, 4.0)
    assert box.whisker_high == 4.0
    assert box.whisker_low == 1.0
    assert box.fliers == [100.0]


@pytest.mark.parametrize(
    "column, reference",
    [("t", "normal"), ("nope", "normal"), ("v", "cauchy")],
)
def test_univariate_invalid(normal_frame, column, reference):
    with pytest.raises(ValidationError):
        univariate_descriptors(normal_frame, column, reference)


# ─────────────────────────────────────────────────────────────────────────────
# Bivariate
# ─────────────────────────────────────────────────────────────────────────────

def test_linear_fit(linear_frame):
    desc = bivariate_descriptors(linear_frame, "x", "y")
    line = desc.fit("line")

    assert desc.n == 40
    assert [f.kind for f in desc.fits] == ["line"]
    assert line.params["slope"] == pytest.approx(3.0, abs=0.2)
    assert line.params["intercept"] == pytest.approx(1.0, abs=0.6)
    assert line.params["r_squared"] > 0.95


def test_all_fits(linear_frame):
    desc = bivariate_descriptors(
        linear_frame, "x", "y", lowess=True, polynomial_degree=2, curve_points=50
    )

    assert [f.kind for f in desc.fits] == ["line", "lowess", "polynomial"]
    lowess = desc.fit("lowess")
    assert lowess.x == sorted(lowess.x)
    poly = desc.fit("polynomial")
    assert len(poly.x) == 50
    assert len(poly.params["coefficients"]) == 3
    assert poly.params["coefficients"][1] == pytest.approx(3.0, abs=0.5)


def test_pairwise_complete_observations():
    df = pd.DataFrame({"x": [1.0, 2.0, np.nan, 4.0, 5.0], "y": [2.0, np.nan, 6.0, 8.0, 10.0]})
    desc = bivariate_descriptors(df, "x", "y")

    assert desc.n == 3
    assert desc.x_values == [1.0, 4.0, 5.0]


def test_too_few_points_omits_fits():
    df = pd.DataFrame({"x": [1.0, 2.0], "y": [3.0, 5.0]})
    desc = bivariate_descriptors(df, "x", "y", lowess=True, polynomial_degree=3)

    assert [f.kind for f in desc.fits] == ["line"]


@pytest.mark.parametrize("degree", [0, 11, 2.5, True])
def test_polynomial_degree_validated(linear_frame, degree):
    with pytest.raises(ValidationError):
        bivariate_descriptors(linear_frame, "x", "y", polynomial_degree=degree)
