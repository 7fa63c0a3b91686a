"""
Pytest configuration for StatScope tests
This file configures paths and fixtures for all tests
"""
import os
import sys
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

# Get the project root directory
PROJECT_ROOT = Path(__file__).parent.parent
SRC_DIR = PROJECT_ROOT / "src"

# Add src to Python path so tests run without an editable install
sys.path.insert(0, str(SRC_DIR))

# Set environment variables for testing
os.environ["ENV"] = "testing"
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from statscope.config import Settings  # noqa: E402
from statscope.engine.types import WorkflowStep  # noqa: E402
from statscope.workflow import WorkflowController  # noqa: E402


# Configure pytest
def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow tests")


# ─────────────────────────────────────────────────────────────────────────────
# Frames
# ─────────────────────────────────────────────────────────────────────────────

@pytest.fixture
def scenario_frame():
    """A has one gross outlier (100); B is exactly 2 * A elsewhere"""
    return pd.DataFrame({"A": [1, 2, 3, 4, 100], "B": [2, 4, 6, 8, 10]})


@pytest.fixture
def missing_frame():
    """Numeric columns with gaps plus a text column"""
    return pd.DataFrame(
        {
            "y": [1.0, 2.0, np.nan, 4.0, 5.0],
            "x1": [10.0, np.nan, 30.0, 40.0, 50.0],
            "x2": [1, 1, 2, 2, 3],
            "label": ["a", "b", None, "d", "e"],
        }
    )


@pytest.fixture
def linear_frame():
    rng = np.random.default_rng(42)
    x = np.linspace(0, 10, 40)
    return pd.DataFrame(
        {
            "y": 3.0 * x + 1.0 + rng.normal(0, 0.5, x.size),
            "x": x,
            "noise": rng.normal(0, 1, x.size),
        }
    )


def to_csv_bytes(df: pd.DataFrame) -> bytes:
    return df.to_csv(index=False).encode("utf-8")


@pytest.fixture
def csv_bytes():
    """Serialize a frame the way a user upload would arrive"""
    return to_csv_bytes


# ─────────────────────────────────────────────────────────────────────────────
# Workflow
# ─────────────────────────────────────────────────────────────────────────────

@pytest.fixture
def test_settings():
    return Settings(env="testing", debug=False, operation_timeout_seconds=10)


@pytest.fixture
def controller(test_settings):
    ctrl = WorkflowController(settings=test_settings)
    ctrl.initialize()
    return ctrl


@pytest.fixture
def at_step(controller):
    """
    Drive ``controller`` through upload and selection up to ``step``.

    Usage: ``at_step(frame, "y", ["x"], WorkflowStep.OUTLIERS)``
    """

    def _drive(frame, dependent, independents, step=WorkflowStep.QUALITY):
        controller.load_dataset(to_csv_bytes(frame), "csv")
        if step >= WorkflowStep.QUALITY:
            controller.select_variables(dependent, independents)
        while controller.step < step:
            if controller.step == WorkflowStep.QUALITY and controller.list_issues().issues:
                controller.remediate("delete")
            controller.advance()
        return controller

    return _drive
