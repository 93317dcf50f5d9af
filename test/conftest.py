"""Pytest fixtures for scan feature tests."""

import os
import sys

import numpy as np
import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from scan_features.synthetic import line_points  # noqa: E402


@pytest.fixture
def rng():
    """Seeded random generator."""
    return np.random.default_rng(42)


@pytest.fixture
def l_shape_points():
    """Ordered points along (0,0)->(2,0)->(2,2), corner at index 20."""
    horizontal = line_points((0.0, 0.0), (2.0, 0.0), 21)
    vertical = line_points((2.0, 0.0), (2.0, 2.0), 21)[1:]
    return np.vstack([horizontal, vertical])
