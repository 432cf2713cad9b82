"""Pytest fixtures for arcellipse tests."""

import tempfile

import pytest


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def default_config():
    """Create default application configuration."""
    from arcellipse.config import AppConfig
    return AppConfig()


@pytest.fixture
def arc_60():
    """Radius 100 arc spanning 60 degrees (chord 100)."""
    from arcellipse.models import ArcSpec
    return ArcSpec(radius=100.0, central_angle_deg=60.0)


@pytest.fixture
def shallow_arc_request():
    """Large-radius, small-angle arc with both outer anchors held on the arc."""
    from arcellipse.models import Objective, SearchRequest
    return SearchRequest(
        radius=700.0,
        central_angle_deg=20.0,
        tolerance=0.4,
        steps_d=10,
        steps_d1=10,
        steps_d2=10,
        error_sample_steps=20,
        force_anchor_p_zero=True,
        force_anchor_r_zero=True,
        objective=Objective.MINIMIZE_A,
    )


@pytest.fixture
def small_grid_request():
    """Coarse full 3D grid, cheap enough to run repeatedly."""
    from arcellipse.models import SearchRequest
    return SearchRequest(
        radius=120.0,
        central_angle_deg=45.0,
        tolerance=0.5,
        steps_d=5,
        steps_d1=4,
        steps_d2=4,
        error_sample_steps=8,
    )
