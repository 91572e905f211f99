import pytest

from pose_fusion.config import FieldConfig
from pose_fusion.gate import ConfidenceGate
from pose_fusion.geometry import Pose2d
from vision_sources.vs_types import PoseCandidate

FIELD = FieldConfig(length_m=16.5, width_m=8.2)


def _candidate(x, y, count=1, has_target=True):
    return PoseCandidate(Pose2d.of(x, y, 0.0), 0.0, "test", has_target, count)


@pytest.fixture
def gate():
    return ConfidenceGate(FIELD)


@pytest.mark.parametrize(
    "x,y",
    [(0.0, 0.0), (16.5, 8.2), (8.0, 4.0), (0.01, 8.19), (16.49, 0.01)],
)
def test_single_marker_inside_field_accepted(gate, x, y):
    assert gate.accept(_candidate(x, y))


@pytest.mark.parametrize(
    "x,y",
    [(20.0, 5.0), (-0.1, 4.0), (5.0, 8.3), (5.0, -1.0), (-3.0, -3.0)],
)
def test_single_marker_outside_field_rejected(gate, x, y):
    assert not gate.accept(_candidate(x, y))


@pytest.mark.parametrize("count", [2, 3, 6])
@pytest.mark.parametrize("x,y", [(20.0, 5.0), (-0.1, 4.0), (5.0, 8.3)])
def test_multiple_markers_override_bounds(gate, x, y, count):
    assert gate.accept(_candidate(x, y, count=count))


def test_example_pose_beyond_field_length(gate):
    """x=20 exceeds a 16.5 m field: one tag rejects, two tags accept."""
    assert not gate.accept(_candidate(20.0, 5.0, count=1))
    assert gate.accept(_candidate(20.0, 5.0, count=2))


def test_no_target_always_rejected(gate):
    assert not gate.accept(_candidate(8.0, 4.0, count=3, has_target=False))
    assert not gate.accept(None)


def test_gate_ignores_prior(gate):
    candidate = _candidate(8.0, 4.0)
    assert gate.accept(candidate, Pose2d.of(100.0, 100.0)) == gate.accept(candidate)


def test_bounds_and_marker_helpers(gate):
    assert gate.within_field_bounds(Pose2d.of(1.0, 1.0))
    assert not gate.within_field_bounds(Pose2d.of(17.0, 1.0))
    assert ConfidenceGate.multiple_markers_visible(_candidate(0, 0, count=2))
    assert not ConfidenceGate.multiple_markers_visible(_candidate(0, 0, count=1))
