import math

import pytest

from pose_fusion.config import DetectorConfig, LimelightConfig, MountConfig, PhotonConfig
from pose_fusion.geometry import Pose2d
from vision_sources.services.field_layout import load_field_layout
from vision_sources.sources.detector import DetectorObservationSource
from vision_sources.sources.limelight import (
    LED_OFF,
    LED_ON,
    LimelightPoseSource,
    parse_fiducials,
    pose2d_from_array,
)
from vision_sources.sources.photon import PhotonPoseSource, parse_transform3d
from vision_sources.vs_types import NO_OBSERVATION

LL = "limelight-pose"
NN = "limelight-nn"
PHOTON = "photonvision/photon-1"


# -- limelight ------------------------------------------------------------------


def _limelight(tables, **cfg):
    return LimelightPoseSource(tables, LimelightConfig(name=LL, **cfg), clock=lambda: 100.0)


def test_limelight_empty_json_means_no_candidate(tables):
    tables.update({LL: {"json": "", "tv": 1, "botpose_wpiblue": [1, 2, 0, 0, 0, 0]}})
    assert _limelight(tables).poll() is None


def test_limelight_missing_table_means_no_candidate(tables):
    assert _limelight(tables).poll() is None


def test_limelight_candidate(tables, ll_payload):
    tables.update(
        {
            LL: {
                "json": ll_payload([3, 4]),
                "tv": 1,
                "botpose_wpiblue": [1.0, 2.0, 0.0, 0.0, 0.0, 90.0, 30.0],
                "tl": 20.0,
                "cl": 10.0,
            }
        }
    )
    candidate = _limelight(tables).poll()

    assert candidate.has_target is True
    assert candidate.target_count == 2
    assert candidate.pose.is_close(Pose2d.of(1.0, 2.0, math.pi / 2))
    assert candidate.latency_seconds == pytest.approx(0.030)
    assert candidate.capture_timestamp == pytest.approx(99.97)
    assert candidate.source_id == f"limelight:{LL}"


def test_limelight_no_target_flag(tables, ll_payload):
    tables.update({LL: {"json": ll_payload([]), "tv": 0, "botpose_wpiblue": [0, 0, 0, 0, 0, 0]}})
    candidate = _limelight(tables).poll()
    assert candidate is not None
    assert candidate.has_target is False
    assert candidate.target_count == 0


def test_limelight_short_pose_array_gives_identity(tables, ll_payload):
    tables.update({LL: {"json": ll_payload([1]), "tv": 1, "botpose_wpiblue": [1.0, 2.0]}})
    assert _limelight(tables).poll().pose == Pose2d()


def test_limelight_bad_json_counts_no_fiducials(tables):
    tables.update({LL: {"json": "{not json", "tv": 1, "botpose_wpiblue": [1, 1, 0, 0, 0, 0]}})
    candidate = _limelight(tables).poll()
    assert candidate.target_count == 0
    assert candidate.has_target is True


def test_parse_fiducials_reads_ids(ll_payload):
    fids = parse_fiducials(ll_payload([5, 9]))
    assert [f.fiducial_id for f in fids] == [5, 9]
    assert parse_fiducials('{"Results": {}}') == []
    assert parse_fiducials("[]") == []


def test_pose2d_from_array_uses_yaw_degrees():
    pose = pose2d_from_array([3.0, 4.0, 0.5, 10.0, 20.0, -90.0])
    assert pose.is_close(Pose2d.of(3.0, 4.0, -math.pi / 2))


def test_limelight_configure_pushes_settings(tables):
    mount = MountConfig(x=0.3, y=-0.1, z=0.4, pitch=math.radians(25.0))
    source = _limelight(tables, pipeline=2, led_on=True, camera_pose=mount)
    source.configure()

    assert tables.get(LL, "ledMode") == LED_ON
    assert tables.get(LL, "pipeline") == 2
    pose = tables.get(LL, "camerapose_robotspace_set")
    assert pose[:3] == pytest.approx([0.3, -0.1, 0.4])
    assert pose[4] == pytest.approx(25.0)


def test_limelight_target_space_poses(tables):
    tables.update(
        {
            LL: {
                "botpose_targetspace": [0.5, -1.0, 2.0, 0.0, 0.0, 180.0],
                "targetpose_robotspace": [1.0, 0.0, 2.0, 0.0, 0.0, 0.0],
            }
        }
    )
    source = _limelight(tables)
    assert source.robot_pose_target_space().is_close(Pose2d.of(0.5, -1.0, math.pi))
    assert source.target_pose_robot_space().is_close(Pose2d.of(1.0, 0.0, 0.0))


# -- object detector ------------------------------------------------------------


def _detector(tables):
    return DetectorObservationSource(tables, DetectorConfig(name=NN, pipeline=1))


def test_detector_disconnected(tables):
    tables.update({NN: {"tv": 1, "tx": 3.0, "ty": 1.0}})
    assert _detector(tables).poll() == NO_OBSERVATION


def test_detector_no_target(tables, ll_payload):
    tables.update({NN: {"json": ll_payload(), "tv": 0, "tx": 3.0, "ty": 1.0}})
    assert _detector(tables).poll().visible is False


def test_detector_flips_horizontal_sign(tables, ll_payload):
    tables.update({NN: {"json": ll_payload(), "tv": 1, "tx": 5.0, "ty": -8.0}})
    obs = _detector(tables).poll()
    assert obs.visible is True
    assert obs.horizontal_offset_deg == pytest.approx(-5.0)
    assert obs.vertical_offset_deg == pytest.approx(-8.0)


def test_detector_configure_turns_led_off(tables):
    _detector(tables).configure()
    assert tables.get(NN, "ledMode") == LED_OFF
    assert tables.get(NN, "pipeline") == 1


# -- photon ---------------------------------------------------------------------


def _photon(tables, layout_path, cutoff=0.2, camera_to_robot=None):
    cfg = PhotonConfig(
        camera_name="photon-1",
        ambiguity_cutoff=cutoff,
        field_layout_path=str(layout_path),
        camera_to_robot=camera_to_robot or MountConfig(),
    )
    return PhotonPoseSource(tables, cfg, load_field_layout(str(layout_path)))


def _tag_ahead(fid=7, ambiguity=0.05, rotation=None):
    """Tag two meters straight ahead of the camera, facing it."""
    rotation = rotation or {"quaternion": [0.0, 0.0, 0.0, 1.0]}
    return {
        "fiducial_id": fid,
        "pose_ambiguity": ambiguity,
        "best_camera_to_target": {"translation": [2.0, 0.0, 0.0], **rotation},
    }


def test_photon_no_result(tables, layout_path):
    source = _photon(tables, layout_path)
    assert source.poll() is None
    assert source.has_targets is False


def test_photon_multi_tag_strategy(tables, layout_path):
    tables.update(
        {
            PHOTON: {
                "result": {
                    "timestamp": 42.5,
                    "targets": [_tag_ahead(ambiguity=0.9)],
                    "multi_tag": {
                        "best": {"translation": [3.0, 4.0, 0.5], "quaternion": [1.0, 0.0, 0.0, 0.0]},
                        "fiducial_ids_used": [7, 8],
                    },
                }
            }
        }
    )
    source = _photon(tables, layout_path, camera_to_robot=MountConfig(x=-0.3, z=-0.5))
    candidate = source.poll()

    assert candidate.has_target is True
    assert candidate.capture_timestamp == pytest.approx(42.5)
    assert candidate.target_count == 2
    assert candidate.pose.is_close(Pose2d.of(2.7, 4.0, 0.0), tol=1e-9)
    assert source.has_targets is True
    assert source.last_timestamp == pytest.approx(42.5)


def test_photon_single_tag_strategy(tables, layout_path):
    tables.update({PHOTON: {"result": {"timestamp": 10.0, "targets": [_tag_ahead()]}}})
    candidate = _photon(tables, layout_path).poll()

    assert candidate is not None
    assert candidate.target_count == 1
    assert candidate.ambiguity == pytest.approx(0.05)
    assert candidate.pose.is_close(Pose2d.of(3.0, 4.0, 0.0), tol=1e-9)


def test_photon_single_tag_from_rvec(tables, layout_path):
    tables.update(
        {PHOTON: {"result": {"timestamp": 10.0, "targets": [_tag_ahead(rotation={"rvec": [0.0, 0.0, math.pi]})]}}}
    )
    candidate = _photon(tables, layout_path).poll()
    assert candidate.pose.is_close(Pose2d.of(3.0, 4.0, 0.0), tol=1e-6)


def test_photon_ambiguity_cutoff(tables, layout_path):
    tables.update({PHOTON: {"result": {"timestamp": 10.0, "targets": [_tag_ahead(ambiguity=0.25)]}}})
    source = _photon(tables, layout_path, cutoff=0.2)
    assert source.poll() is None
    assert source.has_targets is True


def test_photon_unknown_tag(tables, layout_path):
    tables.update({PHOTON: {"result": {"timestamp": 10.0, "targets": [_tag_ahead(fid=99)]}}})
    assert _photon(tables, layout_path).poll() is None


def test_photon_empty_targets(tables, layout_path):
    tables.update({PHOTON: {"result": {"timestamp": 10.0, "targets": []}}})
    source = _photon(tables, layout_path)
    assert source.poll() is None
    assert source.has_targets is False


def test_photon_malformed_result(tables, layout_path):
    tables.update({PHOTON: {"result": {"timestamp": 10.0, "targets": [{"pose_ambiguity": 0.1}]}}})
    assert _photon(tables, layout_path).poll() is None


@pytest.mark.parametrize(
    "result",
    [
        {"timestamp": 1.0, "targets": [], "multi_tag": "garbage"},
        {"timestamp": 1.0, "targets": ["not-a-target"]},
        {"timestamp": 1.0, "targets": [], "multi_tag": {"best": {"translation": [0, 0, 0], "quaternion": [0, 0, 0, 0]}}},
    ],
)
def test_photon_garbage_payload_yields_no_candidate(tables, layout_path, result):
    tables.update({PHOTON: {"result": result}})
    source = _photon(tables, layout_path)
    assert source.poll() is None
    assert source.has_targets is False


def test_parse_transform_without_rotation():
    t = parse_transform3d({"translation": [1, 2, 3]})
    assert (t.x, t.y, t.z) == (1.0, 2.0, 3.0)
    assert t.rotation.z == pytest.approx(0.0)
