import logging
from unittest import mock

from pose_fusion.config import VisionConfig
from vision_sources.factory import SourceFactory
from vision_sources.sources.detector import DetectorObservationSource
from vision_sources.sources.limelight import LimelightPoseSource
from vision_sources.sources.photon import PhotonPoseSource
from vision_sources.tables import InMemoryTables


def test_builds_enabled_families(tables, layout_path):
    cfg = VisionConfig(photon_enabled=True)
    cfg.photon.field_layout_path = str(layout_path)

    sources = SourceFactory.from_config(cfg, tables)

    assert isinstance(sources.fiducial, LimelightPoseSource)
    assert isinstance(sources.solve, PhotonPoseSource)
    assert isinstance(sources.detector, DetectorObservationSource)
    # configure() pushed startup settings
    assert tables.get(cfg.limelight.name, "pipeline") == cfg.limelight.pipeline
    assert tables.get(cfg.detector.name, "pipeline") == cfg.detector.pipeline


def test_disabled_families_are_absent(tables):
    cfg = VisionConfig(limelight_enabled=False, photon_enabled=False, detector_enabled=False)
    sources = SourceFactory.from_config(cfg, tables, configure=False)
    assert sources.fiducial is None
    assert sources.solve is None
    assert sources.detector is None


def test_missing_layout_disables_photon_only(tables, tmp_path, caplog):
    cfg = VisionConfig(photon_enabled=True)
    cfg.photon.field_layout_path = str(tmp_path / "missing.json")

    with caplog.at_level(logging.ERROR, logger="vision_sources.factory"):
        sources = SourceFactory.from_config(cfg, tables)

    assert sources.solve is None
    assert sources.fiducial is not None
    assert sources.detector is not None
    assert any("photon pose family disabled" in r.message for r in caplog.records)


class UnreachableTables(InMemoryTables):
    """Writes to one table fail, as when a camera is not on the network yet."""

    def __init__(self, down: str):
        super().__init__()
        self.down = down

    def put(self, table, key, value):
        if table == self.down:
            raise ConnectionError(f"{table} unreachable")
        super().put(table, key, value)


def test_configure_failure_disables_only_that_family(caplog):
    cfg = VisionConfig()
    tables = UnreachableTables(cfg.limelight.name)

    with caplog.at_level(logging.ERROR, logger="vision_sources.factory"):
        sources = SourceFactory.from_config(cfg, tables)

    assert sources.fiducial is None
    assert isinstance(sources.detector, DetectorObservationSource)
    errors = [r for r in caplog.records if "limelight pose family disabled" in r.message]
    assert len(errors) == 1
    assert "unreachable" in errors[0].message


def test_adapter_construction_failure_is_not_fatal(tables, caplog):
    cfg = VisionConfig()
    with mock.patch(
        "vision_sources.factory.DetectorObservationSource", side_effect=RuntimeError("boom")
    ):
        with caplog.at_level(logging.ERROR, logger="vision_sources.factory"):
            sources = SourceFactory.from_config(cfg, tables)

    assert sources.detector is None
    assert isinstance(sources.fiducial, LimelightPoseSource)
    assert any("object detector family disabled: boom" in r.message for r in caplog.records)
