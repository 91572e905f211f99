from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .services.field_layout import load_field_layout
from .sources.base import Clock, ObservationSource, PoseSource, default_clock
from .sources.detector import DetectorObservationSource
from .sources.limelight import LimelightPoseSource
from .sources.photon import PhotonPoseSource
from .tables import TableSource

logger = logging.getLogger(__name__)


@dataclass
class SourceSet:
    fiducial: Optional[PoseSource] = None
    solve: Optional[PoseSource] = None
    detector: Optional[ObservationSource] = None


class SourceFactory:
    @staticmethod
    def _build(family: str, build: Callable, configure: bool):
        try:
            source = build()
            if configure:
                source.configure()
        except Exception as exc:
            logger.error("%s family disabled: %s", family, exc)
            return None
        return source

    @staticmethod
    def from_config(config, tables: TableSource, clock: Clock = default_clock, configure: bool = True) -> SourceSet:
        """
        Build one adapter per enabled family.

        A family whose adapter, static resources or startup settings fail is
        left out for the session; the others are still built.
        """
        sources = SourceSet()

        if config.limelight_enabled:
            sources.fiducial = SourceFactory._build(
                "limelight pose",
                lambda: LimelightPoseSource(tables, config.limelight, clock=clock),
                configure,
            )

        if config.photon_enabled:
            sources.solve = SourceFactory._build(
                "photon pose",
                lambda: PhotonPoseSource(
                    tables, config.photon, load_field_layout(config.photon.field_layout_path)
                ),
                configure,
            )

        if config.detector_enabled:
            sources.detector = SourceFactory._build(
                "object detector",
                lambda: DetectorObservationSource(tables, config.detector),
                configure,
            )

        return sources
