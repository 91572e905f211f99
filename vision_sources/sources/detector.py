from __future__ import annotations

from pose_fusion.config import DetectorConfig

from ..tables import TableSource
from ..vs_types import NO_OBSERVATION, ObjectObservation
from .base import ObservationSource
from .limelight import LED_OFF, LimelightTable


class DetectorObservationSource(ObservationSource):
    """
    Object-detection pipeline on a Limelight-style device.

    The device reports ``tx`` clockwise positive; observations are
    counter-clockwise positive, so the sign is flipped here.
    """

    def __init__(self, tables: TableSource, config: DetectorConfig):
        self.config = config
        self.table = LimelightTable(tables, config.name)
        self.source_id = f"detector:{config.name}"

    def configure(self) -> None:
        self.table.set_led_mode(LED_OFF)
        self.table.set_pipeline(self.config.pipeline)

    def poll(self) -> ObjectObservation:
        if not self.table.connected() or not self.table.has_target():
            return NO_OBSERVATION
        return ObjectObservation(
            horizontal_offset_deg=-self.table.tx(),
            vertical_offset_deg=self.table.ty(),
            visible=True,
        )
