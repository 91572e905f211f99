from __future__ import annotations

from typing import Optional

from vision_sources.vs_types import PoseCandidate

from .config import FieldConfig
from .geometry import Pose2d


class ConfidenceGate:
    """
    Decides whether a fiducial pose candidate may replace the accepted pose.

    A candidate needs a target in view and either a physically possible
    location (inside the field rectangle, edges included) or more than one
    marker backing the solve. Single-marker solves at range are the main
    source of outliers; multi-marker solves are trusted even off the field.
    """

    def __init__(self, field: FieldConfig):
        self.field_length = field.length_m
        self.field_width = field.width_m

    def within_field_bounds(self, pose: Pose2d) -> bool:
        return 0.0 <= pose.x <= self.field_length and 0.0 <= pose.y <= self.field_width

    @staticmethod
    def multiple_markers_visible(candidate: PoseCandidate) -> bool:
        return candidate.target_count > 1

    def accept(self, candidate: Optional[PoseCandidate], prior: Optional[Pose2d] = None) -> bool:
        # prior is accepted for interface symmetry; the gate does not use history
        if candidate is None or not candidate.has_target:
            return False
        return self.within_field_bounds(candidate.pose) or self.multiple_markers_visible(candidate)
