"""Field pose fusion and game-object localization.

The engine, gate and localizer live in their own modules
(``pose_fusion.engine``, ``pose_fusion.gate``, ``pose_fusion.localizer``);
they depend on ``vision_sources``, which in turn uses the geometry and
config types exported here.
"""

from .config import VisionConfig
from .geometry import Pose2d, Rotation2d, Transform2d, Translation2d

__all__ = ["Pose2d", "Rotation2d", "Transform2d", "Translation2d", "VisionConfig"]
