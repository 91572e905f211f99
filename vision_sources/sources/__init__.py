from .base import ObservationSource, PoseSource
from .detector import DetectorObservationSource
from .limelight import LimelightPoseSource
from .photon import PhotonPoseSource

__all__ = [
    "DetectorObservationSource",
    "LimelightPoseSource",
    "ObservationSource",
    "PhotonPoseSource",
    "PoseSource",
]
