from __future__ import annotations

import json
import math
from dataclasses import dataclass, asdict, field
from pathlib import Path
from typing import Any, Optional


@dataclass
class FieldConfig:
    """Field rectangle, origin at the blue-alliance corner."""

    length_m: float = 16.54175
    width_m: float = 8.21055

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class MountConfig:
    """Rigid camera mount. Meters and radians."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    roll: float = 0.0
    pitch: float = 0.0
    yaw: float = 0.0

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class LimelightConfig:
    name: str = "limelight-pose"
    pipeline: int = 0
    led_on: bool = True
    # Camera pose in robot space, pushed to the device at startup
    camera_pose: MountConfig = field(default_factory=MountConfig)

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class PhotonConfig:
    camera_name: str = "photon-1"
    ambiguity_cutoff: float = 0.2
    field_layout_path: str = "layouts/field.json"
    # Camera-to-robot transform applied after the field-to-camera solve
    camera_to_robot: MountConfig = field(default_factory=MountConfig)

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class DetectorConfig:
    name: str = "limelight-nn"
    pipeline: int = 1
    camera_height_m: float = 0.5
    camera_pitch_rad: float = math.radians(-20.0)
    target_height_m: float = 0.0
    # Only x, y and yaw are used; detection math is planar
    robot_to_camera: MountConfig = field(default_factory=MountConfig)

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class TelemetryConfig:
    session_root: str = "data/sessions"
    csv_name: str = "fused_pose.csv"
    enabled: bool = True

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class VisionConfig:
    limelight_enabled: bool = True
    photon_enabled: bool = False
    detector_enabled: bool = True
    field_dims: FieldConfig = field(default_factory=FieldConfig)
    limelight: LimelightConfig = field(default_factory=LimelightConfig)
    photon: PhotonConfig = field(default_factory=PhotonConfig)
    detector: DetectorConfig = field(default_factory=DetectorConfig)
    telemetry: TelemetryConfig = field(default_factory=TelemetryConfig)

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)

    def apply_overrides(self, **kwargs: Any) -> "VisionConfig":
        for key, value in kwargs.items():
            if value is not None and hasattr(self, key):
                setattr(self, key, value)
        return self


def _load_yaml(path: Path) -> dict[str, Any]:
    try:
        import yaml  # type: ignore
    except Exception as exc:  # pragma: no cover - optional dependency
        raise RuntimeError(
            "YAML config requested but PyYAML is not installed. "
            "Install with: pip install pyyaml"
        ) from exc
    with path.open("r", encoding="utf-8") as fp:
        data = yaml.safe_load(fp) or {}
    if not isinstance(data, dict):
        raise ValueError("YAML config root must be a mapping")
    return data


def _section(raw: dict[str, Any], key: str) -> Optional[dict[str, Any]]:
    value = raw.get(key)
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ValueError(f"{key} must be a mapping")
    return value


def _load_mount(raw: Optional[dict[str, Any]], default: MountConfig) -> MountConfig:
    if raw is None:
        return default
    mount = MountConfig()
    for name in ("x", "y", "z", "roll", "pitch", "yaw"):
        setattr(mount, name, float(raw.get(name, getattr(default, name))))
    # Degrees are friendlier in hand-written configs
    for name in ("roll", "pitch", "yaw"):
        deg_key = f"{name}_deg"
        if deg_key in raw:
            setattr(mount, name, math.radians(float(raw[deg_key])))
    return mount


def load_config(path: str | Path) -> VisionConfig:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config not found: {p}")

    if p.suffix.lower() in {".yaml", ".yml"}:
        raw = _load_yaml(p)
    else:
        with p.open("r", encoding="utf-8") as fp:
            raw = json.load(fp)

    if not isinstance(raw, dict):
        raise ValueError("Config root must be a JSON/YAML object")

    cfg = VisionConfig()
    cfg.limelight_enabled = bool(raw.get("limelight_enabled", cfg.limelight_enabled))
    cfg.photon_enabled = bool(raw.get("photon_enabled", cfg.photon_enabled))
    cfg.detector_enabled = bool(raw.get("detector_enabled", cfg.detector_enabled))

    field_raw = _section(raw, "field")
    if field_raw is not None:
        cfg.field_dims.length_m = float(field_raw.get("length_m", cfg.field_dims.length_m))
        cfg.field_dims.width_m = float(field_raw.get("width_m", cfg.field_dims.width_m))
        if cfg.field_dims.length_m <= 0 or cfg.field_dims.width_m <= 0:
            raise ValueError("field dimensions must be positive")

    ll_raw = _section(raw, "limelight")
    if ll_raw is not None:
        ll = cfg.limelight
        ll.name = str(ll_raw.get("name", ll.name))
        ll.pipeline = int(ll_raw.get("pipeline", ll.pipeline))
        ll.led_on = bool(ll_raw.get("led_on", ll.led_on))
        ll.camera_pose = _load_mount(_section(ll_raw, "camera_pose"), ll.camera_pose)

    ph_raw = _section(raw, "photon")
    if ph_raw is not None:
        ph = cfg.photon
        ph.camera_name = str(ph_raw.get("camera_name", ph.camera_name))
        ph.ambiguity_cutoff = float(ph_raw.get("ambiguity_cutoff", ph.ambiguity_cutoff))
        ph.field_layout_path = str(ph_raw.get("field_layout_path", ph.field_layout_path))
        ph.camera_to_robot = _load_mount(_section(ph_raw, "camera_to_robot"), ph.camera_to_robot)

    det_raw = _section(raw, "detector")
    if det_raw is not None:
        det = cfg.detector
        det.name = str(det_raw.get("name", det.name))
        det.pipeline = int(det_raw.get("pipeline", det.pipeline))
        det.camera_height_m = float(det_raw.get("camera_height_m", det.camera_height_m))
        det.camera_pitch_rad = float(det_raw.get("camera_pitch_rad", det.camera_pitch_rad))
        if "camera_pitch_deg" in det_raw:
            det.camera_pitch_rad = math.radians(float(det_raw["camera_pitch_deg"]))
        det.target_height_m = float(det_raw.get("target_height_m", det.target_height_m))
        det.robot_to_camera = _load_mount(_section(det_raw, "robot_to_camera"), det.robot_to_camera)

    tel_raw = _section(raw, "telemetry")
    if tel_raw is not None:
        tel = cfg.telemetry
        tel.session_root = str(tel_raw.get("session_root", tel.session_root))
        tel.csv_name = str(tel_raw.get("csv_name", tel.csv_name))
        tel.enabled = bool(tel_raw.get("enabled", tel.enabled))

    return cfg
