import json
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pose_fusion.geometry import Pose3d, Rotation3d, Translation3d


class FieldLayoutError(RuntimeError):
    """Raised when a fiducial field layout cannot be loaded."""


@dataclass
class FieldLayout:
    tags: dict[int, Pose3d]
    field_length_m: float
    field_width_m: float

    def get_tag_pose(self, tag_id: int) -> Optional[Pose3d]:
        return self.tags.get(int(tag_id))


def _parse_tag(entry: dict) -> tuple[int, Pose3d]:
    tag_id = int(entry["ID"])
    pose = entry["pose"]
    t = pose["translation"]
    q = pose["rotation"]["quaternion"]
    translation = Translation3d(float(t["x"]), float(t["y"]), float(t["z"]))
    rotation = Rotation3d.from_quaternion(float(q["W"]), float(q["X"]), float(q["Y"]), float(q["Z"]))
    return tag_id, Pose3d(translation, rotation)


def load_field_layout(path: str) -> FieldLayout:
    """
    Load a fiducial layout in the WPILib JSON format:

        {"tags": [{"ID": 1, "pose": {"translation": {"x":..,"y":..,"z":..},
                   "rotation": {"quaternion": {"W":..,"X":..,"Y":..,"Z":..}}}}],
         "field": {"length": 16.54, "width": 8.21}}
    """
    p = Path(path)
    if not p.exists():
        raise FieldLayoutError(f"Field layout not found: {p}")
    try:
        with p.open("r", encoding="utf-8") as fp:
            raw = json.load(fp)
        tags = dict(_parse_tag(e) for e in raw["tags"])
        field = raw.get("field", {})
        length = float(field.get("length", 0.0))
        width = float(field.get("width", 0.0))
    except (OSError, ValueError, KeyError, TypeError) as exc:
        raise FieldLayoutError(f"Invalid field layout {p}: {exc}") from exc
    return FieldLayout(tags, length, width)
