import json
import math
from pathlib import Path

import pytest

from vision_sources.tables import InMemoryTables


def limelight_json(fiducial_ids=()):
    """Results payload in the shape the device publishes under ``json``."""
    return json.dumps(
        {"Results": {"Fiducial": [{"fID": i, "tx": 0.0, "ty": 0.0, "ta": 0.1} for i in fiducial_ids]}}
    )


def quat_yaw(yaw: float):
    return {"W": math.cos(yaw / 2), "X": 0.0, "Y": 0.0, "Z": math.sin(yaw / 2)}


@pytest.fixture
def tables():
    return InMemoryTables()


@pytest.fixture
def layout_path(tmp_path: Path) -> Path:
    """Two-tag layout; tag 7 sits at (5, 4, 1) facing -x."""
    layout = {
        "tags": [
            {
                "ID": 7,
                "pose": {
                    "translation": {"x": 5.0, "y": 4.0, "z": 1.0},
                    "rotation": {"quaternion": quat_yaw(math.pi)},
                },
            },
            {
                "ID": 8,
                "pose": {
                    "translation": {"x": 0.0, "y": 2.0, "z": 1.0},
                    "rotation": {"quaternion": quat_yaw(0.0)},
                },
            },
        ],
        "field": {"length": 16.54175, "width": 8.21055},
    }
    path = tmp_path / "layout.json"
    path.write_text(json.dumps(layout), encoding="utf-8")
    return path


@pytest.fixture
def ll_payload():
    return limelight_json
