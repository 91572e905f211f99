import csv
import io


class PoseCsvWriter:
    HEADER = [
        "recorded_at",
        "tick",
        "pose_x", "pose_y", "pose_heading",
        "accepted_at", "latency_s", "source",
        "object_visible",
        "object_field_x", "object_field_y", "object_field_heading",
        "object_robot_x", "object_robot_y", "object_robot_heading",
    ]

    def __init__(self, csv_path: str):
        self.csv_path = csv_path
        self._opened = False
        self._fh = None
        self._w = None

    def open(self):
        self._fh = open(self.csv_path, "w", newline="")
        self._w = csv.writer(self._fh)
        self._w.writerow(self.HEADER)
        self._opened = True

    @staticmethod
    def _pose3(pose):
        if pose is None:
            return [float("nan")] * 3
        return [pose.x, pose.y, pose.rotation.radians]

    @classmethod
    def _row(cls, ts_unix, tick, state, field_pose, robot_pose, visible):
        return [
            f"{ts_unix:.6f}",
            tick,
            *cls._pose3(state.accepted_pose),
            f"{state.accepted_at:.6f}",
            f"{state.total_latency_seconds:.4f}",
            state.source_id,
            int(bool(visible)),
            *cls._pose3(field_pose),
            *cls._pose3(robot_pose),
        ]

    def append(self, ts_unix, tick, state, field_pose=None, robot_pose=None, visible=False):
        self._w.writerow(self._row(ts_unix, tick, state, field_pose, robot_pose, visible))

    @classmethod
    def to_csv_line(cls, ts_unix, tick, state, field_pose=None, robot_pose=None, visible=False):
        buf = io.StringIO()
        w = csv.writer(buf)
        w.writerow(cls._row(ts_unix, tick, state, field_pose, robot_pose, visible))
        return buf.getvalue().strip()

    def close(self):
        if self._opened and self._fh:
            self._fh.close()
            self._opened = False
            self._fh = None
            self._w = None
