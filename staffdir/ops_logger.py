from __future__ import annotations

import json
import platform
import sys
import threading
from pathlib import Path
from typing import Any, Dict, Optional

import psutil


class OpsLogger:
    """Append-only JSONL logger for operational metrics.

    - One JSON object per line (UTF-8, newline-delimited)
    - Thread-safe (coarse lock)
    - Best-effort: a failed write is reported on stderr, never raised
    """

    def __init__(self, file_path: Path, also_stdout: bool = False) -> None:
        self.file_path = Path(file_path)
        self.also_stdout = bool(also_stdout)
        self._lock = threading.Lock()
        self.file_path.parent.mkdir(parents=True, exist_ok=True)

    def emit(self, record: Dict[str, Any]) -> None:
        try:
            line = json.dumps(record, ensure_ascii=False, default=str)
        except (TypeError, ValueError):
            line = json.dumps({"staffdir_ops": 1, "_serialization_error": True, "record_str": str(record)})
        try:
            with self._lock:
                with self.file_path.open("a", encoding="utf-8") as f:
                    f.write(line)
                    f.write("\n")
        except OSError as e:
            print(f"Ops log write failed ({self.file_path}): {e}", file=sys.stderr)
        if self.also_stdout:
            print(line)


def resource_usage() -> Dict[str, Optional[float]]:
    """CPU% and RSS (MB) of the current process."""
    try:
        p = psutil.Process()
        with p.oneshot():
            return {
                "cpu_pct": round(p.cpu_percent(interval=None), 1),
                "rss_mb": round(p.memory_info().rss / (1024 * 1024), 1),
            }
    except psutil.Error:
        return {"cpu_pct": None, "rss_mb": None}


def summary_record(*, processed_pages: int, failed_pages: int, total_entries: int, total_records: int, wall_s: float) -> Dict[str, Any]:
    return {
        "staffdir_ops": 1,
        "summary": True,
        "processed_pages": processed_pages,
        "failed_pages": failed_pages,
        "total_entries": total_entries,
        "total_records": total_records,
        "durations": {"wall_s": round(max(0.0, wall_s), 2)},
        "resources": resource_usage(),
        "python": f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
        "host": {"platform": platform.system(), "release": platform.release(), "machine": platform.machine()},
    }
