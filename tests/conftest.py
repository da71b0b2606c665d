"""Shared test fixtures for proc-census."""

from pathlib import Path

import pytest


def make_stat(
    pid: int = 123,
    name: str = "proc name",
    state: str = "S",
    threads: str | int = 4,
) -> bytes:
    """Build a /proc/<pid>/stat record with 50 fields after the name.

    Field 17 after the name (num_threads) is set from ``threads``.
    """
    fields = [state, "1", str(pid), str(pid), "0", "-1", "4194560"]
    fields += ["0"] * 10
    fields.append(str(threads))
    fields += ["0"] * (50 - len(fields))
    return f"{pid} ({name}) {' '.join(fields)}\n".encode()


def write_stat(proc_root: Path, pid: int, data: bytes) -> Path:
    """Write a stat file for a pid under a fake procfs root."""
    pid_dir = proc_root / str(pid)
    pid_dir.mkdir(parents=True, exist_ok=True)
    path = pid_dir / "stat"
    path.write_bytes(data)
    return path


@pytest.fixture
def proc_root(tmp_path: Path) -> Path:
    """Create an empty fake procfs root with a few non-process entries."""
    root = tmp_path / "proc"
    root.mkdir()
    (root / "sys").mkdir()
    (root / "self").mkdir()
    (root / "self" / "stat").write_bytes(make_stat(pid=1, state="Z"))
    (root / "uptime").write_text("1.0 1.0\n")
    return root
