"""
Run logging: stdout/stderr -> timestamped per-run files, plus console colours.

Everything else in the package just prints; setup_logging() makes those lines
land in <output>/logs/<run>.out.log and <run>.err.log as well as on the console.
"""

import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional, Tuple

ANSI_RESET = "\033[0m"
ANSI_RED = "\033[31m"
ANSI_YELLOW = "\033[33m"
ANSI_GREEN = "\033[32m"


class TimestampedTee:
    """
    File-like wrapper that copies everything written to it into a log file,
    stamping the start of every line with the local time.
    """

    def __init__(self, stream, file_handle, clock=datetime.now):
        self.stream = stream
        self.file_handle = file_handle
        self.clock = clock
        self.at_line_start = True

    def _emit(self, text: str) -> None:
        self.stream.write(text)
        self.file_handle.write(text)

    def write(self, data: str) -> int:
        written = 0
        for line in (data or "").splitlines(True):
            if self.at_line_start:
                line = f"[{self.clock():%Y-%m-%d %H:%M:%S}] {line}"
            self._emit(line)
            written += len(line)
            self.at_line_start = line.endswith("\n")
        if written:
            self.flush()
        return written

    def flush(self) -> None:
        for target in (self.stream, self.file_handle):
            target.flush()

    def isatty(self) -> bool:
        return self.stream.isatty()


def cleanup_old_logs(log_dir: Path, retention_days: int, now: Optional[datetime] = None) -> int:
    """Delete *.log files older than retention_days. Returns how many went."""
    cutoff = (now or datetime.now()) - timedelta(days=retention_days)
    removed = 0
    for path in log_dir.glob("*.log"):
        try:
            if datetime.fromtimestamp(path.stat().st_mtime) < cutoff:
                path.unlink()
                removed += 1
        except OSError:
            # File vanished or is locked; the next run will try again.
            continue
    return removed


def _tee(stream, path: Path) -> TimestampedTee:
    return TimestampedTee(stream, path.open("a", encoding="utf-8"))


def setup_logging(log_dir: Path, retention_days: int) -> Tuple[Path, Path]:
    """Send stdout/stderr through TimestampedTee for the rest of the process."""
    log_dir.mkdir(parents=True, exist_ok=True)
    stem = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    out_path, err_path = log_dir / f"{stem}.out.log", log_dir / f"{stem}.err.log"

    sys.stdout = _tee(sys.stdout, out_path)
    sys.stderr = _tee(sys.stderr, err_path)

    removed = cleanup_old_logs(log_dir, retention_days)
    if removed:
        print(f"Removed {removed} log files older than {retention_days} days")
    return out_path, err_path


def colour_for_status(status: str) -> str:
    """
    Map suitability status -> ANSI colour.
    - suitable: green
    - not_suitable: red
    - anything else: yellow
    """
    s = (status or "").lower()
    if s == "suitable":
        return ANSI_GREEN
    if s == "not_suitable":
        return ANSI_RED
    return ANSI_YELLOW


def colourise(text: str, colour: str) -> str:
    """Only emit escape codes when stdout is a real terminal."""
    if not sys.stdout.isatty():
        return text
    return f"{colour}{text}{ANSI_RESET}"
