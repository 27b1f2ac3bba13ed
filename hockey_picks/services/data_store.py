"""On-disk layout of cached API data and saved picks.

~/.tims/data/<season>-season-players.json   season player pools
~/.tims/data/<TEAM>-schedule.json           team season schedules
~/.tims/picks/<YYYY-MM-DD>/picks_<n>.json   analysis snapshots
"""

import json
import logging
from datetime import date
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

SEASON_FILE_SUFFIX = "-season-players.json"
SCHEDULE_FILE_SUFFIX = "-schedule.json"
PICKS_FILE_PREFIX = "picks_"


class DataStore:
    """File locations and JSON read/write for the local cache."""

    def __init__(self, data_dir: Path, picks_dir: Path) -> None:
        self.data_dir = Path(data_dir).expanduser()
        self.picks_dir = Path(picks_dir).expanduser()

    def ensure_dirs(self) -> None:
        """Create the data and picks directories if missing."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.picks_dir.mkdir(parents=True, exist_ok=True)

    # -------------------------------------------------------------------------
    # Paths
    # -------------------------------------------------------------------------

    def season_file(self, season_id: str) -> Path:
        return self.data_dir / f"{season_id}{SEASON_FILE_SUFFIX}"

    def schedule_file(self, team: str) -> Path:
        return self.data_dir / f"{team}{SCHEDULE_FILE_SUFFIX}"

    def schedule_files(self) -> list[Path]:
        """All cached schedule files, sorted by name."""
        if not self.data_dir.exists():
            return []
        return sorted(self.data_dir.glob(f"*{SCHEDULE_FILE_SUFFIX}"))

    def picks_dir_for(self, day: date) -> Path:
        return self.picks_dir / day.isoformat()

    def next_picks_file(self, day: date) -> Path:
        """First unused picks_<n>.json path in the day's directory."""
        day_dir = self.picks_dir_for(day)
        index = 1
        while (day_dir / f"{PICKS_FILE_PREFIX}{index}.json").exists():
            index += 1
        return day_dir / f"{PICKS_FILE_PREFIX}{index}.json"

    # -------------------------------------------------------------------------
    # JSON I/O
    # -------------------------------------------------------------------------

    @staticmethod
    def read_json(path: Path) -> Any:
        """Read a JSON file.

        Raises:
            OSError: If the file can't be read
            json.JSONDecodeError: If the content isn't valid JSON
        """
        with path.open(encoding="utf-8") as f:
            return json.load(f)

    @staticmethod
    def write_json(path: Path, data: Any) -> None:
        """Write data as indented JSON, creating parent directories."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, default=str)
        logger.debug(f"Wrote {path}")
