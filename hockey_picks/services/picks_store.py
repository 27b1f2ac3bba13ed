"""Saved analysis snapshots (one JSON file per run)."""

import json
import logging
from datetime import UTC, datetime
from pathlib import Path

from pydantic import ValidationError

from hockey_picks.schemas.picks import PicksFileInfo, PicksSnapshot
from hockey_picks.services.data_store import PICKS_FILE_PREFIX, DataStore

logger = logging.getLogger(__name__)


def _picks_index(path: Path) -> int:
    """Numeric n of picks_<n>.json, so picks_10 sorts after picks_9."""
    stem = path.stem.removeprefix(PICKS_FILE_PREFIX)
    return int(stem) if stem.isdigit() else 0


def save_picks_snapshot(store: DataStore, snapshot: PicksSnapshot) -> Path:
    """Write a snapshot to the next free picks file for its date.

    Returns:
        Path of the written file
    """
    path = store.next_picks_file(snapshot.run_date)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(snapshot.model_dump_json(indent=2), encoding="utf-8")
    logger.info(f"Picks saved to: {path}")
    return path


def list_picks(store: DataStore) -> list[PicksFileInfo]:
    """List saved snapshots, newest date first, files in run order."""
    if not store.picks_dir.exists():
        return []

    date_dirs = sorted(
        (d for d in store.picks_dir.iterdir() if d.is_dir()),
        key=lambda d: d.name,
        reverse=True,
    )

    files = []
    for date_dir in date_dirs:
        for path in sorted(date_dir.glob("*.json"), key=_picks_index):
            stat = path.stat()
            files.append(
                PicksFileInfo(
                    run_date=date_dir.name,
                    filename=path.name,
                    size_bytes=stat.st_size,
                    modified=datetime.fromtimestamp(stat.st_mtime, tz=UTC),
                )
            )
    return files


def load_picks(store: DataStore, run_date: str, filename: str) -> PicksSnapshot | None:
    """Load one snapshot, or None if it doesn't exist or can't be parsed."""
    path = store.picks_dir / run_date / filename
    if not path.is_file():
        return None
    try:
        return PicksSnapshot.model_validate_json(path.read_text(encoding="utf-8"))
    except (OSError, ValidationError, json.JSONDecodeError) as e:
        logger.error(f"Failed to load picks file {path}: {type(e).__name__}: {e}")
        return None


def load_latest_picks(store: DataStore) -> PicksSnapshot | None:
    """Load the most recent snapshot (latest date, highest run number)."""
    files = list_picks(store)
    if not files:
        return None

    latest_date = files[0].run_date
    same_day = [f for f in files if f.run_date == latest_date]
    latest = same_day[-1]
    return load_picks(store, latest.run_date, latest.filename)
