from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from .errors import ValidationError
from .models import ScheduleResult

logger = logging.getLogger(__name__)


class ResultStore:
    """
    Persist simulation results as JSON documents in a directory.

    Each saved run is keyed by algorithm name, UTC timestamp and an optional
    test case reference. The simulation core never touches this class; the
    CLI hands finished results to it.
    """

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def save(
        self,
        result: ScheduleResult,
        test_case: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)

        created_at = created_at or datetime.now(timezone.utc)
        stamp = created_at.strftime("%Y%m%dT%H%M%S%fZ")
        path = self.directory / f"{stamp}-{result.algorithm.lower()}.json"
        counter = 1
        while path.exists():
            path = self.directory / f"{stamp}-{result.algorithm.lower()}-{counter}.json"
            counter += 1

        record = {
            "algorithm": result.algorithm,
            "created_at": created_at.isoformat(),
            "test_case": test_case,
            "result": result.to_dict(),
        }
        with path.open("w", encoding="utf-8") as f:
            json.dump(record, f, indent=2)

        logger.info("Saved %s result to %s", result.algorithm, path)
        return path

    def history(
        self,
        algorithm: Optional[str] = None,
        test_case: Optional[str] = None,
        limit: int = 20,
    ) -> List[dict]:
        """
        Return saved records, newest first, optionally filtered.
        """
        if limit < 0:
            raise ValidationError([f"limit must be a non-negative integer, got {limit}"])
        if not self.directory.is_dir():
            return []

        records: List[dict] = []
        for path in self.directory.glob("*.json"):
            try:
                with path.open("r", encoding="utf-8") as f:
                    record = json.load(f)
            except (OSError, json.JSONDecodeError) as exc:
                logger.warning("Skipping unreadable result file %s: %s", path, exc)
                continue

            if algorithm and str(record.get("algorithm", "")).upper() != algorithm.upper():
                continue
            if test_case is not None and record.get("test_case") != test_case:
                continue
            records.append(record)

        records.sort(key=lambda r: r.get("created_at", ""), reverse=True)
        return records[:limit]
