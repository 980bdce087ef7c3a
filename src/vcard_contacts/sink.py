from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Any, Dict, List, Protocol

import pandas as pd

from .models import ContactRecord, RecordStateError

logger = logging.getLogger(__name__)


class RecordSink(Protocol):
    def accept(self, record: ContactRecord, account: Any = None) -> bool:
        ...


class CsvRecordSink:
    """Collects consolidated records as flat rows and writes them as one CSV."""

    def __init__(self, skip_ignorable: bool = True):
        self.skip_ignorable = skip_ignorable
        self.rows: List[Dict[str, Any]] = []
        self.skipped = 0

    def accept(self, record: ContactRecord, account: Any = None) -> bool:
        if not record.is_consolidated:
            raise RecordStateError("sink only accepts consolidated records")
        if self.skip_ignorable and record.is_ignorable():
            self.skipped += 1
            logger.debug("Skipping ignorable record")
            return False
        row = record.to_dict()
        if account is not None:
            row["account"] = str(account)
        self.rows.append(row)
        return True

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(self.rows)

    def write(self, path: Path) -> bool:
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            self.to_dataframe().to_csv(
                str(path), index=False, encoding="utf-8", quoting=csv.QUOTE_ALL
            )
        except OSError as exc:
            logger.error("Failed to write %s: %s", path, exc)
            return False
        logger.info("Saved %d record(s) to %s", len(self.rows), path)
        return True

    def summary(self) -> Dict[str, int]:
        return {"written": len(self.rows), "skipped": self.skipped}


__all__ = ["CsvRecordSink", "RecordSink"]
