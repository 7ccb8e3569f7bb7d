"""Move recording with CSV/JSONL export."""

import csv
import json
import os
from typing import Any, Dict, List


class MoveRecorder:
    """Records one dictionary row per move of a play session."""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self.rows: List[Dict[str, Any]] = []

    def log(self, row: Dict[str, Any]):
        """Log a row, cleaning values for serialization."""
        if not self.enabled:
            return

        clean_row = {}
        for k, v in row.items():
            if v is None or isinstance(v, (bool, int, float, str)):
                clean_row[k] = v
            elif hasattr(v, 'tolist'):  # numpy array or scalar
                clean_row[k] = v.tolist()
            elif isinstance(v, (list, tuple)):
                clean_row[k] = [list(x) if isinstance(x, tuple) else x for x in v]
            else:
                clean_row[k] = str(v)
        self.rows.append(clean_row)

    def dump_csv(self, path: str):
        """Dump rows to a CSV file."""
        if not self.enabled or not self.rows:
            return

        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        keys = sorted({k for row in self.rows for k in row})

        with open(path, "w", newline="") as f:
            w = csv.DictWriter(f, fieldnames=keys)
            w.writeheader()
            for row in self.rows:
                w.writerow({k: json.dumps(v) if isinstance(v, list) else v for k, v in row.items()})

    def dump_jsonl(self, path: str):
        """Dump rows to a JSONL file."""
        if not self.enabled or not self.rows:
            return

        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)

        with open(path, "w") as f:
            for row in self.rows:
                f.write(json.dumps(row) + "\n")

    def get_recent(self, n: int = 10) -> List[Dict[str, Any]]:
        """Most recent n rows."""
        return self.rows[-n:] if n > 0 else []

    def clear(self):
        self.rows.clear()
