"""
Timeline aggregation for Depth OCR.

Serializes the ordered sequence of parsed snapshots into the two output
artifacts: a JSON array in chronological order and a flat CSV table with
one row per ladder level, newest snapshot first.
"""

import csv
import io
import json
import math
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple

from .utils import Snapshot, JSON_OUTPUT_NAME, CSV_OUTPUT_NAME


CSV_HEADER = [
    "Bid Price", "Orders", "QTY", "Offer", "Orders", "QTY",
    "Open", "High", "Low", "Prev.Close", "Volume", "Avg.price",
    "Lower circuit", "Upper circuit", "LTQ", "LTT",
]


def format_csv_value(value: Any) -> str:
    """Render a cell: 100.0 -> "100", NaN -> "NaN", missing -> ""."""
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if value.is_integer():
            return str(int(value))
    return str(value)


class TimelineAggregator:
    """Builds output.json and output.csv from a sequence of snapshots."""

    def __init__(self, json_name: str = JSON_OUTPUT_NAME, csv_name: str = CSV_OUTPUT_NAME, indent: int = 2):
        self.json_name = json_name
        self.csv_name = csv_name
        self.indent = indent

    def to_json(self, snapshots: Sequence[Snapshot]) -> List[Dict[str, Any]]:
        """Snapshots as plain dicts, in their original order."""
        return [snapshot.to_dict() for snapshot in snapshots]

    def dumps_json(self, snapshots: Sequence[Snapshot]) -> str:
        return json.dumps(self.to_json(snapshots), indent=self.indent, ensure_ascii=False)

    def csv_rows(self, snapshots: Sequence[Snapshot]) -> List[List[str]]:
        """
        Flatten snapshots into CSV data rows.

        Snapshot order is reversed; each snapshot contributes one row per
        ladder level (in ladder order) with its footer fields repeated.
        """
        rows = []
        for snapshot in reversed(snapshots):
            footer = [
                snapshot.open, snapshot.high, snapshot.low, snapshot.prev_close,
                snapshot.volume, snapshot.avg_price,
                snapshot.lower_circuit, snapshot.upper_circuit,
                snapshot.ltq, snapshot.ltt,
            ]
            for level in snapshot.order_book:
                values = [
                    level.bid_price, level.bid_orders, level.bid_quantity,
                    level.ask_price, level.ask_orders, level.ask_quantity,
                ] + footer
                rows.append([format_csv_value(v) for v in values])
        return rows

    def to_csv(self, snapshots: Sequence[Snapshot]) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_HEADER)
        writer.writerows(self.csv_rows(snapshots))
        return buffer.getvalue()

    def save(self, snapshots: Sequence[Snapshot], out_dir: Path) -> Tuple[Path, Path]:
        """
        Write both artifacts.

        Returns:
            (json_path, csv_path)
        """
        out_path = Path(out_dir)
        out_path.mkdir(parents=True, exist_ok=True)

        json_path = out_path / self.json_name
        with open(json_path, "w", encoding="utf-8") as f:
            f.write(self.dumps_json(snapshots))

        csv_path = out_path / self.csv_name
        with open(csv_path, "w", encoding="utf-8", newline="") as f:
            f.write(self.to_csv(snapshots))

        print(f"[Output] Wrote {len(snapshots)} snapshots to {json_path} and {csv_path}")
        return json_path, csv_path
