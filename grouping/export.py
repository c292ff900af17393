"""CSV download of a grouping, readable by spreadsheet tools."""

from __future__ import annotations

import csv
import io
from datetime import date
from typing import Optional

from .services import GroupingBatch

BOM = "\ufeff"
HEADER = "組別,成員姓名"


def export_filename(on: Optional[date] = None) -> str:
    return f"分組結果_{(on or date.today()).isoformat()}.csv"


def groups_to_csv(batch: GroupingBatch) -> str:
    """One quoted (group, member) row per member, after a BOM and a plain header."""
    buffer = io.StringIO()
    buffer.write(f"{BOM}{HEADER}\n")
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for group in batch.groups:
        for member in group.members:
            writer.writerow([group.name, member.name])
    return buffer.getvalue()
