from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from openpyxl import load_workbook


class ItemSourceError(Exception):
    pass


@dataclass(frozen=True, slots=True)
class TestItem:
    __test__ = False  # not a pytest class

    code: str
    description: str = ""


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def load_items(path: str | Path) -> list[TestItem]:
    """
    Read test cases from the first worksheet of an .xlsx workbook.

    Row 1 is a header. Column A is the code, column B the description; rows
    with a blank code are skipped.
    """
    p = Path(path)
    try:
        wb = load_workbook(p, read_only=True, data_only=True)
    except Exception as e:
        raise ItemSourceError(f"Cannot open workbook {p.name}: {e}") from e

    try:
        if not wb.worksheets:
            raise ItemSourceError(f"Workbook {p.name} has no worksheets")
        ws = wb.worksheets[0]
        items: list[TestItem] = []
        for row in ws.iter_rows(min_row=2, values_only=True):
            if len(row) < 2:
                continue
            code = _cell_text(row[0]).strip()
            if not code:
                continue
            items.append(TestItem(code=code, description=_cell_text(row[1])))
        return items
    finally:
        wb.close()
