"""Type aliases used across the Meridian import engine."""

from __future__ import annotations

from typing import Any

JsonDict = dict[str, Any]
RawRow = list[Any]  # one spreadsheet row, cells in column order
