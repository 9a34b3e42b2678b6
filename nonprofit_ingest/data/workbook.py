# Nonprofit Ingest - Workbook Reader
# ==================================
# The only boundary to a concrete spreadsheet codec
"""
Workbook decoding.

The Excel parser only ever sees a Workbook: sheet names plus an
array-of-arrays of cell values per sheet (None for empty cells). Any codec can
be plugged in by implementing WorkbookReader; the bundled PandasWorkbookReader
uses pandas.read_excel (openpyxl for .xlsx, xlrd for .xls).
"""

import io
import logging
import math
from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

import pandas as pd

from ..exceptions import WorkbookReadError

logger = logging.getLogger(__name__)

Cell = Union[str, int, float, bool, datetime, date, None]


class Workbook(ABC):
    """Decoded workbook: ordered sheet names and their cell grids."""

    @property
    @abstractmethod
    def sheet_names(self) -> List[str]:
        """Sheet names in workbook order."""
        pass

    @abstractmethod
    def cells_of(self, sheet_name: str) -> List[List[Cell]]:
        """Rows of cell values for a sheet, None for empty cells."""
        pass


class WorkbookReader(ABC):
    """Decodes a spreadsheet binary into a Workbook."""

    @abstractmethod
    def read(self, data: bytes) -> Workbook:
        """
        Decode a workbook.

        Raises:
            WorkbookReadError: if the binary cannot be decoded
        """
        pass


class InMemoryWorkbook(Workbook):
    """Workbook backed by a dict of sheet name -> rows."""

    def __init__(self, sheets: Dict[str, List[List[Cell]]]):
        self._sheets = dict(sheets)

    @property
    def sheet_names(self) -> List[str]:
        return list(self._sheets.keys())

    def cells_of(self, sheet_name: str) -> List[List[Cell]]:
        return [list(row) for row in self._sheets.get(sheet_name, [])]


def _clean_cell(value: Any) -> Cell:
    """Turn pandas/numpy scalars into plain Python cell values."""
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if value is pd.NaT:
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if hasattr(value, "item") and not isinstance(value, (str, bytes)):
        # numpy scalar
        return value.item()
    return value


def _trim_trailing_empty(row: List[Cell]) -> List[Cell]:
    end = len(row)
    while end > 0 and row[end - 1] is None:
        end -= 1
    return row[:end]


class PandasWorkbookReader(WorkbookReader):
    """
    WorkbookReader built on pandas.read_excel.

    Every sheet is read without a header row and with object dtype so the
    parser sees raw cell values. Rows are reported up to their last non-empty
    cell.
    """

    def __init__(self, engine: Optional[str] = None):
        """
        Args:
            engine: pandas Excel engine override ('openpyxl', 'xlrd'); auto when None
        """
        self.engine = engine

    def read(self, data: bytes) -> Workbook:
        try:
            frames = pd.read_excel(
                io.BytesIO(data),
                sheet_name=None,
                header=None,
                dtype=object,
                engine=self.engine,
            )
        except Exception as e:
            logger.error(f"Failed to decode workbook: {e}")
            raise WorkbookReadError(str(e)) from e

        sheets: Dict[str, List[List[Cell]]] = {}
        for sheet_name, df in frames.items():
            rows = []
            for raw in df.itertuples(index=False, name=None):
                rows.append(_trim_trailing_empty([_clean_cell(v) for v in raw]))
            sheets[str(sheet_name)] = rows
            logger.debug(f"Decoded sheet {sheet_name}: {len(rows)} rows")

        return InMemoryWorkbook(sheets)
