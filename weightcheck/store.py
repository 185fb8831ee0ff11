"""
Append-only workbook store for shift records.

Each spout of a shift becomes one row on a single named sheet. The header row
is the schema: it is written once when the sheet is created and checked on
every later open. Writes go to a temporary file next to the target and are
moved into place with ``os.replace``, and every append to a given path runs
under that path's lock so concurrent read-modify-write cycles cannot drop rows.
"""
import logging
import os
import tempfile
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple
from zipfile import BadZipFile

from openpyxl import Workbook, load_workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.reader.excel import SUPPORTED_FORMATS
from openpyxl.styles import Font
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.worksheet.worksheet import Worksheet

from weightcheck.errors import SchemaMismatchError, StoreIOError, StoreTimeoutError
from weightcheck.models import ShiftRecord

log = logging.getLogger(__name__)

SCHEMA_VERSION = 1
DEFAULT_SHEET_NAME = "Weight Checks"

_LEADING_COLUMNS = ("Date", "Time", "Operator", "Shift", "Spout")
_TRAILING_COLUMNS = ("Average", "Std Dev", "Comments")

_registry_lock = threading.Lock()
_path_locks: Dict[str, threading.Lock] = {}


def schema_columns(sample_count: int) -> Tuple[str, ...]:
    """Header row for schema v1 with ``sample_count`` sample columns."""
    samples = tuple(f"Sample {n}" for n in range(1, sample_count + 1))
    return _LEADING_COLUMNS + samples + _TRAILING_COLUMNS


def path_lock(path: os.PathLike) -> threading.Lock:
    key = os.path.normcase(os.path.abspath(os.fspath(path)))
    with _registry_lock:
        lock = _path_locks.get(key)
        if lock is None:
            lock = _path_locks[key] = threading.Lock()
        return lock


def _cell_text(value: str) -> str:
    # control characters are not representable in a worksheet cell
    return ILLEGAL_CHARACTERS_RE.sub("", value)


def flatten_shift(record: ShiftRecord) -> List[List[Any]]:
    """One row per spout, in spout order, matching ``schema_columns``."""
    rows = []
    for index, spout in enumerate(record.spouts, start=1):
        rows.append([
            record.date.isoformat(),
            record.time.isoformat(timespec="minutes"),
            _cell_text(record.operator_name.strip()),
            record.shift.value if record.shift else "",
            f"Spout {index}",
            *[s.value for s in spout.parsed()],
            spout.average,
            spout.standard_deviation,
            _cell_text(spout.comment),
        ])
    return rows


def _header_of(ws: Worksheet) -> Tuple[str, ...]:
    first = next(ws.iter_rows(min_row=1, max_row=1, values_only=True), ())
    header = [("" if v is None else str(v).strip()) for v in first]
    while header and not header[-1]:
        header.pop()
    return tuple(header)


def _write_header(ws: Worksheet, columns: Sequence[str]) -> None:
    bold = Font(bold=True)
    for col, name in enumerate(columns, start=1):
        cell = ws.cell(row=1, column=col, value=name)
        cell.font = bold
    ws.freeze_panes = "A2"


class AppendStore:
    def __init__(self, sheet_name: str = DEFAULT_SHEET_NAME, sample_count: int = 3):
        self.sheet_name = sheet_name
        self.columns = schema_columns(sample_count)

    def append_shift(self, record: ShiftRecord, path: os.PathLike, timeout: Optional[float] = None) -> int:
        """
        Append one row per spout of ``record`` to the workbook at ``path``.

        Blocks until no other append to the same path is running. ``timeout``
        bounds only that wait; once the lock is held the write runs to
        completion. Returns the number of rows written.

        Raises SchemaMismatchError, StoreIOError or StoreTimeoutError. A
        schema mismatch, an unsupported extension or a timeout leaves the
        file exactly as it was.
        """
        path = Path(path)
        if path.suffix.lower() not in SUPPORTED_FORMATS:
            raise StoreIOError(
                f"{path}: unsupported workbook extension {path.suffix!r}; use one of {', '.join(SUPPORTED_FORMATS)}"
            )
        lock = path_lock(path)
        if not lock.acquire(timeout=-1 if timeout is None else max(0.0, timeout)):
            raise StoreTimeoutError(f"{path}: timed out after {timeout}s waiting for another writer")
        try:
            return self._append_locked(record, path)
        finally:
            lock.release()

    def _append_locked(self, record: ShiftRecord, path: Path) -> int:
        wb, ws = self._open(path)
        rows = flatten_shift(record)
        next_row = ws.max_row + 1
        for offset, row in enumerate(rows):
            for col, value in enumerate(row, start=1):
                ws.cell(row=next_row + offset, column=col, value=value)
        self._save_atomic(wb, path)
        log.info("Appended %d rows to %s [%s]", len(rows), path, self.sheet_name)
        return len(rows)

    def _open(self, path: Path) -> Tuple[Workbook, Worksheet]:
        if not path.exists():
            return self._bootstrap(path)
        try:
            wb = load_workbook(path)
        except (InvalidFileException, BadZipFile, KeyError, ValueError) as exc:
            self._move_aside(path, exc)
            return self._bootstrap(path)
        except OSError as exc:
            log.error("Cannot read %s: %s", path, exc)
            raise StoreIOError(f"{path}: cannot read workbook: {exc}") from exc

        if self.sheet_name not in wb.sheetnames:
            ws = wb.create_sheet(self.sheet_name)
            _write_header(ws, self.columns)
            log.info("Added sheet %r to %s", self.sheet_name, path)
            return wb, ws

        ws = wb[self.sheet_name]
        found = _header_of(ws)
        if not found and ws.max_row <= 1:
            _write_header(ws, self.columns)
            return wb, ws
        if found != self.columns:
            raise SchemaMismatchError(path, self.columns, found)
        return wb, ws

    def _bootstrap(self, path: Path) -> Tuple[Workbook, Worksheet]:
        wb = Workbook()
        ws = wb.active
        ws.title = self.sheet_name
        _write_header(ws, self.columns)
        log.info("Creating %s with schema v%d", path, SCHEMA_VERSION)
        return wb, ws

    @staticmethod
    def _move_aside(path: Path, exc: Exception) -> None:
        stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        target = path.with_name(f"{path.stem}.corrupt-{stamp}{path.suffix}")
        try:
            os.replace(path, target)
        except OSError as move_exc:
            raise StoreIOError(f"{path}: unreadable workbook could not be moved aside: {move_exc}") from move_exc
        log.warning("%s is not a readable workbook (%s); moved to %s", path, exc, target.name)

    @staticmethod
    def _save_atomic(wb: Workbook, path: Path) -> None:
        temp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            temp_fd, temp_name = tempfile.mkstemp(
                prefix=f"{path.name}.",
                suffix=".tmp",
                dir=str(path.parent),
            )
            os.close(temp_fd)
            wb.save(temp_name)
            with open(temp_name, "r+b") as fh:
                os.fsync(fh.fileno())
            os.replace(temp_name, path)
        except OSError as exc:
            log.error("Cannot write %s: %s", path, exc)
            raise StoreIOError(f"{path}: cannot write workbook: {exc}") from exc
        finally:
            if temp_name is not None:
                Path(temp_name).unlink(missing_ok=True)
