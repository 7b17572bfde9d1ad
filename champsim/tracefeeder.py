"""Per-page feed data loaded from CSV files alongside traces."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence, Union

__all__ = ["FeedRow", "TraceFeeder"]

_PAGE_SHIFT = 12
_HIT_BITS = 64


@dataclass(frozen=True)
class FeedRow:
    """One page's record: physical frame, hit and prefetch counts, hit bitmap."""

    pfn: int
    hits: int
    prefetchs: int
    hit_bits_accumulated: int


def _warn(message: str) -> None:
    print(f"Error: {message}", file=sys.stderr)


def _parse_hex(cell: Optional[str]) -> Optional[int]:
    if cell is None or not cell.startswith("0x"):
        return None
    try:
        return int(cell, 16)
    except ValueError:
        return None


def _parse_dec(cell: Optional[str]) -> Optional[int]:
    if not cell:
        return None
    try:
        value = int(cell)
    except ValueError:
        return None
    return value if value >= 0 else None


def _parse_bits(cell: Optional[str]) -> Optional[int]:
    if not cell or len(cell) > _HIT_BITS + 1:
        return None
    bits = cell[:_HIT_BITS]
    if any(c not in "01" for c in bits):
        return None
    return int(bits, 2)


def _parse_row(line: str):
    cells = line.split(",")
    cells += [None] * (5 - len(cells))
    checks = (
        ("vfn", _parse_hex),
        ("pfn", _parse_hex),
        ("hits", _parse_dec),
        ("prefetchs", _parse_dec),
        ("hit_bits_accumulated", _parse_bits),
    )
    values = []
    for (name, parse), cell in zip(checks, cells):
        value = parse(cell)
        if value is None:
            _warn(f"Invalid {name} format.")
            return None
        values.append(value)
    vfn, pfn, hits, prefetchs, bits = values
    return vfn, FeedRow(pfn, hits, prefetchs, bits)


class TraceFeeder:
    """Loads one CSV feed per trace and looks rows up by virtual page."""

    def __init__(self, paths: Sequence[Union[str, os.PathLike]] = ()):
        self.paths = list(paths)
        self.data: List[Dict[int, FeedRow]] = []

    def read_csv(self) -> None:
        """Load every feed file, replacing anything loaded before.

        Malformed rows are reported and skipped. A missing file raises
        FileNotFoundError; a file without a header line raises ValueError.
        """
        self.data.clear()
        for path in self.paths:
            with open(path, "r", newline="") as file:
                header = file.readline()
                if not header:
                    raise ValueError(f"empty file or unable to read column names: {path}")
                rows: Dict[int, FeedRow] = {}
                for line in file:
                    parsed = _parse_row(line.rstrip("\r\n"))
                    if parsed is not None:
                        vfn, row = parsed
                        rows[vfn] = row
            self.data.append(rows)

    def find(self, feed_idx: int, vaddr: int) -> Optional[FeedRow]:
        """Return the row for the page holding ``vaddr`` in feed ``feed_idx``, or None."""
        if not 0 <= feed_idx < len(self.data):
            raise IndexError(f"invalid feed index: {feed_idx}")
        return self.data[feed_idx].get(vaddr >> _PAGE_SHIFT)

    def _lines(self) -> Iterator[str]:
        for path, rows in zip(self.paths, self.data):
            yield f"Data from file: {os.fspath(path)}"
            for vfn, row in rows.items():
                yield (
                    f"vfn: 0x{vfn:x}, pfn: 0x{row.pfn:x}, hits: {row.hits}, "
                    f"prefetchs: {row.prefetchs}, "
                    f"hit_bits_accumulated: {row.hit_bits_accumulated:0{_HIT_BITS}b}"
                )
            yield "-" * 33

    def format_data(self) -> str:
        """Render all loaded feeds as text."""
        return "".join(line + "\n" for line in self._lines())

    def print_data(self) -> None:
        """Write all loaded feeds to standard output."""
        out = sys.stdout
        for line in self._lines():
            out.write(line + "\n")
        out.flush()