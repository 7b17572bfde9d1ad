"""Readers that turn trace files into model instructions."""

from __future__ import annotations

import itertools
import os
from collections import deque
from typing import Callable, Deque, Iterable, Type

from .instruction import OooModelInstr
from .trace_instruction import InputInstr

__all__ = ["TraceReader", "BulkTraceReader", "Repeatable"]

_BUFFER_SIZE = 128
_REFRESH_THRESH = 1


def _set_branch_targets(instrs: Iterable[OooModelInstr]) -> None:
    """Give each taken branch the ip of the instruction that follows it."""
    items = list(instrs)
    for branch, target in zip(items, items[1:]):
        branch.branch_target = target.ip if (branch.is_branch and branch.branch_taken) else 0


def _read_up_to(stream, size: int) -> bytes:
    chunks = []
    remaining = size
    while remaining > 0:
        chunk = stream.read(remaining)
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


class TraceReader:
    """Wraps an instruction source and stamps each instruction with a unique id."""

    _ids = itertools.count()

    def __init__(self, reader: Callable[[], OooModelInstr]):
        self._reader = reader

    def __call__(self) -> OooModelInstr:
        instr = self._reader()
        instr.instr_id = next(TraceReader._ids)
        return instr

    def eof(self) -> bool:
        """Whether the source is exhausted; sources without eof() never end."""
        eof = getattr(self._reader, "eof", None)
        return bool(eof()) if callable(eof) else False


class BulkTraceReader:
    """Reads fixed-size trace records in batches from a binary stream or path."""

    def __init__(self, cpu: int, stream, instr_format: Type = InputInstr):
        self._cpu = cpu
        self._format = instr_format
        self._owns_stream = isinstance(stream, (str, os.PathLike))
        self._stream = open(stream, "rb") if self._owns_stream else stream
        self._eof = False
        self._buffer: Deque[OooModelInstr] = deque()

    def _refill(self) -> None:
        size = self._format.SIZE
        wanted = (_BUFFER_SIZE - _REFRESH_THRESH) * size
        data = _read_up_to(self._stream, wanted)
        self._eof = len(data) < wanted
        usable = len(data) - len(data) % size
        self._buffer.extend(
            OooModelInstr.from_trace(self._cpu, record) for record in self._format.iter_unpack(data[:usable])
        )
        _set_branch_targets(self._buffer)

    def __call__(self) -> OooModelInstr:
        if len(self._buffer) <= _REFRESH_THRESH:
            self._refill()
        if not self._buffer:
            raise EOFError("trace is exhausted")
        return self._buffer.popleft()

    def eof(self) -> bool:
        return self._eof and len(self._buffer) <= _REFRESH_THRESH

    def close(self) -> None:
        if self._owns_stream:
            self._stream.close()

    def __enter__(self) -> BulkTraceReader:
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class Repeatable:
    """Restarts an exhausted reader from the beginning, so it never ends."""

    def __init__(self, factory: Callable, *args):
        self._factory = factory
        self._args = args
        self._intern = factory(*args)

    def __call__(self) -> OooModelInstr:
        if self._intern.eof():
            print(f"*** Reached end of trace: {self._args}")
            self._intern = self._factory(*self._args)
        return self._intern()

    def eof(self) -> bool:
        return False