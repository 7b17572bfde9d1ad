"""Binary record formats of instruction traces."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import ClassVar, Iterator, Tuple

__all__ = [
    "REG_STACK_POINTER",
    "REG_FLAGS",
    "REG_INSTRUCTION_POINTER",
    "NUM_INSTR_DESTINATIONS_SPARC",
    "NUM_INSTR_DESTINATIONS",
    "NUM_INSTR_SOURCES",
    "InputInstr",
    "CloudsuiteInstr",
]

# Special registers that identify branches.
REG_STACK_POINTER = 6
REG_FLAGS = 25
REG_INSTRUCTION_POINTER = 26

NUM_INSTR_DESTINATIONS_SPARC = 4
NUM_INSTR_DESTINATIONS = 2
NUM_INSTR_SOURCES = 4


def _fixed(values, length: int, name: str) -> Tuple[int, ...]:
    values = tuple(int(v) for v in values)
    if len(values) > length:
        raise ValueError(f"{name} holds at most {length} entries, got {len(values)}")
    return values + (0,) * (length - len(values))


def _pack(layout: struct.Struct, fields: tuple) -> bytes:
    try:
        return layout.pack(*fields)
    except struct.error as exc:
        raise ValueError(str(exc)) from exc


def _check_one(name: str, size: int, data: bytes) -> None:
    if len(data) != size:
        raise ValueError(f"{name} needs {size} bytes, got {len(data)}")


def _check_many(size: int, data: bytes) -> None:
    if len(data) % size:
        raise ValueError(f"data length {len(data)} is not a multiple of {size}")


@dataclass
class InputInstr:
    """The standard trace record."""

    ip: int = 0
    is_branch: int = 0
    branch_taken: int = 0
    destination_registers: Tuple[int, ...] = field(default_factory=tuple)
    source_registers: Tuple[int, ...] = field(default_factory=tuple)
    destination_memory: Tuple[int, ...] = field(default_factory=tuple)
    source_memory: Tuple[int, ...] = field(default_factory=tuple)

    _STRUCT: ClassVar[struct.Struct] = struct.Struct(
        f"<QBB{NUM_INSTR_DESTINATIONS}B{NUM_INSTR_SOURCES}B{NUM_INSTR_DESTINATIONS}Q{NUM_INSTR_SOURCES}Q"
    )
    SIZE: ClassVar[int] = _STRUCT.size

    def __post_init__(self):
        self.destination_registers = _fixed(self.destination_registers, NUM_INSTR_DESTINATIONS, "destination_registers")
        self.source_registers = _fixed(self.source_registers, NUM_INSTR_SOURCES, "source_registers")
        self.destination_memory = _fixed(self.destination_memory, NUM_INSTR_DESTINATIONS, "destination_memory")
        self.source_memory = _fixed(self.source_memory, NUM_INSTR_SOURCES, "source_memory")

    def _fields(self) -> tuple:
        return (
            self.ip,
            int(self.is_branch),
            int(self.branch_taken),
            *self.destination_registers,
            *self.source_registers,
            *self.destination_memory,
            *self.source_memory,
        )

    @classmethod
    def _from_fields(cls, fields) -> InputInstr:
        nd, ns = NUM_INSTR_DESTINATIONS, NUM_INSTR_SOURCES
        ip, is_branch, taken, *rest = fields
        return cls(
            ip=ip,
            is_branch=is_branch,
            branch_taken=taken,
            destination_registers=tuple(rest[:nd]),
            source_registers=tuple(rest[nd:nd + ns]),
            destination_memory=tuple(rest[nd + ns:2 * nd + ns]),
            source_memory=tuple(rest[2 * nd + ns:]),
        )

    def pack(self) -> bytes:
        """Encode the record in its on-disk layout."""
        return _pack(self._STRUCT, self._fields())

    @classmethod
    def from_bytes(cls, data: bytes) -> InputInstr:
        """Decode exactly one record."""
        _check_one(cls.__name__, cls.SIZE, data)
        return cls._from_fields(cls._STRUCT.unpack(data))

    @classmethod
    def iter_unpack(cls, data: bytes) -> Iterator[InputInstr]:
        """Decode consecutive records; the data must hold whole records only."""
        _check_many(cls.SIZE, data)
        for fields in cls._STRUCT.iter_unpack(data):
            yield cls._from_fields(fields)


@dataclass
class CloudsuiteInstr:
    """The wider trace record that also carries an address-space id."""

    ip: int = 0
    is_branch: int = 0
    branch_taken: int = 0
    destination_registers: Tuple[int, ...] = field(default_factory=tuple)
    source_registers: Tuple[int, ...] = field(default_factory=tuple)
    destination_memory: Tuple[int, ...] = field(default_factory=tuple)
    source_memory: Tuple[int, ...] = field(default_factory=tuple)
    asid: Tuple[int, ...] = field(default_factory=tuple)

    _STRUCT: ClassVar[struct.Struct] = struct.Struct(
        f"<QBB{NUM_INSTR_DESTINATIONS_SPARC}B{NUM_INSTR_SOURCES}B6x"
        f"{NUM_INSTR_DESTINATIONS_SPARC}Q{NUM_INSTR_SOURCES}Q2B6x"
    )
    SIZE: ClassVar[int] = _STRUCT.size

    def __post_init__(self):
        self.destination_registers = _fixed(self.destination_registers, NUM_INSTR_DESTINATIONS_SPARC, "destination_registers")
        self.source_registers = _fixed(self.source_registers, NUM_INSTR_SOURCES, "source_registers")
        self.destination_memory = _fixed(self.destination_memory, NUM_INSTR_DESTINATIONS_SPARC, "destination_memory")
        self.source_memory = _fixed(self.source_memory, NUM_INSTR_SOURCES, "source_memory")
        self.asid = _fixed(self.asid, 2, "asid")

    def _fields(self) -> tuple:
        return (
            self.ip,
            int(self.is_branch),
            int(self.branch_taken),
            *self.destination_registers,
            *self.source_registers,
            *self.destination_memory,
            *self.source_memory,
            *self.asid,
        )

    @classmethod
    def _from_fields(cls, fields) -> CloudsuiteInstr:
        nd, ns = NUM_INSTR_DESTINATIONS_SPARC, NUM_INSTR_SOURCES
        ip, is_branch, taken, *rest = fields
        return cls(
            ip=ip,
            is_branch=is_branch,
            branch_taken=taken,
            destination_registers=tuple(rest[:nd]),
            source_registers=tuple(rest[nd:nd + ns]),
            destination_memory=tuple(rest[nd + ns:2 * nd + ns]),
            source_memory=tuple(rest[2 * nd + ns:2 * nd + 2 * ns]),
            asid=tuple(rest[2 * nd + 2 * ns:]),
        )

    def pack(self) -> bytes:
        """Encode the record in its on-disk layout."""
        return _pack(self._STRUCT, self._fields())

    @classmethod
    def from_bytes(cls, data: bytes) -> CloudsuiteInstr:
        """Decode exactly one record."""
        _check_one(cls.__name__, cls.SIZE, data)
        return cls._from_fields(cls._STRUCT.unpack(data))

    @classmethod
    def iter_unpack(cls, data: bytes) -> Iterator[CloudsuiteInstr]:
        """Decode consecutive records; the data must hold whole records only."""
        _check_many(cls.SIZE, data)
        for fields in cls._STRUCT.iter_unpack(data):
            yield cls._from_fields(fields)