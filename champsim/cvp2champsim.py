"""Convert CVP-1 value-prediction traces into the standard instruction trace format."""

from __future__ import annotations

import contextlib
import gzip
import lzma
import sys
from collections import Counter
from dataclasses import dataclass
from enum import IntEnum
from typing import BinaryIO, Iterable, Iterator, Optional, Tuple

from .bits import WORD_MASK
from .trace_instruction import (
    NUM_INSTR_SOURCES,
    REG_FLAGS,
    REG_INSTRUCTION_POINTER,
    REG_STACK_POINTER,
    InputInstr,
)

__all__ = [
    "InstClass",
    "OpType",
    "CvpRecord",
    "Converter",
    "read_record",
    "iter_records",
    "is_branch",
    "open_trace_file",
    "main",
]

_REG_AX = 56
_LINK_REGISTER = 30
_PAGE_SHIFT = 12
_PAGE_OFFSET_MASK = 0xFFF
_FIRST_BUMP_PAGE = 0x1000

_XZ_MAGIC = b"\xfd7zXZ\x00"
_GZIP_MAGIC = b"\x1f\x8b"


class InstClass(IntEnum):
    """Instruction classes recorded in CVP-1 traces."""

    aluInstClass = 0
    loadInstClass = 1
    storeInstClass = 2
    condBranchInstClass = 3
    uncondDirectBranchInstClass = 4
    uncondIndirectBranchInstClass = 5
    fpInstClass = 6
    slowAluInstClass = 7
    undefInstClass = 8


class OpType(IntEnum):
    """Branch operation types."""

    OPTYPE_OP = 2
    OPTYPE_RET_UNCOND = 3
    OPTYPE_JMP_DIRECT_UNCOND = 4
    OPTYPE_JMP_INDIRECT_UNCOND = 5
    OPTYPE_CALL_DIRECT_UNCOND = 6
    OPTYPE_CALL_INDIRECT_UNCOND = 7
    OPTYPE_RET_COND = 8
    OPTYPE_JMP_DIRECT_COND = 9
    OPTYPE_JMP_INDIRECT_COND = 10
    OPTYPE_CALL_DIRECT_COND = 11
    OPTYPE_CALL_INDIRECT_COND = 12
    OPTYPE_ERROR = 13
    OPTYPE_MAX = 14


_BRANCH_CLASSES = frozenset(
    {
        InstClass.condBranchInstClass,
        InstClass.uncondDirectBranchInstClass,
        InstClass.uncondIndirectBranchInstClass,
    }
)

_MEMORY_CLASSES = frozenset({InstClass.loadInstClass, InstClass.storeInstClass})


@dataclass(frozen=True)
class CvpRecord:
    """One record of a CVP-1 trace."""

    pc: int
    inst_class: InstClass
    ea: int = 0
    access_size: int = 0
    taken: bool = False
    target: int = 0
    input_regs: Tuple[int, ...] = ()
    output_regs: Tuple[int, ...] = ()
    output_values: Tuple[int, ...] = ()


def is_branch(inst_class) -> bool:
    """Whether the instruction class is one of the branch classes."""
    return inst_class in _BRANCH_CLASSES


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    data = stream.read(size)
    if len(data) != size:
        raise ValueError("truncated trace record")
    return data


def _read_uint(stream: BinaryIO, size: int) -> int:
    return int.from_bytes(_read_exact(stream, size), "little")


def read_record(stream: BinaryIO) -> Optional[CvpRecord]:
    """Read one record, returning None at the end of the stream.

    A record cut short after its program counter raises ValueError.
    """
    raw_pc = stream.read(8)
    if len(raw_pc) < 8:
        return None
    pc = int.from_bytes(raw_pc, "little")

    type_byte = _read_uint(stream, 1)
    try:
        inst_class = InstClass(type_byte)
    except ValueError:
        raise ValueError(f"unknown instruction class: {type_byte}") from None

    ea = access_size = target = 0
    taken = False
    if inst_class in _MEMORY_CLASSES:
        ea = _read_uint(stream, 8)
        access_size = _read_uint(stream, 1)
    elif is_branch(inst_class):
        taken = bool(_read_uint(stream, 1))
        if taken:
            target = _read_uint(stream, 8)
        else:
            target = (pc + 4) & WORD_MASK
            if inst_class is not InstClass.condBranchInstClass:
                raise ValueError("unconditional branch recorded as not taken")

    num_inputs = _read_uint(stream, 1)
    input_regs = tuple(_read_exact(stream, num_inputs))
    num_outputs = _read_uint(stream, 1)
    output_regs = tuple(_read_exact(stream, num_outputs))

    values = []
    for reg in output_regs:
        if reg <= 31 or reg == 64:
            values.append(_read_uint(stream, 8))
        elif 32 <= reg < 64:
            values.append(_read_uint(stream, 16))
        else:
            raise ValueError(f"unexpected output register: {reg}")

    return CvpRecord(
        pc=pc,
        inst_class=inst_class,
        ea=ea,
        access_size=access_size,
        taken=taken,
        target=target,
        input_regs=input_regs,
        output_regs=output_regs,
        output_values=tuple(values),
    )


def iter_records(stream: BinaryIO) -> Iterator[CvpRecord]:
    """Yield every record in the stream."""
    while (record := read_record(stream)) is not None:
        yield record


def _log(message: str, end: str = "\n") -> None:
    print(message, end=end, file=sys.stderr, flush=True)


def open_trace_file(path: str) -> BinaryIO:
    """Open a trace for binary reading, decompressing xz or gzip by magic number.

    The path ``-`` stands for standard input.
    """
    if path == "-":
        _log("reading from standard input")
        return sys.stdin.buffer

    with open(path, "rb") as probe:
        magic = probe.read(6)
    if len(magic) != 6:
        raise ValueError(f"file too short to identify: {path}")

    if magic == _XZ_MAGIC:
        _log(f'opening xz file "{path}"')
        return lzma.open(path, "rb")
    if magic.startswith(_GZIP_MAGIC):
        _log(f'opening gz file "{path}"')
        return gzip.open(path, "rb")
    _log(f'opening file "{path}"')
    return open(path, "rb")


def _remap_register(reg: int) -> int:
    if reg == REG_INSTRUCTION_POINTER:
        reg = 64
    if reg == REG_STACK_POINTER:
        reg = 65
    if reg == REG_FLAGS:
        reg = 66
    if reg == 0:
        reg = 67
    return reg


# destination registers, source registers, whether "taken" comes from the trace
_BRANCH_LAYOUT = {
    OpType.OPTYPE_JMP_DIRECT_UNCOND: ((REG_INSTRUCTION_POINTER,), (), True),
    OpType.OPTYPE_JMP_DIRECT_COND: ((REG_INSTRUCTION_POINTER,), (REG_INSTRUCTION_POINTER, REG_FLAGS), True),
    OpType.OPTYPE_CALL_INDIRECT_UNCOND: (
        (REG_INSTRUCTION_POINTER, REG_STACK_POINTER),
        (REG_INSTRUCTION_POINTER, REG_STACK_POINTER, _REG_AX),
        False,
    ),
    OpType.OPTYPE_CALL_DIRECT_UNCOND: (
        (REG_INSTRUCTION_POINTER, REG_STACK_POINTER),
        (REG_INSTRUCTION_POINTER, REG_STACK_POINTER),
        False,
    ),
    OpType.OPTYPE_JMP_INDIRECT_UNCOND: ((REG_INSTRUCTION_POINTER,), (_REG_AX,), False),
    OpType.OPTYPE_RET_UNCOND: ((REG_INSTRUCTION_POINTER, REG_STACK_POINTER), (REG_STACK_POINTER,), False),
}

_OP_NAMES = {
    InstClass.loadInstClass: "LOAD",
    InstClass.storeInstClass: "STORE",
    InstClass.aluInstClass: "ALU",
    InstClass.fpInstClass: "FP",
    InstClass.slowAluInstClass: "SLOWALU",
}


class Converter:
    """Turns CVP records into trace records, keeping data pages clear of code pages."""

    def __init__(self):
        self.code_pages: set = set()
        self.data_pages: set = set()
        self.remapped_pages: dict = {}
        self.bump_page = _FIRST_BUMP_PAGE
        self.num_allocs = 0
        self.counts: Counter = Counter()

    def preprocess(self, records: Iterable[CvpRecord]) -> int:
        """Note every code and data page the records touch; return the record count."""
        _log("preprocessing to find code and data pages...")
        count = 0
        for record in records:
            self.code_pages.add(record.pc >> _PAGE_SHIFT)
            if record.inst_class in _MEMORY_CLASSES:
                self.data_pages.add(record.ea >> _PAGE_SHIFT)
            count += 1
            if count % 10_000_000 == 0:
                _log(".", end="")
                if count % 600_000_000 == 0:
                    _log("")
        _log(f"{len(self.code_pages)} code pages, {len(self.data_pages)} data pages")
        return count

    def transform(self, address: int) -> int:
        """Move a data address off any page that also holds code."""
        page = address >> _PAGE_SHIFT
        new_page = page
        if page in self.code_pages:
            new_page = self.remapped_pages.get(page, 0)
            if new_page == 0:
                self.num_allocs += 1
                _log(f"[{self.num_allocs}]", end="")
                new_page = self.bump_page
                while new_page in self.code_pages or new_page in self.data_pages:
                    new_page += 1
                self.bump_page = new_page + 1
                self.remapped_pages[page] = new_page
        return ((new_page << _PAGE_SHIFT) | (address & _PAGE_OFFSET_MASK)) & WORD_MASK

    @staticmethod
    def _classify_branch(record: CvpRecord) -> OpType:
        if record.inst_class is InstClass.condBranchInstClass:
            return OpType.OPTYPE_JMP_DIRECT_COND
        if not record.target:
            raise ValueError(f"unconditional branch at 0x{record.pc:x} has no target")
        indirect = record.inst_class is InstClass.uncondIndirectBranchInstClass
        if record.output_regs == (_LINK_REGISTER,):
            op = OpType.OPTYPE_CALL_INDIRECT_UNCOND if indirect else OpType.OPTYPE_CALL_DIRECT_UNCOND
        else:
            op = OpType.OPTYPE_JMP_INDIRECT_UNCOND if indirect else OpType.OPTYPE_JMP_DIRECT_UNCOND
        if record.input_regs == (_LINK_REGISTER,):
            op = OpType.OPTYPE_RET_UNCOND
        return op

    def convert(self, record: CvpRecord) -> Tuple[InputInstr, OpType]:
        """Return the trace record for ``record`` together with its operation type."""
        if is_branch(record.inst_class):
            op = self._classify_branch(record)
            self.counts[op] += 1
            dest, src, taken_from_trace = _BRANCH_LAYOUT[op]
            taken = int(record.taken) if taken_from_trace else 1
            instr = InputInstr(
                ip=record.pc,
                is_branch=1,
                branch_taken=taken,
                destination_registers=dest,
                source_registers=src,
            )
            return instr, op

        self.counts[OpType.OPTYPE_OP] += 1
        inputs = record.input_regs[:NUM_INSTR_SOURCES]
        outputs = record.output_regs or (0,)
        dest_mem: Tuple[int, ...] = ()
        src_mem: Tuple[int, ...] = ()
        if record.inst_class is InstClass.loadInstClass:
            src_mem = (self.transform(record.ea),)
        elif record.inst_class is InstClass.storeInstClass:
            dest_mem = (self.transform(record.ea),)
        elif record.inst_class not in _OP_NAMES:
            raise ValueError(f"cannot convert instruction class {record.inst_class.name}")

        instr = InputInstr(
            ip=record.pc,
            is_branch=0,
            branch_taken=0,
            destination_registers=(_remap_register(outputs[0]),),
            source_registers=tuple(_remap_register(r) for r in inputs),
            destination_memory=dest_mem,
            source_memory=src_mem,
        )
        return instr, OpType.OPTYPE_OP

    def summary(self, total: int) -> str:
        """Report how many of each operation type were converted."""
        lines = [
            f"{op.name} {self.counts[op]} {100 * self.counts[op] / total:f}%\n"
            for op in OpType
            if op is not OpType.OPTYPE_MAX and self.counts[op]
        ]
        return "".join(lines)


def _describe(index: int, record: CvpRecord, op: OpType) -> str:
    text = f"{index} {record.pc:x} "
    if op is not OpType.OPTYPE_OP:
        return text + f"{op.name} {record.target:x}"
    if record.inst_class is InstClass.loadInstClass:
        text += f"LOAD (0x{record.ea:x})"
    elif record.inst_class is InstClass.storeInstClass:
        text += f"STORE (0x{record.ea:x})"
    else:
        text += _OP_NAMES.get(record.inst_class, "")
    text += "".join(f" I{r}" for r in record.input_regs[:NUM_INSTR_SOURCES])
    text += "".join(f" O{r}" for r in (record.output_regs or (0,)))
    return text


def _opened(path: str):
    stream = open_trace_file(path)
    if stream is sys.stdin.buffer:
        return contextlib.nullcontext(stream)
    return stream


def main(argv=None) -> int:
    """Convert the trace named on the command line, writing records to stdout."""
    args = sys.argv[1:] if argv is None else list(argv)
    verbose = False
    path = "-"
    for arg in args:
        if arg == "-v":
            verbose = True
        else:
            path = arg

    converter = Converter()
    out = sys.stdout.buffer
    count = 0
    try:
        with _opened(path) as stream:
            converter.preprocess(iter_records(stream))
        with _opened(path) as stream:
            previous_pc = 0
            for record in iter_records(stream):
                count += 1
                if count % 1_000_000 == 0:
                    _log(f"{count} instructions")
                if record.pc == previous_pc:
                    _log("hmm, that's weird")
                previous_pc = record.pc
                instr, op = converter.convert(record)
                out.write(instr.pack())
                if verbose:
                    _log(_describe(count, record, op))
    except (OSError, ValueError) as exc:
        _log(f"{path}: {exc}")
        return 1
    out.flush()

    _log(f"converted {count} instructions")
    if count:
        _log(converter.summary(count), end="")
    return 0