"""The core model's view of an instruction."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Tuple

from .trace_instruction import (
    REG_FLAGS,
    REG_INSTRUCTION_POINTER,
    REG_STACK_POINTER,
    CloudsuiteInstr,
)

__all__ = ["BranchType", "OooModelInstr", "program_order"]

_SPECIAL_REGISTERS = (REG_STACK_POINTER, REG_FLAGS, REG_INSTRUCTION_POINTER)


class BranchType(IntEnum):
    NOT_BRANCH = 0
    BRANCH_DIRECT_JUMP = 1
    BRANCH_INDIRECT = 2
    BRANCH_CONDITIONAL = 3
    BRANCH_DIRECT_CALL = 4
    BRANCH_INDIRECT_CALL = 5
    BRANCH_RETURN = 6
    BRANCH_OTHER = 7


@dataclass
class OooModelInstr:
    """An instruction as it flows through the out-of-order core."""

    instr_id: int = 0
    ip: int = 0
    event_cycle: int = 0

    is_branch: bool = False
    branch_taken: bool = False
    branch_prediction: bool = False
    branch_mispredicted: bool = False

    asid: Tuple[int, int] = (0xFF, 0xFF)

    branch_type: BranchType = BranchType.NOT_BRANCH
    branch_target: int = 0

    dib_checked: int = 0
    fetched: int = 0
    decoded: int = 0
    scheduled: int = 0
    executed: int = 0

    completed_mem_ops: int = 0
    num_reg_dependent: int = 0

    destination_registers: List[int] = field(default_factory=list)
    source_registers: List[int] = field(default_factory=list)
    destination_memory: List[int] = field(default_factory=list)
    source_memory: List[int] = field(default_factory=list)

    registers_instrs_depend_on_me: List[OooModelInstr] = field(default_factory=list, compare=False, repr=False)

    @classmethod
    def from_trace(cls, cpu: int, instr) -> OooModelInstr:
        """Build a model instruction from a trace record, classifying any branch."""
        if isinstance(instr, CloudsuiteInstr):
            asid = (instr.asid[0], instr.asid[1])
        else:
            asid = (cpu, cpu)

        dest_regs = [r for r in instr.destination_registers if r != 0]
        src_regs = [r for r in instr.source_registers if r != 0]
        dest_mem = [m for m in instr.destination_memory if m != 0]
        src_mem = [m for m in instr.source_memory if m != 0]

        writes_sp = REG_STACK_POINTER in dest_regs
        writes_ip = REG_INSTRUCTION_POINTER in dest_regs
        reads_sp = REG_STACK_POINTER in src_regs
        reads_flags = REG_FLAGS in src_regs
        reads_ip = REG_INSTRUCTION_POINTER in src_regs
        reads_other = any(r not in _SPECIAL_REGISTERS for r in src_regs)

        is_branch = bool(instr.is_branch)
        trace_taken = bool(instr.branch_taken)
        branch_type = BranchType.NOT_BRANCH

        if not reads_sp and not reads_flags and writes_ip and not reads_other:
            is_branch, taken, branch_type = True, True, BranchType.BRANCH_DIRECT_JUMP
        elif not reads_sp and not reads_flags and writes_ip and reads_other:
            is_branch, taken, branch_type = True, True, BranchType.BRANCH_INDIRECT
        elif not reads_sp and reads_ip and not writes_sp and writes_ip and reads_flags and not reads_other:
            is_branch, taken, branch_type = True, trace_taken, BranchType.BRANCH_CONDITIONAL
        elif reads_sp and reads_ip and writes_sp and writes_ip and not reads_flags and not reads_other:
            is_branch, taken, branch_type = True, True, BranchType.BRANCH_DIRECT_CALL
        elif reads_sp and reads_ip and writes_sp and writes_ip and not reads_flags and reads_other:
            is_branch, taken, branch_type = True, True, BranchType.BRANCH_INDIRECT_CALL
        elif reads_sp and not reads_ip and writes_sp and writes_ip:
            is_branch, taken, branch_type = True, True, BranchType.BRANCH_RETURN
        elif writes_ip:
            is_branch, taken, branch_type = True, trace_taken, BranchType.BRANCH_OTHER
        else:
            taken = False

        return cls(
            ip=instr.ip,
            is_branch=is_branch,
            branch_taken=taken,
            asid=asid,
            branch_type=branch_type,
            destination_registers=dest_regs,
            source_registers=src_regs,
            destination_memory=dest_mem,
            source_memory=src_mem,
        )

    def num_mem_ops(self) -> int:
        return len(self.destination_memory) + len(self.source_memory)


def program_order(instr: OooModelInstr) -> int:
    """Sort key that orders instructions by their position in the program."""
    return instr.instr_id