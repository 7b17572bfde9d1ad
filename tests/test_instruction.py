import pytest

from champsim.instruction import BranchType, OooModelInstr, program_order
from champsim.trace_instruction import (
    REG_FLAGS,
    REG_INSTRUCTION_POINTER,
    REG_STACK_POINTER,
    CloudsuiteInstr,
    InputInstr,
)

IP = REG_INSTRUCTION_POINTER
SP = REG_STACK_POINTER
FLAGS = REG_FLAGS
OTHER = 56


@pytest.mark.parametrize(
    "dest, src, taken_in, kind, taken_out",
    [
        ((IP,), (), 0, BranchType.BRANCH_DIRECT_JUMP, True),
        ((IP,), (OTHER,), 0, BranchType.BRANCH_INDIRECT, True),
        ((IP,), (IP, FLAGS), 0, BranchType.BRANCH_CONDITIONAL, False),
        ((IP,), (IP, FLAGS), 1, BranchType.BRANCH_CONDITIONAL, True),
        ((IP, SP), (IP, SP), 0, BranchType.BRANCH_DIRECT_CALL, True),
        ((IP, SP), (IP, SP, OTHER), 0, BranchType.BRANCH_INDIRECT_CALL, True),
        ((IP, SP), (SP,), 0, BranchType.BRANCH_RETURN, True),
        ((IP,), (FLAGS,), 1, BranchType.BRANCH_OTHER, True),
        ((IP,), (FLAGS,), 0, BranchType.BRANCH_OTHER, False),
    ],
)
def test_branch_classification(dest, src, taken_in, kind, taken_out):
    record = InputInstr(ip=0x400, branch_taken=taken_in, destination_registers=dest, source_registers=src)
    instr = OooModelInstr.from_trace(0, record)
    assert instr.branch_type == kind
    assert instr.is_branch is True
    assert instr.branch_taken is taken_out


def test_non_branch_clears_taken_but_keeps_trace_is_branch():
    record = InputInstr(ip=0x400, is_branch=1, branch_taken=1, destination_registers=(1,), source_registers=(2,))
    instr = OooModelInstr.from_trace(0, record)
    assert instr.branch_type == BranchType.NOT_BRANCH
    assert instr.branch_taken is False
    assert instr.is_branch is True


def test_plain_instruction_is_not_a_branch():
    instr = OooModelInstr.from_trace(0, InputInstr(ip=0x10, destination_registers=(3,), source_registers=(4, 5)))
    assert instr.is_branch is False
    assert instr.branch_type == BranchType.NOT_BRANCH


def test_zero_entries_are_dropped():
    record = InputInstr(
        destination_registers=(0, 7),
        source_registers=(3, 0, 0, 4),
        destination_memory=(0x1000, 0),
        source_memory=(0, 0x2000, 0, 0x3000),
    )
    instr = OooModelInstr.from_trace(0, record)
    assert instr.destination_registers == [7]
    assert instr.source_registers == [3, 4]
    assert instr.destination_memory == [0x1000]
    assert instr.source_memory == [0x2000, 0x3000]
    assert instr.num_mem_ops() == len(instr.destination_memory) + len(instr.source_memory)


def test_input_record_asid_is_cpu():
    instr = OooModelInstr.from_trace(3, InputInstr(ip=1))
    assert instr.asid == (3, 3)


def test_cloudsuite_record_asid_comes_from_trace():
    instr = OooModelInstr.from_trace(0, CloudsuiteInstr(ip=1, asid=(5, 9)))
    assert instr.asid == (5, 9)


def test_ip_is_copied():
    instr = OooModelInstr.from_trace(0, InputInstr(ip=0xDEADBEEF))
    assert instr.ip == 0xDEADBEEF


def test_program_order_sorts_by_id():
    instrs = [OooModelInstr(instr_id=i) for i in (5, 1, 3)]
    ordered = sorted(instrs, key=program_order)
    assert [i.instr_id for i in ordered] == sorted(i.instr_id for i in instrs)


def test_default_asid_is_unset():
    assert OooModelInstr().asid == (0xFF, 0xFF)