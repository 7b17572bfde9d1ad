import io

import pytest

from champsim.instruction import OooModelInstr
from champsim.trace_instruction import REG_INSTRUCTION_POINTER, CloudsuiteInstr, InputInstr
from champsim.tracereader import BulkTraceReader, Repeatable, TraceReader


def _trace(records):
    return b"".join(r.pack() for r in records)


def _plain(ip):
    return InputInstr(ip=ip, destination_registers=(1,), source_registers=(2,))


def _drain(reader):
    out = []
    while not reader.eof():
        out.append(reader())
    return out


class _Source:
    def __init__(self, ips):
        self._ips = list(ips)

    def __call__(self):
        return OooModelInstr(ip=self._ips.pop(0))

    def eof(self):
        return not self._ips


def test_trace_reader_assigns_consecutive_ids():
    reader = TraceReader(_Source([10, 20, 30]))
    instrs = [reader() for _ in range(3)]
    ids = [i.instr_id for i in instrs]
    assert ids == list(range(ids[0], ids[0] + 3))
    assert [i.ip for i in instrs] == [10, 20, 30]


def test_trace_reader_delegates_eof():
    reader = TraceReader(_Source([1]))
    assert reader.eof() is False
    reader()
    assert reader.eof() is True


def test_trace_reader_without_eof_never_ends():
    reader = TraceReader(lambda: OooModelInstr(ip=1))
    assert reader.eof() is False


def test_bulk_reader_yields_all_but_last_before_eof():
    records = [_plain(ip) for ip in (0x100, 0x200, 0x300)]
    reader = BulkTraceReader(0, io.BytesIO(_trace(records)))
    ips = [i.ip for i in _drain(reader)]
    assert ips == [r.ip for r in records][: len(records) - 1]


def test_bulk_reader_sets_branch_targets():
    branch = InputInstr(ip=0x100, destination_registers=(REG_INSTRUCTION_POINTER,))
    records = [branch, _plain(0x200), _plain(0x300)]
    reader = BulkTraceReader(0, io.BytesIO(_trace(records)))
    first, second = reader(), reader()
    assert first.branch_target == records[1].ip
    assert second.branch_target == 0


def test_bulk_reader_ignores_trailing_partial_record():
    records = [_plain(ip) for ip in (1, 2, 3)]
    data = _trace(records) + b"\x01\x02\x03"
    reader = BulkTraceReader(0, io.BytesIO(data))
    ips = [reader().ip for _ in records]
    assert ips == [r.ip for r in records]
    with pytest.raises(EOFError):
        reader()


def test_bulk_reader_empty_stream_raises():
    reader = BulkTraceReader(0, io.BytesIO(b""))
    with pytest.raises(EOFError):
        reader()


def test_bulk_reader_cloudsuite_format_keeps_asid():
    records = [CloudsuiteInstr(ip=ip, asid=(4, 5)) for ip in (7, 8)]
    reader = BulkTraceReader(0, io.BytesIO(_trace(records)), CloudsuiteInstr)
    instr = reader()
    assert instr.ip == records[0].ip
    assert instr.asid == (4, 5)


def test_bulk_reader_reads_from_path(tmp_path):
    records = [_plain(ip) for ip in (11, 12, 13)]
    path = tmp_path / "trace.bin"
    path.write_bytes(_trace(records))
    with BulkTraceReader(2, path) as reader:
        instr = reader()
    assert instr.ip == records[0].ip
    assert instr.asid == (2, 2)


def test_repeatable_restarts_at_end(capsys):
    records = [_plain(ip) for ip in (1, 2, 3)]
    data = _trace(records)
    reader = Repeatable(lambda raw: BulkTraceReader(0, io.BytesIO(raw)), data)
    ips = [reader().ip for _ in range(6)]
    assert ips[:2] == ips[2:4] == ips[4:6]
    assert ips[0] == records[0].ip
    assert reader.eof() is False
    assert "Reached end of trace" in capsys.readouterr().out