# champsim

Pieces of a trace-driven CPU and memory-hierarchy simulator, usable on
their own from Python:

- `champsim.bits`: `lg2`, `bitmask` and `splice_bits` for 64-bit address arithmetic.
- `champsim.span`: `get_span`, `get_span_p`, `extract_if` and `transform_while_n` for taking bounded, predicate-limited runs from lists and deques.
- `champsim.trace_instruction`: the binary trace records `InputInstr` and `CloudsuiteInstr`, with `pack`, `from_bytes` and `iter_unpack`.
- `champsim.instruction`: `OooModelInstr`, whose `from_trace` decodes a trace record and works out its `BranchType`; `program_order` is a sort key by instruction id.
- `champsim.tracereader`: `TraceReader` (stamps each instruction with a unique id), `BulkTraceReader` (reads records in batches from a binary stream or a path, filling in branch targets) and `Repeatable` (restarts a reader when it runs out).
- `champsim.decompress`: `InflateReader`, which reads gzip, bzip2 and xz data from a stream or path (`Compression.GZIP`, `Compression.BZIP2`, `Compression.LZMA`), and `deflate` to produce such data.
- `champsim.tracefeeder`: `TraceFeeder`, which loads per-page CSV feeds (`vfn,pfn,hits,prefetchs,hit_bits`) and looks up a `FeedRow` by virtual address.
- `champsim.stats`: the records `CpuStats`, `CacheStats`, `DramStats`, `PhaseInfo` and `PhaseStats`.
- `champsim.deadlock`: `format_deadlock` and `range_print_deadlock` for listing queue contents.
- `champsim.operable`: the clocked-component base class `Operable` (with `tick` honouring a clock scale) and the `Deadlock` exception.
- `champsim.access`: `AccessType`, `access_type_name` and `CacheQueueStats`.
- `champsim.cvp2champsim`: the CVP-1 trace converter behind the `cvp2champsim` command.

## Installing

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Reading a trace

```python
from champsim.decompress import Compression, InflateReader
from champsim.trace_instruction import InputInstr
from champsim.tracereader import BulkTraceReader, TraceReader

with InflateReader("trace.champsimtrace.xz", Compression.LZMA) as stream:
    reader = TraceReader(BulkTraceReader(0, stream, InputInstr))
    while not reader.eof():
        instr = reader()
        print(instr.instr_id, hex(instr.ip), instr.branch_type.name)
```

## Converting CVP-1 traces

The `cvp2champsim` command reads a CVP-1 trace and writes the matching
instruction trace to standard output. It accepts plain, gzip and xz files,
recognised by their magic numbers. Give `-` or no file at all to read from
standard input, and `-v` to print every converted instruction to standard
error.

```
cvp2champsim trace.gz > trace.champsimtrace
cvp2champsim -v trace.xz | xz > trace.champsimtrace.xz
```

Data addresses that fall on pages also holding code are moved to fresh
pages. A count of each operation type is printed to standard error when the
conversion ends.

## What this package does not do

It holds trace handling and supporting pieces only. There is no cache,
core pipeline, page-table walker, virtual memory or DRAM controller model,
no branch predictor, and no command that runs a simulation or prints its
statistics. `Operable`, the statistics records and the deadlock report
helpers are there for building such models, but none are included.