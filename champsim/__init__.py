"""Trace formats, trace readers, decompression, feed files and a CVP-1 trace converter for a microarchitecture simulator."""

__version__ = "0.1.0"