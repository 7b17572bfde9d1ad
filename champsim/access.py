"""Kinds of memory access and per-queue statistics."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

__all__ = ["AccessType", "NUM_ACCESS_TYPES", "ACCESS_TYPE_NAMES", "CacheQueueStats", "access_type_name"]


class AccessType(IntEnum):
    LOAD = 0
    RFO = 1
    PREFETCH = 2
    WRITE = 3
    TRANSLATION = 4


NUM_ACCESS_TYPES = len(AccessType)

ACCESS_TYPE_NAMES = ("LOAD", "RFO", "PREFETCH", "WRITE", "TRANSLATION")


def access_type_name(access_type) -> str:
    """Return the printable name of an access type."""
    try:
        return ACCESS_TYPE_NAMES[AccessType(access_type)]
    except ValueError:
        raise ValueError(f"unknown access type: {access_type!r}") from None


@dataclass
class CacheQueueStats:
    """Counters kept by the queues between two memory levels."""

    rq_access: int = 0
    rq_merged: int = 0
    rq_full: int = 0
    rq_to_cache: int = 0
    pq_access: int = 0
    pq_merged: int = 0
    pq_full: int = 0
    pq_to_cache: int = 0
    wq_access: int = 0
    wq_merged: int = 0
    wq_full: int = 0
    wq_to_cache: int = 0
    wq_forward: int = 0