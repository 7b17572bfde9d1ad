"""Formatting of queue contents for deadlock reports."""

from __future__ import annotations

from typing import Any, Callable, Iterable

__all__ = ["format_deadlock", "range_print_deadlock"]


def format_deadlock(
    entries: Iterable[Any],
    kind_name: str,
    fmtstr: str,
    packing_func: Callable[[Any], tuple],
) -> str:
    """Render each entry through ``packing_func`` and ``fmtstr``, one line per entry.

    Entries that are None stand for empty slots and render as ``empty``.
    """
    items = list(entries)
    if not items:
        return f"{kind_name} empty\n\n"

    def render(entry) -> str:
        if entry is None:
            return "empty"
        return fmtstr.format(*packing_func(entry))

    lines = [f"[{kind_name}] entry: {j:>3} {render(entry)}\n" for j, entry in enumerate(items)]
    return "".join(lines) + "\n"


def range_print_deadlock(
    entries: Iterable[Any],
    kind_name: str,
    fmtstr: str,
    packing_func: Callable[[Any], tuple],
) -> None:
    """Print the report built by :func:`format_deadlock`."""
    print(format_deadlock(entries, kind_name, fmtstr, packing_func), end="")