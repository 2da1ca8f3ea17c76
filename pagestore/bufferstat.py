"""Text dumps of buffer pool state and page contents for debugging."""

from __future__ import annotations

import sys
from typing import TextIO

from .buffer import BufferPool, PageHandle, ReplacementStrategy

_STRATEGY_NAMES = {
    ReplacementStrategy.FIFO: "FIFO",
    ReplacementStrategy.LRU: "LRU",
    ReplacementStrategy.CLOCK: "CLOCK",
    ReplacementStrategy.LFU: "LFU",
    ReplacementStrategy.LRU_K: "LRU-K",
}


def strategy_name(strategy: int) -> str:
    """Display name of a replacement strategy, or its number if unknown."""
    try:
        return _STRATEGY_NAMES[ReplacementStrategy(strategy)]
    except ValueError:
        return str(int(strategy))


def sprint_pool_content(pool: BufferPool) -> str:
    """One ``[page dirty fixcount]`` entry per frame, comma separated."""
    entries = zip(pool.frame_contents(), pool.dirty_flags(), pool.fix_counts())
    return ",".join(
        f"[{page}{'x' if dirty else ' '}{fixes}]" for page, dirty, fixes in entries
    )


def print_pool_content(pool: BufferPool, file: TextIO | None = None) -> None:
    """Print the strategy, frame count and frame contents of ``pool``."""
    out = sys.stdout if file is None else file
    header = f"{{{strategy_name(pool.strategy)} {pool.num_pages}}}: "
    out.write(header + sprint_pool_content(pool) + "\n")


def sprint_page_content(page: PageHandle) -> str:
    """Hex dump of a page: 8-byte groups, 64 bytes per line."""
    parts = [f"[Page {page.page_num}]\n"]
    for pos, byte in enumerate(page.data, start=1):
        parts.append(f"{byte:02X}")
        if pos % 8 == 0:
            parts.append(" ")
        if pos % 64 == 0:
            parts.append("\n")
    return "".join(parts)


def print_page_content(page: PageHandle, file: TextIO | None = None) -> None:
    """Print the hex dump of ``page``."""
    out = sys.stdout if file is None else file
    out.write(sprint_page_content(page))