"""A buffer pool caching pages of a page file in a fixed number of frames."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

from .errors import DBError, ErrorCode
from .storage import open_page_file

NO_PAGE = -1


class ReplacementStrategy(IntEnum):
    """How a frame is chosen when a page must be evicted."""

    FIFO = 0
    LRU = 1
    CLOCK = 2
    LFU = 3
    LRU_K = 4


@dataclass
class PageHandle:
    """A pinned page: its number and the frame's bytes, shared with the pool."""

    page_num: int
    data: bytearray


@dataclass
class _Frame:
    data: bytearray | None = None
    page_num: int = NO_PAGE
    is_dirty: bool = False
    fix_count: int = 0
    last_used: int = 0
    lru_count: int = 0


class BufferPool:
    """Holds up to ``num_pages`` pages of a page file in memory."""

    def __init__(
        self,
        page_file_name: str | os.PathLike[str],
        num_pages: int,
        strategy: ReplacementStrategy = ReplacementStrategy.FIFO,
        strat_data: Any = None,
    ) -> None:
        if page_file_name is None or num_pages <= 0:
            raise DBError(ErrorCode.ERROR, "a page file and a positive number of frames are required")
        self.page_file = os.fspath(page_file_name)
        self.num_pages = num_pages
        self.strategy = ReplacementStrategy(strategy)
        self.strat_data = strat_data
        self._frames: list[_Frame] | None = [_Frame() for _ in range(num_pages)]
        self._read_io = 0
        self._write_io = 0
        self._cache_hits = 0

    def __repr__(self) -> str:
        return (
            f"BufferPool({self.page_file!r}, num_pages={self.num_pages}, "
            f"strategy={self.strategy.name})"
        )

    def __enter__(self) -> BufferPool:
        return self

    def __exit__(self, *args: object) -> None:
        self.shutdown()

    @property
    def closed(self) -> bool:
        return self._frames is None

    def _require_open(self) -> list[_Frame]:
        if self._frames is None:
            raise DBError(ErrorCode.ERROR, "buffer pool is shut down")
        return self._frames

    def _find_frame(self, page_num: int) -> _Frame | None:
        return next((f for f in self._require_open() if f.page_num == page_num), None)

    def _frame_to_replace(self) -> _Frame | None:
        frames = self._require_open()
        unpinned = [f for f in frames if f.fix_count == 0]
        if self.strategy is ReplacementStrategy.FIFO:
            candidates = [f for f in unpinned if f.last_used < self._read_io]
            return min(candidates, key=lambda f: f.last_used, default=None)
        if self.strategy is ReplacementStrategy.LRU:
            candidates = [f for f in unpinned if f.lru_count < self._cache_hits]
            return min(candidates, key=lambda f: f.lru_count, default=None)
        return None

    def shutdown(self) -> None:
        """Write back dirty pages and release the pool; fails while pages are pinned."""
        frames = self._require_open()
        self.force_flush_pool()
        if any(f.fix_count != 0 for f in frames):
            raise DBError(ErrorCode.PINNED_PAGES_IN_BUFFER, "pages are still pinned")
        self._frames = None

    def force_flush_pool(self) -> None:
        """Write every dirty, unpinned page to disk."""
        frames = self._require_open()
        to_write = [f for f in frames if f.is_dirty and f.fix_count == 0]
        if not to_write:
            return
        with open_page_file(self.page_file) as fh:
            for frame in to_write:
                fh.write_block(frame.page_num, frame.data)
                self._write_io += 1
                frame.is_dirty = False

    def mark_dirty(self, page: PageHandle) -> None:
        """Mark the frame holding ``page`` as modified."""
        frame = self._find_frame(page.page_num)
        if frame is None:
            raise DBError(ErrorCode.ERROR, f"page {page.page_num} is not in the pool")
        frame.is_dirty = True

    def unpin_page(self, page: PageHandle) -> None:
        """Release one pin on ``page``."""
        frame = self._find_frame(page.page_num)
        if frame is None:
            raise DBError(ErrorCode.ERROR, f"page {page.page_num} is not in the pool")
        if frame.fix_count <= 0:
            raise DBError(ErrorCode.ERROR, f"page {page.page_num} is not pinned")
        frame.fix_count -= 1

    def force_page(self, page: PageHandle) -> None:
        """Write ``page`` to disk now and mark its frame clean."""
        self._require_open()
        with open_page_file(self.page_file) as fh:
            frame = self._find_frame(page.page_num)
            if frame is None:
                raise DBError(ErrorCode.ERROR, f"page {page.page_num} is not in the pool")
            try:
                fh.write_block(page.page_num, page.data)
            finally:
                self._write_io += 1
            frame.is_dirty = False

    def pin_page(self, page_num: int) -> PageHandle:
        """Pin page ``page_num``, reading it from disk if it is not cached."""
        frames = self._require_open()
        if page_num < 0:
            raise DBError(ErrorCode.ERROR, f"invalid page number {page_num}")

        frame = self._find_frame(page_num)
        if frame is not None:
            frame.fix_count += 1
            self._cache_hits += 1
            if self.strategy is ReplacementStrategy.LRU:
                frame.lru_count = self._cache_hits
            return PageHandle(page_num, frame.data)

        frame = self._find_frame(NO_PAGE)
        if frame is None:
            frame = self._frame_to_replace()
        if frame is None:
            raise DBError(ErrorCode.ERROR, "no frame available for replacement")

        if frame.is_dirty:
            self.force_page(PageHandle(frame.page_num, frame.data))

        with open_page_file(self.page_file) as fh:
            fh.ensure_capacity(page_num + 1)
            data = fh.read_block(page_num)

        self._read_io += 1
        self._cache_hits += 1
        frame.data = data
        frame.page_num = page_num
        frame.is_dirty = False
        frame.fix_count = 1
        frame.last_used = self._read_io
        if self.strategy is ReplacementStrategy.LRU:
            frame.lru_count = self._cache_hits
        assert frames is self._frames
        return PageHandle(page_num, frame.data)

    def frame_contents(self) -> list[int]:
        """Page number held by each frame, ``NO_PAGE`` for empty ones."""
        return [f.page_num for f in self._require_open()]

    def dirty_flags(self) -> list[bool]:
        """Whether each frame holds unsaved changes."""
        return [f.is_dirty for f in self._require_open()]

    def fix_counts(self) -> list[int]:
        """Number of pins on each frame."""
        return [0 if f.page_num == NO_PAGE else f.fix_count for f in self._require_open()]

    def num_read_io(self) -> int:
        """Pages read from disk since the pool was created."""
        self._require_open()
        return self._read_io

    def num_write_io(self) -> int:
        """Pages written to disk since the pool was created."""
        self._require_open()
        return self._write_io