"""Page files on disk: fixed-size blocks read and written by number."""

from __future__ import annotations

import os
from typing import BinaryIO

from .errors import DBError, ErrorCode

PAGE_SIZE = 4096

_EMPTY_PAGE = bytes(PAGE_SIZE)


def create_page_file(file_name: str | os.PathLike[str]) -> None:
    """Create (or truncate) a page file holding one page of zero bytes."""
    try:
        with open(file_name, "wb+") as handle:
            handle.write(_EMPTY_PAGE)
    except OSError as exc:
        raise DBError(ErrorCode.FILE_NOT_FOUND, str(exc)) from exc


def open_page_file(file_name: str | os.PathLike[str]) -> PageFile:
    """Open an existing page file."""
    return PageFile(file_name)


def destroy_page_file(file_name: str | os.PathLike[str] | None) -> None:
    """Delete a page file."""
    if file_name is None:
        raise DBError(ErrorCode.FILE_NOT_FOUND, "no file name given")
    try:
        os.remove(file_name)
    except OSError as exc:
        raise DBError(ErrorCode.FILE_NOT_FOUND, str(exc)) from exc


class PageFile:
    """An open page file with a current page position."""

    def __init__(self, file_name: str | os.PathLike[str]) -> None:
        try:
            handle: BinaryIO = open(file_name, "rb+")
        except OSError as exc:
            raise DBError(ErrorCode.FILE_NOT_FOUND, str(exc)) from exc
        size = handle.seek(0, os.SEEK_END)
        handle.seek(0)
        self._file: BinaryIO | None = handle
        self.file_name: str | None = os.fspath(file_name)
        self.total_num_pages: int = size // PAGE_SIZE
        self.cur_page_pos: int = 0

    def __repr__(self) -> str:
        return (
            f"PageFile({self.file_name!r}, total_num_pages={self.total_num_pages}, "
            f"cur_page_pos={self.cur_page_pos})"
        )

    @property
    def closed(self) -> bool:
        return self._file is None

    def __enter__(self) -> PageFile:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the file; the handle cannot be used afterwards."""
        if self._file is not None:
            self._file.close()
        self._file = None
        self.file_name = None
        self.total_num_pages = 0
        self.cur_page_pos = 0

    def _require_open(self) -> BinaryIO:
        if self._file is None or self.file_name is None:
            raise DBError(ErrorCode.FILE_NOT_FOUND, "page file is not open")
        return self._file

    def read_block(self, page_num: int) -> bytearray:
        """Read page ``page_num`` and make it the current page."""
        handle = self._require_open()
        if not 0 <= page_num < self.total_num_pages:
            raise DBError(ErrorCode.READ_NON_EXISTING_PAGE, f"no page {page_num}")
        handle.seek(page_num * PAGE_SIZE)
        data = handle.read(PAGE_SIZE)
        if len(data) != PAGE_SIZE:
            raise DBError(ErrorCode.READ_NON_EXISTING_PAGE, f"short read of page {page_num}")
        self.cur_page_pos = page_num
        return bytearray(data)

    def read_first_block(self) -> bytearray:
        return self.read_block(0)

    def read_previous_block(self) -> bytearray:
        return self.read_block(self.cur_page_pos - 1)

    def read_current_block(self) -> bytearray:
        return self.read_block(self.cur_page_pos)

    def read_next_block(self) -> bytearray:
        return self.read_block(self.cur_page_pos + 1)

    def read_last_block(self) -> bytearray:
        return self.read_block(self.total_num_pages - 1)

    def write_block(self, page_num: int, data: bytes | bytearray) -> None:
        """Write one full page at ``page_num`` and make it the current page."""
        handle = self._require_open()
        if not 0 <= page_num < self.total_num_pages:
            raise DBError(ErrorCode.WRITE_FAILED, f"no page {page_num}")
        if len(data) != PAGE_SIZE:
            raise DBError(
                ErrorCode.WRITE_FAILED, f"page data must be {PAGE_SIZE} bytes, got {len(data)}"
            )
        handle.seek(page_num * PAGE_SIZE)
        handle.write(bytes(data))
        handle.flush()
        self.cur_page_pos = page_num

    def write_current_block(self, data: bytes | bytearray) -> None:
        self._require_open()
        self.write_block(self.cur_page_pos, data)

    def append_empty_block(self) -> None:
        """Add a page of zero bytes at the end of the file."""
        handle = self._require_open()
        handle.seek(0, os.SEEK_END)
        handle.write(_EMPTY_PAGE)
        handle.flush()
        self.total_num_pages += 1

    def ensure_capacity(self, number_of_pages: int) -> None:
        """Append empty pages until the file holds at least ``number_of_pages``."""
        self._require_open()
        while self.total_num_pages < number_of_pages:
            self.append_empty_block()