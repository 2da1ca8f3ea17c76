import io

import pytest

from pagestore.buffer import BufferPool, PageHandle, ReplacementStrategy
from pagestore.bufferstat import (
    print_page_content,
    print_pool_content,
    sprint_page_content,
    sprint_pool_content,
    strategy_name,
)
from pagestore.storage import PAGE_SIZE, create_page_file


@pytest.fixture
def page_file(tmp_path):
    path = str(tmp_path / "stat.bin")
    create_page_file(path)
    return path


@pytest.mark.parametrize(
    "strategy, name",
    [
        (ReplacementStrategy.FIFO, "FIFO"),
        (ReplacementStrategy.LRU, "LRU"),
        (ReplacementStrategy.CLOCK, "CLOCK"),
        (ReplacementStrategy.LFU, "LFU"),
        (ReplacementStrategy.LRU_K, "LRU-K"),
    ],
)
def test_strategy_names(strategy, name):
    assert strategy_name(strategy) == name


def test_unknown_strategy_shown_as_number():
    assert strategy_name(9) == "9"


def test_pool_content_of_fresh_pool(page_file):
    pool = BufferPool(page_file, 2, ReplacementStrategy.FIFO)
    assert sprint_pool_content(pool) == "[-1 0],[-1 0]"


def test_pool_content_shows_dirty_and_pins(page_file):
    pool = BufferPool(page_file, 2, ReplacementStrategy.FIFO)
    handle = pool.pin_page(0)
    pool.mark_dirty(handle)
    assert sprint_pool_content(pool) == "[0x1],[-1 0]"


def test_print_pool_content_has_header(page_file):
    pool = BufferPool(page_file, 2, ReplacementStrategy.LRU)
    out = io.StringIO()
    print_pool_content(pool, out)
    assert out.getvalue() == "{LRU 2}: " + sprint_pool_content(pool) + "\n"


def test_page_dump_header_and_hex_round_trip():
    data = bytearray(i % 256 for i in range(PAGE_SIZE))
    dump = sprint_page_content(PageHandle(3, data))
    header, body = dump.split("\n", 1)
    assert header == "[Page 3]"
    assert bytes.fromhex("".join(body.split())) == bytes(data)


def test_page_dump_line_layout():
    dump = sprint_page_content(PageHandle(0, bytearray(PAGE_SIZE)))
    lines = dump.split("\n")[1:-1]
    assert len(lines) == PAGE_SIZE // 64
    assert all(line.split() == ["00" * 8] * 8 for line in lines)
    assert dump.endswith("\n")


def test_print_page_content_matches_sprint():
    page = PageHandle(1, bytearray(b"\xff" * PAGE_SIZE))
    out = io.StringIO()
    print_page_content(page, out)
    assert out.getvalue() == sprint_page_content(page)
    assert "FF" in out.getvalue()