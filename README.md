# pagestore

A small storage engine built in layers, with no dependencies outside the
standard library:

- **`pagestore.storage`**: page files on disk made of fixed-size blocks of
  `PAGE_SIZE` (4096) bytes. It creates, opens and destroys them, reads and
  writes blocks by number or relative to the current position, appends empty
  blocks and grows a file to a given capacity.
- **`pagestore.buffer`**: `BufferPool`, which caches pages of one page file in
  a fixed number of frames. It counts pins, tracks dirty frames, replaces
  frames by FIFO or LRU, and counts read and write I/O.
- **`pagestore.bufferstat`**: text dumps of pool state and of page contents.
- **`pagestore.tables`**: `DataType`, `Value`, `RID`, `Record` and `Schema`.
- **`pagestore.expr`**: condition expressions (`Constant`, `AttrRef`,
  `Operator` with `OpType` AND, OR, NOT, EQUAL and SMALLER) and `eval_expr`.
- **`pagestore.serializer`**: parsing values such as `"i10"`, `"f5.3"`,
  `"sHello"` and `"bt"` with `string_to_value`, and turning values, schemas,
  records and tables into text.
- **`pagestore.record`**: tables of fixed-size records in slotted pages, with
  insert, update, delete, lookup by `RID`, and filtered scans.

Every failure is raised as `pagestore.errors.DBError`. Its `code` is a
`pagestore.errors.ErrorCode` and its `message` says what happened;
`error_message(code, message)` formats the two as `EC (<code>), "<message>"`.

## Installation

```
pip install .
```

## Page files

```python
from pagestore.storage import PAGE_SIZE, create_page_file, open_page_file, destroy_page_file

create_page_file("data.bin")              # one page of zero bytes
with open_page_file("data.bin") as pf:
    pf.ensure_capacity(3)                 # append empty pages up to 3
    pf.write_block(2, b"x" * PAGE_SIZE)   # writes must be exactly one page
    page = pf.read_last_block()           # a bytearray; page 2 is now current
    previous = pf.read_previous_block()
destroy_page_file("data.bin")
```

Reading a page that does not exist raises `DBError` with
`ErrorCode.READ_NON_EXISTING_PAGE`; writing one raises
`ErrorCode.WRITE_FAILED`; opening a missing file raises
`ErrorCode.FILE_NOT_FOUND`.

## Buffer pool

```python
from pagestore.storage import create_page_file
from pagestore.buffer import BufferPool, ReplacementStrategy
from pagestore.bufferstat import sprint_pool_content, print_pool_content

create_page_file("data.bin")
with BufferPool("data.bin", 3, ReplacementStrategy.LRU, None) as pool:
    page = pool.pin_page(0)          # a PageHandle sharing the frame's bytes
    page.data[0] = 0x41
    pool.mark_dirty(page)
    pool.unpin_page(page)
    print(sprint_pool_content(pool))  # "[0x0],[-1 0],[-1 0]"
    print_pool_content(pool)          # "{LRU 3}: [0x0],[-1 0],[-1 0]"
    pool.force_flush_pool()
    print(pool.num_read_io(), pool.num_write_io())
```

Pinning a page past the end of the file grows the file first. Leaving the
`with` block (or calling `shutdown()`) writes dirty pages back; it raises
`ErrorCode.PINNED_PAGES_IN_BUFFER` if pages are still pinned.
`frame_contents()`, `dirty_flags()` and `fix_counts()` report each frame.
`sprint_page_content` and `print_page_content` give a hex dump of a page.

## Records and scans

```python
from pagestore.record import (
    init_record_manager, create_schema, create_record, set_attr, get_attr,
    create_table, open_table, delete_table, shutdown_record_manager,
)
from pagestore.tables import DataType
from pagestore.expr import Constant, AttrRef, Operator, OpType
from pagestore.serializer import string_to_value, serialize_record, serialize_table_info

schema = create_schema(3, ["a", "b", "c"],
                       [DataType.INT, DataType.STRING, DataType.INT],
                       [0, 4, 0], 1, [0])

init_record_manager()
create_table("people", schema)
with open_table("people") as table:
    rec = create_record(schema)
    set_attr(rec, schema, 0, string_to_value("i1"))
    set_attr(rec, schema, 1, string_to_value("saaaa"))
    set_attr(rec, schema, 2, string_to_value("i3"))
    rid = table.insert_record(rec)

    print(get_attr(table.get_record(rid), schema, 1).v)   # "aaaa"
    print(serialize_table_info(table))

    cond = Operator(OpType.COMP_EQUAL, [Constant(string_to_value("i3")), AttrRef(2)])
    for found in table.start_scan(cond):
        print(serialize_record(found, table.schema))
delete_table("people")
shutdown_record_manager()
```

Page 0 of a table file holds its tuple count, schema and keys; records live
in the pages after it. On a page each attribute takes a fixed size: INT and
FLOAT 4 bytes, BOOL 2 bytes, STRING its declared length (longer strings are
cut). Attribute names are stored in at most 15 bytes.

`Scan.next()` returns the next matching record and, at the end, raises
`DBError` with `ErrorCode.RM_NO_MORE_TUPLES` and starts over; iterating a
scan stops there instead. `start_scan(None)` raises
`ErrorCode.SCAN_CONDITION_NOT_FOUND`. Looking up, updating or deleting a
slot that holds no record raises `ErrorCode.RM_NO_TUPLE_WITH_GIVEN_RID`.

## What it does not do

- There is no command-line program, server or query language: it is a
  library used from Python code.
- Only FIFO and LRU replacement are carried out. A pool may be created with
  `CLOCK`, `LFU` or `LRU_K`, but once every frame is taken, pinning a new
  page raises `DBError`.
- There are no indexes, transactions, logging or locking; a table file is
  meant to be used by one process at a time.

## Running the tests

```
pip install .[test]
pytest
```