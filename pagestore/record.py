"""Tables of fixed-size records kept in slotted pages of a page file."""

from __future__ import annotations

import os
import struct
from contextlib import contextmanager
from typing import Iterator, Optional, Sequence

from .buffer import BufferPool, PageHandle, ReplacementStrategy
from .errors import DBError, ErrorCode
from .expr import Expr, eval_expr
from .serializer import _attr_offset, _attr_size, _decode_attr
from .storage import PAGE_SIZE, create_page_file, destroy_page_file, open_page_file
from .tables import RID, DataType, Record, Schema, Value

ATTRIBUTE_NAME_SIZE = 15
BUFFER_FRAMES = 100

_OCCUPIED = ord("+")
_FREE = ord("-")

# Page 0 holds: tuple count, first page to try for inserts, attribute count,
# key count; then one (name, type, length) entry per attribute; then the keys.
_HEADER = struct.Struct("<iiii")
_ATTR = struct.Struct(f"<{ATTRIBUTE_NAME_SIZE}sii")
_KEY = struct.Struct("<i")

_open_tables: set[Table] = set()


def get_record_size(schema: Schema) -> int:
    """Bytes taken by one record: a tombstone byte plus every attribute."""
    return 1 + sum(_attr_size(schema, i) for i in range(schema.num_attr))


def _check_attr(schema: Schema, attr_num: int) -> None:
    if not 0 <= attr_num < schema.num_attr:
        raise DBError(ErrorCode.ERROR, f"attribute {attr_num} is not in the schema")


def attr_offset(schema: Schema, attr_num: int) -> int:
    """Byte offset of attribute ``attr_num`` within a record's data."""
    _check_attr(schema, attr_num)
    return _attr_offset(schema, attr_num)


def create_schema(
    num_attr: int,
    attr_names: Sequence[str],
    data_types: Sequence[DataType],
    type_length: Sequence[int],
    key_size: int,
    keys: Sequence[int],
) -> Schema:
    """Build a schema from its attribute names, types, lengths and keys."""
    return Schema(
        num_attr=num_attr,
        attr_names=list(attr_names),
        data_types=list(data_types),
        type_length=list(type_length),
        key_attrs=list(keys),
        key_size=key_size,
    )


def create_record(schema: Schema) -> Record:
    """A blank record sized for ``schema``, not yet placed in any table."""
    data = bytearray(get_record_size(schema))
    data[0] = _FREE
    return Record(RID(-1, -1), data)


def _check_record_data(record: Record, schema: Schema) -> None:
    if len(record.data) < get_record_size(schema):
        raise DBError(
            ErrorCode.ERROR,
            f"record holds {len(record.data)} bytes, schema needs {get_record_size(schema)}",
        )


def get_attr(record: Record, schema: Schema, attr_num: int) -> Value:
    """Read attribute ``attr_num`` of ``record``."""
    _check_attr(schema, attr_num)
    _check_record_data(record, schema)
    return _decode_attr(record, schema, attr_num)


def set_attr(record: Record, schema: Schema, attr_num: int, value: Value) -> None:
    """Store ``value`` as attribute ``attr_num`` of ``record``."""
    _check_attr(schema, attr_num)
    _check_record_data(record, schema)
    dt = schema.data_types[attr_num]
    if value.dt is not dt:
        raise DBError(
            ErrorCode.ERROR,
            f"attribute {attr_num} is {dt.name}, value is {value.dt.name}",
        )
    size = _attr_size(schema, attr_num)
    try:
        if dt is DataType.STRING:
            raw = str(value.v).encode("utf-8")[:size].ljust(size, b"\0")
        elif dt is DataType.INT:
            raw = struct.pack("<i", int(value.v))
        elif dt is DataType.FLOAT:
            raw = struct.pack("<f", float(value.v))
        else:
            raw = struct.pack("<h", 1 if value.v else 0)
    except (struct.error, OverflowError) as exc:
        raise DBError(ErrorCode.ERROR, f"cannot store {value.v!r}: {exc}") from exc
    offset = _attr_offset(schema, attr_num)
    record.data[offset : offset + size] = raw


def _encode_header(tuples: int, free_page: int, schema: Schema) -> bytearray:
    keys = schema.key_attrs[: schema.key_size]
    needed = _HEADER.size + _ATTR.size * schema.num_attr + _KEY.size * len(keys)
    if needed > PAGE_SIZE:
        raise DBError(ErrorCode.ERROR, "schema does not fit in the table header page")
    page = bytearray(PAGE_SIZE)
    _HEADER.pack_into(page, 0, tuples, free_page, schema.num_attr, len(keys))
    offset = _HEADER.size
    for name, dt, length in zip(schema.attr_names, schema.data_types, schema.type_length):
        _ATTR.pack_into(page, offset, name.encode("utf-8"), int(dt), length)
        offset += _ATTR.size
    for key in keys:
        _KEY.pack_into(page, offset, key)
        offset += _KEY.size
    return page


def _decode_header(page: bytearray) -> tuple[int, int, Schema]:
    try:
        tuples, free_page, num_attr, key_size = _HEADER.unpack_from(page, 0)
        offset = _HEADER.size
        names: list[str] = []
        types: list[DataType] = []
        lengths: list[int] = []
        for _ in range(num_attr):
            raw, dt, length = _ATTR.unpack_from(page, offset)
            offset += _ATTR.size
            names.append(raw.split(b"\0", 1)[0].decode("utf-8", errors="replace"))
            types.append(DataType(dt))
            lengths.append(length)
        keys = [_KEY.unpack_from(page, offset + i * _KEY.size)[0] for i in range(key_size)]
        schema = Schema(num_attr, names, types, lengths, keys, key_size)
    except (struct.error, ValueError) as exc:
        raise DBError(ErrorCode.ERROR, f"not a table header: {exc}") from exc
    if free_page < 1 or tuples < 0:
        raise DBError(ErrorCode.ERROR, "not a table header: bad bookkeeping values")
    return tuples, free_page, schema


def _check_record_fits(schema: Schema) -> None:
    if get_record_size(schema) > PAGE_SIZE:
        raise DBError(ErrorCode.ERROR, "records of this schema do not fit in a page")


def init_record_manager() -> None:
    """Begin a record manager session, closing tables an earlier one left open."""
    _close_all_tables()


def shutdown_record_manager() -> None:
    """End the session: every table still open is written back and closed."""
    _close_all_tables()


def _close_all_tables() -> None:
    for table in list(_open_tables):
        table.close()


def create_table(name: str | os.PathLike[str], schema: Schema) -> None:
    """Create a table file holding ``schema`` and no records."""
    _check_record_fits(schema)
    header = _encode_header(0, 1, schema)
    create_page_file(name)
    with open_page_file(name) as fh:
        fh.write_block(0, header)


def open_table(name: str | os.PathLike[str]) -> Table:
    """Open an existing table."""
    pool = BufferPool(name, BUFFER_FRAMES, ReplacementStrategy.LRU)
    try:
        handle = pool.pin_page(0)
        try:
            tuples, free_page, schema = _decode_header(handle.data)
        finally:
            pool.unpin_page(handle)
        _check_record_fits(schema)
    except DBError:
        pool.shutdown()
        raise
    table = Table(os.fspath(name), schema, pool, tuples, free_page)
    _open_tables.add(table)
    return table


def delete_table(name: str | os.PathLike[str]) -> None:
    """Remove a table's file."""
    destroy_page_file(name)


class Table:
    """An open table: its name, schema and cached pages."""

    def __init__(
        self, name: str, schema: Schema, pool: BufferPool, tuples_count: int, free_page: int
    ) -> None:
        self.name = name
        self.schema = schema
        self._pool = pool
        self._tuples = tuples_count
        self._free_page = free_page
        self._record_size = get_record_size(schema)
        self._slots_per_page = PAGE_SIZE // self._record_size

    def __repr__(self) -> str:
        return f"Table({self.name!r}, tuples={self._tuples})"

    def __enter__(self) -> Table:
        return self

    def __exit__(self, *args: object) -> None:
        if not self.closed:
            self.close()

    @property
    def closed(self) -> bool:
        return self._pool.closed

    def _require_open(self) -> None:
        if self.closed:
            raise DBError(ErrorCode.ERROR, "table is closed")

    def close(self) -> None:
        """Write the table's bookkeeping and cached pages to disk and close it."""
        self._require_open()
        with self._pinned(0) as handle:
            handle.data[:] = _encode_header(self._tuples, self._free_page, self.schema)
            self._pool.mark_dirty(handle)
        try:
            self._pool.shutdown()
        finally:
            _open_tables.discard(self)

    def num_tuples(self) -> int:
        """Number of records in the table."""
        return self._tuples

    @contextmanager
    def _pinned(self, page_num: int) -> Iterator[PageHandle]:
        handle = self._pool.pin_page(page_num)
        try:
            yield handle
        finally:
            self._pool.unpin_page(handle)

    def _page_count(self) -> int:
        try:
            return os.path.getsize(self.name) // PAGE_SIZE
        except OSError as exc:
            raise DBError(ErrorCode.FILE_NOT_FOUND, str(exc)) from exc

    def _check_rid(self, rid: RID) -> None:
        self._require_open()
        if not (1 <= rid.page < self._page_count() and 0 <= rid.slot < self._slots_per_page):
            raise DBError(
                ErrorCode.RM_NO_TUPLE_WITH_GIVEN_RID, f"no record at [{rid.page}-{rid.slot}]"
            )

    def _find_free_slot(self, data: bytearray) -> Optional[int]:
        size = self._record_size
        return next(
            (s for s in range(self._slots_per_page) if data[s * size] != _OCCUPIED), None
        )

    def _write_slot(self, handle: PageHandle, slot: int, record: Record) -> None:
        start = slot * self._record_size
        handle.data[start] = _OCCUPIED
        handle.data[start + 1 : start + self._record_size] = record.data[1 : self._record_size]
        self._pool.mark_dirty(handle)

    def insert_record(self, record: Record) -> RID:
        """Store ``record`` in the first free slot; sets and returns its id."""
        self._require_open()
        _check_record_data(record, self.schema)
        page_num = self._free_page
        while True:
            with self._pinned(page_num) as handle:
                slot = self._find_free_slot(handle.data)
                if slot is not None:
                    self._write_slot(handle, slot, record)
                    break
            page_num += 1
        self._free_page = page_num
        self._tuples += 1
        record.id = RID(page_num, slot)
        return record.id

    def delete_record(self, rid: RID) -> None:
        """Remove the record at ``rid``."""
        self._check_rid(rid)
        with self._pinned(rid.page) as handle:
            start = rid.slot * self._record_size
            if handle.data[start] != _OCCUPIED:
                raise DBError(
                    ErrorCode.RM_NO_TUPLE_WITH_GIVEN_RID,
                    f"no record at [{rid.page}-{rid.slot}]",
                )
            handle.data[start] = _FREE
            self._pool.mark_dirty(handle)
        self._free_page = rid.page
        self._tuples -= 1

    def update_record(self, record: Record) -> None:
        """Overwrite the slot named by ``record.id`` with the record's data."""
        self._check_rid(record.id)
        _check_record_data(record, self.schema)
        with self._pinned(record.id.page) as handle:
            was_occupied = handle.data[record.id.slot * self._record_size] == _OCCUPIED
            self._write_slot(handle, record.id.slot, record)
        if not was_occupied:
            self._tuples += 1

    def _read_slot(self, handle: PageHandle, page_num: int, slot: int) -> Record:
        start = slot * self._record_size
        data = bytearray(handle.data[start : start + self._record_size])
        data[0] = _FREE
        return Record(RID(page_num, slot), data)

    def get_record(self, rid: RID) -> Record:
        """Fetch the record at ``rid``."""
        self._check_rid(rid)
        with self._pinned(rid.page) as handle:
            if handle.data[rid.slot * self._record_size] != _OCCUPIED:
                raise DBError(
                    ErrorCode.RM_NO_TUPLE_WITH_GIVEN_RID,
                    f"no record at [{rid.page}-{rid.slot}]",
                )
            return self._read_slot(handle, rid.page, rid.slot)

    def start_scan(self, cond: Optional[Expr]) -> Scan:
        """Begin a scan over the records satisfying ``cond``."""
        if cond is None:
            raise DBError(ErrorCode.SCAN_CONDITION_NOT_FOUND, "a scan needs a condition")
        self._require_open()
        return Scan(self, cond)


class Scan:
    """A pass over the records of a table that satisfy a condition."""

    def __init__(self, table: Table, cond: Expr) -> None:
        self.table = table
        self.condition = cond
        self._page = 1
        self._slot = 0
        self._closed = False

    def _matches(self, record: Record) -> bool:
        result = eval_expr(record, self.table.schema, self.condition)
        if result.dt is not DataType.BOOL:
            raise DBError(
                ErrorCode.RM_EXPR_RESULT_IS_NOT_BOOLEAN, "scan condition is not boolean"
            )
        return bool(result.v)

    def next(self) -> Record:
        """The next matching record; at the end raises and starts over."""
        if self._closed:
            raise DBError(ErrorCode.ERROR, "scan is closed")
        table = self.table
        pages = table._page_count()
        while self._page < pages:
            with table._pinned(self._page) as handle:
                for slot in range(self._slot, table._slots_per_page):
                    if handle.data[slot * table._record_size] != _OCCUPIED:
                        continue
                    record = table._read_slot(handle, self._page, slot)
                    if self._matches(record):
                        self._slot = slot + 1
                        return record
            self._page += 1
            self._slot = 0
        self._page, self._slot = 1, 0
        raise DBError(ErrorCode.RM_NO_MORE_TUPLES, "no more tuples")

    def __iter__(self) -> Iterator[Record]:
        while True:
            try:
                record = self.next()
            except DBError as exc:
                if exc.code == ErrorCode.RM_NO_MORE_TUPLES:
                    return
                raise
            yield record

    def close(self) -> None:
        """Finish the scan; it cannot be continued afterwards."""
        self._closed = True
        self._page, self._slot = 1, 0