"""Error codes and the exception raised by the page store."""

from __future__ import annotations

from enum import IntEnum


class ErrorCode(IntEnum):
    """Numeric codes identifying what went wrong."""

    OK = 0
    FILE_NOT_FOUND = 1
    FILE_HANDLE_NOT_INIT = 2
    WRITE_FAILED = 3
    READ_NON_EXISTING_PAGE = 4

    RM_COMPARE_VALUE_OF_DIFFERENT_DATATYPE = 200
    RM_EXPR_RESULT_IS_NOT_BOOLEAN = 201
    RM_BOOLEAN_EXPR_ARG_IS_NOT_BOOLEAN = 202
    RM_NO_MORE_TUPLES = 203
    RM_NO_PRINT_FOR_DATATYPE = 204
    RM_UNKNOWN_DATATYPE = 205

    IM_KEY_NOT_FOUND = 300
    IM_KEY_ALREADY_EXISTS = 301
    IM_N_TOO_LARGE = 302
    IM_NO_MORE_ENTRIES = 303

    ERROR = 400
    PINNED_PAGES_IN_BUFFER = 500

    RM_NO_TUPLE_WITH_GIVEN_RID = 600
    SCAN_CONDITION_NOT_FOUND = 601


def error_message(code: int, message: str | None = None) -> str:
    """Format an error code, and its message if there is one, as one line."""
    if message is not None:
        return f'EC ({int(code)}), "{message}"\n'
    return f"EC ({int(code)})\n"


class DBError(Exception):
    """Raised by every page store operation that fails."""

    def __init__(self, code: int, message: str | None = None) -> None:
        try:
            self.code: int = ErrorCode(code)
        except ValueError:
            self.code = int(code)
        self.message = message
        super().__init__(self.code, message)

    def __str__(self) -> str:
        return error_message(self.code, self.message).rstrip("\n")