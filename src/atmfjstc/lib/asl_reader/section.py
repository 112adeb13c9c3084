"""
Scoped handling for length-prefixed sections of an ASL stream.

Most structures in an ASL file are preceded by their length. A `SectionBound` guarantees that, however parsing of
such a structure ends (normally, with an under- or over-read, or with an exception), the cursor is left exactly at
the declared end of the section, so that parsing of the following sibling can proceed. Use it as::

    with SectionBound(cursor, length, meaning='pattern record'):
        ...  # parse the record
"""

import logging

from typing import Optional, List, ContextManager

from atmfjstc.lib.asl_reader.ByteCursor import ByteCursor
from atmfjstc.lib.asl_reader.errors import ASLRecordSizeMismatchError


LOG = logging.getLogger(__name__)


class SectionBound(ContextManager['SectionBound']):
    """
    Context manager that repositions a cursor to the end of a declared-length section on exit.

    Args:
        cursor: The cursor, positioned at the start of the section content.
        declared_length: The length of the section, in bytes.
        max_padding: How many bytes may be left unconsumed at the end of the section before this is reported as a
            mismatch. Reading past the declared end is always reported.
        meaning: What the section contains (e.g. "pattern record"), for use in warnings and errors.
        strict: If True, a mismatch on a normal exit raises `ASLRecordSizeMismatchError` (after repositioning the
            cursor). Otherwise it is only logged. Mismatches on an exceptional exit never replace the exception being
            propagated.
        mut_warnings: If not None, mismatch warnings are also appended to this list.
    """

    cursor: ByteCursor
    declared_length: int
    max_padding: int
    meaning: Optional[str]
    strict: bool

    start_offset: int
    _mut_warnings: Optional[List[str]]

    def __init__(
        self, cursor: ByteCursor, declared_length: int, max_padding: int = 0, meaning: Optional[str] = None,
        strict: bool = False, mut_warnings: Optional[List[str]] = None
    ):
        if declared_length < 0:
            raise ValueError(f"Section length must be non-negative (is: {declared_length})")
        if max_padding < 0:
            raise ValueError(f"Section padding must be non-negative (is: {max_padding})")

        self.cursor = cursor
        self.declared_length = declared_length
        self.max_padding = max_padding
        self.meaning = meaning
        self.strict = strict
        self._mut_warnings = mut_warnings

        self.start_offset = cursor.tell()

    @property
    def end_offset(self) -> int:
        return self.start_offset + self.declared_length

    def consumed(self) -> int:
        return self.cursor.tell() - self.start_offset

    def __enter__(self) -> 'SectionBound':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        consumed = self.consumed()
        mismatch = (consumed > self.declared_length) or (consumed < self.declared_length - self.max_padding)

        self.cursor.seek(self.end_offset)

        if not mismatch:
            return

        error = ASLRecordSizeMismatchError(self.start_offset, self.declared_length, consumed, self.meaning)

        if exc_type is not None:
            LOG.debug("%s (while handling a parse failure)", error)
            return

        if self.strict:
            raise error

        LOG.warning("%s", error)
        if self._mut_warnings is not None:
            self._mut_warnings.append(str(error))
