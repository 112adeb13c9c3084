"""
This module contains the `ByteCursor` class, a wrapper for seekable binary streams that offers functions for
extracting the big-endian primitives and string kinds used by ASL (layer style) files.
"""

import struct

from typing import Union, BinaryIO, Optional, AnyStr
from io import BytesIO, IOBase, TextIOBase
from os import SEEK_SET, SEEK_END

from atmfjstc.lib.asl_reader.errors import ASLTruncatedInputError, ASLSignatureMismatchError, ASLUnusableStreamError


class ByteCursor:
    """
    This class wraps a seekable binary file object and offers functions for extracting big-endian ints, doubles and
    the four kinds of strings found in ASL data:

    - fixed length strings (usually 4 bytes, e.g. type tags and units)
    - variable length strings (4-byte length + bytes, where a length of 0 actually means 4)
    - pascal strings (1-byte length + bytes)
    - unicode strings (4-byte length in code units + UTF-16BE code units)

    The cursor does not interpret failures. Any read that requests more data than is available raises
    `ASLTruncatedInputError`, and the caller decides whether to recover.
    """

    _fileobj: BinaryIO

    _position: int
    _cached_total_size: Optional[int] = None

    def __init__(self, data_or_fileobj: Union[bytes, BinaryIO]):
        self._fileobj = _parse_main_input_arg(data_or_fileobj)
        self._position = self._fileobj.tell()

    def name(self) -> Optional[AnyStr]:
        name = getattr(self._fileobj, 'name', None)

        return None if ((name is None) or (name == '')) else name

    def seek(self, offset: int) -> 'ByteCursor':
        """
        Moves the cursor to an absolute offset in the stream.

        Seeking past the end of the data is allowed; any subsequent read will then raise `ASLTruncatedInputError`.
        """
        if offset < 0:
            raise ValueError(f"Cannot seek to negative offset {offset}")

        self._fileobj.seek(offset, SEEK_SET)
        self._position = self._fileobj.tell()

        return self

    def tell(self) -> int:
        return self._position

    def total_size(self) -> int:
        if self._cached_total_size is None:
            original_position = self._fileobj.tell()
            self._fileobj.seek(0, SEEK_END)
            self._cached_total_size = self._fileobj.tell()
            self._fileobj.seek(original_position, SEEK_SET)

        return self._cached_total_size

    def bytes_remaining(self) -> int:
        return max(0, self.total_size() - self._position)

    def read_bytes(self, n_bytes: int, meaning: Optional[str] = None) -> bytes:
        """
        Reads exactly `n_bytes` from the underlying stream.

        Args:
            n_bytes: The amount of bytes to read.
            meaning: An indication as to the meaning of the data being read (e.g. "pattern name"). It is used in the
                text of any exceptions that may be thrown.

        Returns:
            The data, as a `bytes` object `n_bytes` in length.

        Raises:
            ASLTruncatedInputError: If the data ends before `n_bytes` could be read. In this case the cursor is left
                at the end of the data and never beyond it.
        """

        if n_bytes < 0:
            raise ValueError("The number of bytes to read cannot be negative")
        if n_bytes == 0:
            return b''

        original_pos = self._position

        if n_bytes > self.bytes_remaining():
            available = self.bytes_remaining()
            if available > 0:
                self.seek(original_pos + available)
            raise ASLTruncatedInputError(original_pos, n_bytes, available, meaning)

        data = self._fileobj.read(n_bytes)

        while len(data) < n_bytes:
            new_data = self._fileobj.read(n_bytes - len(data))

            if len(new_data) == 0:
                break

            data += new_data

        self._position = original_pos + len(data)

        if len(data) < n_bytes:
            raise ASLTruncatedInputError(original_pos, n_bytes, len(data), meaning)

        return data

    def skip_bytes(self, n_bytes: int, meaning: Optional[str] = None):
        """
        Skips over a number of bytes, ignoring the data. The bytes MUST be present.
        """

        if n_bytes < 0:
            raise ValueError("Number of bytes to skip must be non-negative")

        available = self.bytes_remaining()
        if available < n_bytes:
            original_pos = self._position
            self.seek(original_pos + available)
            raise ASLTruncatedInputError(original_pos, n_bytes, available, meaning)

        self.seek(self._position + n_bytes)

    def read_struct(self, struct_format: str, meaning: Optional[str] = None) -> tuple:
        """
        Reads structured data, as per the Python `struct` package. The big-endian specifier is added automatically.
        """
        struct_format = '>' + struct_format

        return struct.unpack(struct_format, self.read_bytes(struct.calcsize(struct_format), meaning))

    def read_u8(self, meaning: Optional[str] = None) -> int:
        return self.read_struct('B', meaning or 'uint8')[0]

    def read_u16(self, meaning: Optional[str] = None) -> int:
        return self.read_struct('H', meaning or 'uint16')[0]

    def read_u32(self, meaning: Optional[str] = None) -> int:
        return self.read_struct('I', meaning or 'uint32')[0]

    def read_f64(self, meaning: Optional[str] = None) -> float:
        return self.read_struct('d', meaning or 'double')[0]

    def read_fixed_string(self, n_bytes: int = 4, meaning: Optional[str] = None) -> str:
        return self.read_bytes(n_bytes, meaning or 'fixed string').decode('latin-1')

    def read_length_prefixed_string(self, length_bytes: int, meaning: Optional[str] = None) -> str:
        """
        Reads a byte string whose length is stored in a 1 or 4 byte big-endian int occurring before it.

        The length is taken at face value. See `read_var_string` for the variant with the zero-length quirk.
        """

        return self.read_bytes(self._read_string_length(length_bytes, meaning), meaning).decode('latin-1')

    def read_var_string(self, meaning: Optional[str] = None) -> str:
        """
        Reads a variable length string (4-byte length prefix).

        In this format, a declared length of 0 means that the string is exactly 4 bytes long. This is how class IDs,
        keys and enum values that are standard 4-character codes are stored.
        """

        length = self._read_string_length(4, meaning)

        if length == 0:
            length = 4

        return self.read_bytes(length, meaning).decode('latin-1')

    def read_pascal_string(self, meaning: Optional[str] = None) -> str:
        return self.read_length_prefixed_string(1, meaning)

    def _read_string_length(self, length_bytes: int, meaning: Optional[str]) -> int:
        if length_bytes not in (1, 4):
            raise ValueError(f"String length prefix must be 1 or 4 bytes wide (is: {length_bytes})")

        return int.from_bytes(self.read_bytes(length_bytes, f"length of {meaning or 'string'}"), byteorder='big')

    def read_unicode_string(self, meaning: Optional[str] = None) -> str:
        """
        Reads a unicode string: a 4-byte count of UTF-16 code units, followed by the code units (big-endian).

        All the declared code units are consumed regardless of whether the string contains a null terminator. Any
        trailing NULs are removed from the returned text.
        """

        n_units = self.read_u32(f"length of {meaning or 'unicode string'}")
        data = self.read_bytes(n_units * 2, meaning or 'unicode string')

        return data.decode('utf-16-be', errors='replace').rstrip('\x00')

    def expect_value(self, expected: int, n_bytes: int, meaning: str):
        """
        Reads an unsigned big-endian int and verifies that it has a specific value (e.g. a version number).

        Raises:
            ASLSignatureMismatchError: If the value read does not match the expected one.
            ASLTruncatedInputError: If the data ends before the value could be read.
        """

        position = self._position
        value = int.from_bytes(self.read_bytes(n_bytes, meaning), byteorder='big')

        if value != expected:
            raise ASLSignatureMismatchError(position, meaning, expected, value)

    def expect_magic(self, magic: bytes, meaning: str):
        position = self._position
        data = self.read_bytes(len(magic), meaning)

        if data != magic:
            raise ASLSignatureMismatchError(position, meaning, magic, data)


def _parse_main_input_arg(input_: Union[bytes, BinaryIO]) -> BinaryIO:
    if isinstance(input_, (bytes, bytearray, memoryview)):
        return BytesIO(input_)

    if not isinstance(input_, IOBase):
        raise ASLUnusableStreamError("Input to ByteCursor must be either bytes or a file object")
    if isinstance(input_, TextIOBase):
        raise ASLUnusableStreamError("ByteCursor works on binary, not text file objects")
    if not input_.seekable():
        raise ASLUnusableStreamError("ByteCursor can only read from seekable file objects")

    return input_
