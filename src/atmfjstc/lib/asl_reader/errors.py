"""
Exceptions raised while decoding ASL (layer style) streams.

All format-related failures derive from `ASLParseError`. These are recoverable in the sense that the decoder can
catch them, abandon the current record or stream, and report them as diagnostics. Problems with the stream object
itself (e.g. it cannot seek) are signalled with `ASLUnusableStreamError` instead, which is not a parse error.
"""

from typing import Optional


class ASLParseError(Exception):
    """
    Base class for situations where the data does not match the expected ASL format.
    """


class ASLTruncatedInputError(ASLParseError):
    position: int
    expected_length: int
    actual_length: int
    meaning: Optional[str]

    def __init__(self, position: int, expected_length: int, actual_length: int, meaning: Optional[str]):
        self.position = position
        self.expected_length = expected_length
        self.actual_length = actual_length
        self.meaning = meaning

        super().__init__(
            f"At position {position}, expected {expected_length} "
            f"bytes{f' for {meaning}' if meaning is not None else ''}"
            f", but {'only ' + str(actual_length) + ' were found' if actual_length > 0 else 'the data ends'}"
        )


class ASLSignatureMismatchError(ASLParseError):
    position: int
    meaning: str
    expected: object
    found: object

    def __init__(self, position: int, meaning: str, expected: object, found: object):
        self.position = position
        self.meaning = meaning
        self.expected = expected
        self.found = found

        super().__init__(f"At position {position}, expected {meaning} {expected!r}, but found {found!r}")


class ASLUnsupportedVariantError(ASLParseError):
    """
    Raised for structurally valid data that uses a tag, mode, compression etc. that this decoder does not implement.
    """


class ASLDecompressionMismatchError(ASLParseError):
    expected_length: int
    actual_length: int

    def __init__(self, expected_length: int, actual_length: int):
        self.expected_length = expected_length
        self.actual_length = actual_length

        super().__init__(
            f"Decompressed data should be {expected_length} bytes long, but {actual_length} bytes were produced"
        )


class ASLRecordSizeMismatchError(ASLParseError):
    start_offset: int
    declared_length: int
    consumed: int
    meaning: Optional[str]

    def __init__(self, start_offset: int, declared_length: int, consumed: int, meaning: Optional[str]):
        self.start_offset = start_offset
        self.declared_length = declared_length
        self.consumed = consumed
        self.meaning = meaning

        super().__init__(
            f"{meaning or 'Section'} at position {start_offset} declares {declared_length} bytes, "
            f"but {consumed} were consumed"
        )


class ASLNestingTooDeepError(ASLParseError):
    max_depth: int

    def __init__(self, max_depth: int):
        self.max_depth = max_depth

        super().__init__(f"Descriptors and lists are nested deeper than the maximum of {max_depth} levels")


class ASLUnusableStreamError(ValueError):
    """
    Raised when the input cannot be used for decoding at all (e.g. it is a text stream, or not seekable).
    """
