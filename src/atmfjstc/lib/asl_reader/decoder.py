"""
Top-level decoding of ASL (layer style) streams.

An ASL stream consists of:

- a header: version (2), magic ``8BSL``, pattern section version (3)
- the pattern section: a 4-byte length, followed by that many bytes of pattern records
- the style section: style count, byte count, and two descriptor records, each preceded by a format version (16)

Patterns are decoded on a best-effort basis: a corrupt pattern record is reported and skipped, and decoding continues
with the next record. Any other failure aborts the decode. In all cases, `ASLStreamDecoder.decode` returns a result
object containing whatever part of the tree could be built, rather than raising.
"""

import logging

from dataclasses import dataclass
from typing import Optional, Tuple, List

from atmfjstc.lib.error_utils import format_exception_head

from atmfjstc.lib.asl_reader.ByteCursor import ByteCursor
from atmfjstc.lib.asl_reader.descriptor import DescriptorTreeBuilder
from atmfjstc.lib.asl_reader.errors import ASLParseError
from atmfjstc.lib.asl_reader.nodes import ASLDocument, ASLNode, ASLList, PATTERNS_KEY
from atmfjstc.lib.asl_reader.options import ASLDecoderOptions, DEFAULT_OPTIONS
from atmfjstc.lib.asl_reader.pattern import read_pattern
from atmfjstc.lib.asl_reader.section import SectionBound


LOG = logging.getLogger(__name__)


ASL_VERSION = 2
ASL_MAGIC = b'8BSL'
PATTERNS_VERSION = 3
STYLES_FORMAT_VERSION = 16
NUM_TOP_LEVEL_DESCRIPTORS = 2


@dataclass(frozen=True)
class ASLDecodeResult:
    """
    The outcome of decoding an ASL stream.

    Attributes:
        document: The decoded tree. If decoding was aborted, this contains the parts that were completely decoded
            before the failure (possibly nothing).
        error: The parse error that aborted decoding, or None if decoding completed.
        warnings: Diagnostics for problems that did not abort decoding (skipped patterns, section size mismatches,
            skipped values).
    """
    document: ASLDocument
    error: Optional[ASLParseError] = None
    warnings: Tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.error is None


class ASLStreamDecoder:
    _cursor: ByteCursor
    _options: ASLDecoderOptions

    _children: List[ASLNode]
    _warnings: List[str]

    def __init__(self, cursor: ByteCursor, options: ASLDecoderOptions = DEFAULT_OPTIONS):
        self._cursor = cursor
        self._options = options

    def decode(self) -> ASLDecodeResult:
        self._children = []
        self._warnings = []
        error = None

        try:
            self._decode_header()
            self._decode_patterns_section()
            self._decode_styles_section()
        except ASLParseError as e:
            LOG.warning("ASL: %s", format_exception_head(e))
            error = e

        return ASLDecodeResult(
            document=ASLDocument(tuple(self._children)),
            error=error,
            warnings=tuple(self._warnings),
        )

    def _decode_header(self):
        self._cursor.expect_value(ASL_VERSION, 2, 'ASL version')
        self._cursor.expect_magic(ASL_MAGIC, 'ASL signature')
        self._cursor.expect_value(PATTERNS_VERSION, 2, 'patterns version')

    def _decode_patterns_section(self):
        section_length = self._cursor.read_u32('patterns section length')
        if section_length == 0:
            return

        patterns = []

        try:
            with SectionBound(
                self._cursor, section_length, max_padding=self._options.patterns_section_padding,
                meaning='patterns section', strict=self._options.strict_sections, mut_warnings=self._warnings
            ) as bound:
                bytes_read = 0

                while section_length - bytes_read > self._options.patterns_section_padding:
                    record_start = self._cursor.tell()

                    try:
                        node, record_length = read_pattern(self._cursor, self._options, self._warnings)
                        patterns.append(node)
                        bytes_read += record_length
                    except ASLParseError as e:
                        message = f"ASL (emb. pattern at position {record_start}): {format_exception_head(e)}"
                        LOG.warning(message)
                        self._warnings.append(message)

                        if self._cursor.tell() <= record_start or self._cursor.tell() >= bound.end_offset:
                            break

                        bytes_read = self._cursor.tell() - bound.start_offset
        finally:
            self._children.append(ASLList(PATTERNS_KEY, items=tuple(patterns)))

    def _decode_styles_section(self):
        self._cursor.read_u32('number of styles')
        self._cursor.read_u32('styles section length')

        builder = DescriptorTreeBuilder(self._cursor, self._options, self._warnings)

        for _ in range(NUM_TOP_LEVEL_DESCRIPTORS):
            self._cursor.expect_value(STYLES_FORMAT_VERSION, 4, 'styles format version')
            self._children.append(builder.read_descriptor(''))


def decode_asl_stream(cursor: ByteCursor, options: Optional[ASLDecoderOptions] = None) -> ASLDecodeResult:
    return ASLStreamDecoder(cursor, options or DEFAULT_OPTIONS).decode()
