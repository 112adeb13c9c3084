"""
Decoding of the patterns embedded in the pattern section of an ASL file.

Each pattern record consists of a small header (version, image mode, size, name, UUID) followed by a "virtual array
list", a container for the image planes. Every plane has its own header and is stored either raw or compressed
row-by-row with PackBits. The decoded planes are combined into a single BGRA raster, which is then stored in the tree
as an opaque blob (see `pattern_file`).
"""

import logging

from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional, Sequence, Tuple

import numpy as np

from atmfjstc.lib.asl_reader.ByteCursor import ByteCursor
from atmfjstc.lib.asl_reader.errors import ASLParseError, ASLUnsupportedVariantError, ASLSignatureMismatchError
from atmfjstc.lib.asl_reader.nodes import ASLDescriptor, ASLText, ASLPatternBlob
from atmfjstc.lib.asl_reader.options import ASLDecoderOptions, DEFAULT_OPTIONS
from atmfjstc.lib.asl_reader.pattern_file import encode_gimp_pattern, pack_pattern_blob
from atmfjstc.lib.asl_reader.rle import decode_packbits
from atmfjstc.lib.asl_reader.section import SectionBound


LOG = logging.getLogger(__name__)


PATTERN_VERSION = 1
VIRTUAL_ARRAY_LIST_VERSION = 3
VIRTUAL_ARRAY_LIST_CHANNELS = 24  # Undocumented, but this is the only value seen in practice
SUPPORTED_PIXEL_DEPTH = 8
VIRTUAL_ARRAY_LIST_PADDING = 100

PATTERN_CLASS_ID = 'KisPattern'
PATTERN_NAME_KEY = 'Nm  '
PATTERN_UUID_KEY = 'Idnt'
PATTERN_DATA_KEY = 'Data'


class ImageMode(IntEnum):
    BITMAP = 0
    GRAYSCALE = 1
    INDEXED = 2
    RGB = 3
    CMYK = 4
    MULTICHANNEL = 7
    DUOTONE = 8
    LAB = 9


class PlaneCompression(IntEnum):
    RAW = 0
    RLE = 1
    ZIP = 2
    ZIP_WITH_PREDICTION = 3


_PLANES_BY_IMAGE_MODE = {
    ImageMode.GRAYSCALE: 1,
    ImageMode.MULTICHANNEL: 1,
    ImageMode.RGB: 3,
}


@dataclass(frozen=True)
class PatternRect:
    top: int
    left: int
    bottom: int
    right: int

    @property
    def width(self) -> int:
        return self.right - self.left

    @property
    def height(self) -> int:
        return self.bottom - self.top


@dataclass(frozen=True)
class Pattern:
    """
    A decoded pattern.

    Attributes:
        name: The human-readable pattern name.
        uuid: The pattern identifier, by which layer styles refer to it.
        width: Width of the raster, in pixels.
        height: Height of the raster, in pixels.
        num_planes: 1 for grayscale/multichannel patterns, 3 for RGB ones.
        pixels: A numpy ``uint8`` array of shape ``(height, width, 4)``, channels in B, G, R, A order. Alpha is always
            fully opaque.
    """
    name: str
    uuid: str
    width: int
    height: int
    num_planes: int
    pixels: np.ndarray

    @property
    def file_name(self) -> str:
        return f"{self.uuid}.pat"


def align_offset_ceil(value: int, alignment: int = 4) -> int:
    return (value + alignment - 1) // alignment * alignment


def read_pattern(
    cursor: ByteCursor, options: ASLDecoderOptions = DEFAULT_OPTIONS, mut_warnings: Optional[List[str]] = None
) -> Tuple[ASLDescriptor, int]:
    """
    Reads a pattern record and converts it into a tree node.

    Returns:
        A tuple of the ``KisPattern`` descriptor node and the number of bytes the record occupies in the stream, as
        declared in its header (including the size field itself and any alignment padding).
    """

    pattern, record_length = decode_pattern_record(cursor, options, mut_warnings)

    return pattern_to_node(pattern, options), record_length


def decode_pattern_record(
    cursor: ByteCursor, options: ASLDecoderOptions = DEFAULT_OPTIONS, mut_warnings: Optional[List[str]] = None
) -> Tuple[Pattern, int]:
    """
    Reads a pattern record and reconstructs its raster.

    Whether parsing succeeds or fails, the cursor is left at the declared end of the record (provided the size field
    itself could be read).

    Returns:
        A tuple of the `Pattern` and the declared length of the record, in bytes.
    """

    # Patterns are always aligned to 4 bytes; the declared size does not include the padding
    declared_size = cursor.read_u32('pattern record size')
    record_size = align_offset_ceil(declared_size)

    with SectionBound(
        cursor, record_size, max_padding=record_size - declared_size, meaning='pattern record',
        strict=options.strict_sections, mut_warnings=mut_warnings
    ):
        cursor.expect_value(PATTERN_VERSION, 4, 'pattern version')

        raw_image_mode = cursor.read_u32('pattern image mode')
        cursor.read_u16('pattern height')
        cursor.read_u16('pattern width')
        name = cursor.read_unicode_string('pattern name')
        uuid = cursor.read_pascal_string('pattern UUID')

        num_planes = _PLANES_BY_IMAGE_MODE.get(raw_image_mode)
        if num_planes is None:
            raise ASLUnsupportedVariantError(
                f"Pattern {uuid!r} has unsupported image mode: {_describe_image_mode(raw_image_mode)}"
            )

        rect, planes = _read_virtual_array_list(cursor, num_planes, options, mut_warnings)

    LOG.debug("Decoded pattern %r (%s), %dx%d, %d plane(s)", name, uuid, rect.width, rect.height, num_planes)

    pattern = Pattern(
        name=name,
        uuid=uuid,
        width=rect.width,
        height=rect.height,
        num_planes=num_planes,
        pixels=reconstruct_bgra(planes, rect.width, rect.height),
    )

    return pattern, 4 + record_size


def pattern_to_node(pattern: Pattern, options: ASLDecoderOptions = DEFAULT_OPTIONS) -> ASLDescriptor:
    # The pattern is converted to BGRA right away, so there is no need to store its original mode and size
    blob = pack_pattern_blob(encode_gimp_pattern(pattern.pixels, pattern.name), options.pattern_compression_level)

    return ASLDescriptor(
        '',
        class_id=PATTERN_CLASS_ID,
        name='',
        children=(
            ASLText(PATTERN_NAME_KEY, pattern.name),
            ASLText(PATTERN_UUID_KEY, pattern.uuid),
            ASLPatternBlob(PATTERN_DATA_KEY, blob),
        ),
    )


def reconstruct_bgra(planes: Sequence[np.ndarray], width: int, height: int) -> np.ndarray:
    """
    Combines 1 (grayscale) or 3 (red, green, blue) planes of shape ``(height, width)`` into an interleaved BGRA
    raster of shape ``(height, width, 4)``. A single plane is replicated into all three color channels. Alpha is
    fully opaque.
    """

    if len(planes) == 1:
        red = green = blue = planes[0]
    elif len(planes) == 3:
        red, green, blue = planes
    else:
        raise ValueError(f"Can only reconstruct rasters from 1 or 3 planes, got {len(planes)}")

    alpha = np.full((height, width), 0xFF, dtype=np.uint8)

    return np.stack((blue, green, red, alpha), axis=-1).astype(np.uint8)


def _read_virtual_array_list(
    cursor: ByteCursor, num_planes: int, options: ASLDecoderOptions, mut_warnings: Optional[List[str]]
) -> Tuple[PatternRect, List[np.ndarray]]:
    cursor.expect_value(VIRTUAL_ARRAY_LIST_VERSION, 4, 'virtual array list version')
    length = cursor.read_u32('virtual array list length')

    with SectionBound(
        cursor, length, max_padding=VIRTUAL_ARRAY_LIST_PADDING, meaning='virtual array list',
        strict=options.strict_sections, mut_warnings=mut_warnings
    ):
        rect = _read_rect(cursor, 'virtual array list rectangle')
        cursor.expect_value(VIRTUAL_ARRAY_LIST_CHANNELS, 4, 'virtual array list channel count')

        planes = [_read_plane(cursor, rect, index, options, mut_warnings) for index in range(num_planes)]

    return rect, planes


def _read_plane(
    cursor: ByteCursor, rect: PatternRect, index: int, options: ASLDecoderOptions, mut_warnings: Optional[List[str]]
) -> np.ndarray:
    if cursor.read_u32(f'plane {index} written flag') == 0:
        raise ASLParseError(f"Plane {index} of the virtual array list is marked as not written")

    plane_length = cursor.read_u32(f'plane {index} length')
    if plane_length == 0:
        raise ASLParseError(f"Plane {index} of the virtual array list has zero length")

    with SectionBound(
        cursor, plane_length, meaning=f'plane {index}', strict=options.strict_sections, mut_warnings=mut_warnings
    ):
        depth_position = cursor.tell()
        pixel_depth = cursor.read_u32(f'plane {index} pixel depth')

        plane_rect = _read_rect(cursor, f'plane {index} rectangle')
        if plane_rect != rect:
            raise ASLUnsupportedVariantError(
                f"Plane {index} has rectangle {plane_rect}, different from the array's {rect}. Non-uniform planes are "
                f"not supported"
            )

        pixel_depth_2 = cursor.read_u16(f'plane {index} pixel depth (repeated)')
        if pixel_depth_2 != pixel_depth:
            raise ASLSignatureMismatchError(
                depth_position, f'plane {index} repeated pixel depth', pixel_depth, pixel_depth_2
            )
        if pixel_depth != SUPPORTED_PIXEL_DEPTH:
            raise ASLUnsupportedVariantError(
                f"Plane {index} has pixel depth {pixel_depth}, only {SUPPORTED_PIXEL_DEPTH} is supported"
            )

        compression = cursor.read_u8(f'plane {index} compression')

        if compression == PlaneCompression.RAW:
            data = cursor.read_bytes(rect.width * rect.height, f'plane {index} raw data')
        elif compression == PlaneCompression.RLE:
            data = _read_rle_plane_data(cursor, rect, index)
        else:
            raise ASLUnsupportedVariantError(
                f"Plane {index} uses compression {_describe_compression(compression)}, which is not supported"
            )

    return np.frombuffer(data, dtype=np.uint8).reshape((rect.height, rect.width))


def _read_rle_plane_data(cursor: ByteCursor, rect: PatternRect, index: int) -> bytes:
    row_sizes = cursor.read_struct(f'{rect.height}H', f'plane {index} row sizes')

    return b''.join(
        decode_packbits(cursor.read_bytes(row_size, f'plane {index} row {row} compressed data'), rect.width)
        for row, row_size in enumerate(row_sizes)
    )


def _read_rect(cursor: ByteCursor, meaning: str) -> PatternRect:
    position = cursor.tell()
    rect = PatternRect(*cursor.read_struct('IIII', meaning))

    if rect.width < 0 or rect.height < 0:
        raise ASLUnsupportedVariantError(f"At position {position}, {meaning} {rect} has negative dimensions")

    return rect


def _describe_image_mode(raw_mode: int) -> str:
    try:
        return f"{ImageMode(raw_mode).name} ({raw_mode})"
    except ValueError:
        return str(raw_mode)


def _describe_compression(raw_compression: int) -> str:
    try:
        return f"{PlaneCompression(raw_compression).name} ({raw_compression})"
    except ValueError:
        return str(raw_compression)
