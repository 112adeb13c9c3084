"""
Serialization of decoded patterns into a self-contained, text-safe payload.

A pattern embedded in an ASL file is stored in the decoded tree as a GIMP pattern (``.pat``) file, compressed with
zlib using Qt's ``qCompress`` framing (a 4-byte big-endian uncompressed length followed by the zlib stream), and
finally base-64 encoded. This is what the `ASLPatternBlob` node contains. The functions here produce and consume that
representation.
"""

import base64
import binascii
import struct
import zlib

from dataclasses import dataclass

import numpy as np

from PIL import Image

from atmfjstc.lib.asl_reader.errors import ASLParseError


GIMP_PATTERN_MAGIC = b'GPAT'
GIMP_PATTERN_VERSION = 1

_HEADER_FORMAT = '>IIIII4s'
_HEADER_SIZE = struct.calcsize(_HEADER_FORMAT)


@dataclass(frozen=True)
class GimpPattern:
    """
    The content of a GIMP pattern file.

    Attributes:
        name: The pattern name.
        width: Width in pixels.
        height: Height in pixels.
        bytes_per_pixel: 1 (grayscale), 2 (grayscale + alpha), 3 (RGB) or 4 (RGBA).
        pixels: A numpy ``uint8`` array of shape ``(height, width, bytes_per_pixel)``.
    """
    name: str
    width: int
    height: int
    bytes_per_pixel: int
    pixels: np.ndarray

    def to_image(self) -> Image.Image:
        # Pillow infers L, LA, RGB or RGBA from the array shape
        data = self.pixels[:, :, 0] if self.bytes_per_pixel == 1 else self.pixels

        return Image.fromarray(np.ascontiguousarray(data))


def encode_gimp_pattern(pixels_bgra: np.ndarray, name: str) -> bytes:
    """
    Serializes a BGRA raster as a 4 bytes-per-pixel GIMP pattern file.

    Args:
        pixels_bgra: A ``uint8`` array of shape ``(height, width, 4)``, channels in B, G, R, A order.
        name: The pattern name, stored as UTF-8.
    """

    height, width, n_channels = pixels_bgra.shape
    if n_channels != 4:
        raise ValueError(f"Expected a 4-channel BGRA raster, got {n_channels} channels")

    raw_name = name.encode('utf-8') + b'\x00'

    header = struct.pack(
        _HEADER_FORMAT, _HEADER_SIZE + len(raw_name), GIMP_PATTERN_VERSION, width, height, 4, GIMP_PATTERN_MAGIC
    )
    rgba = pixels_bgra[:, :, [2, 1, 0, 3]].astype(np.uint8)

    return header + raw_name + rgba.tobytes()


def decode_gimp_pattern(data: bytes) -> GimpPattern:
    if len(data) < _HEADER_SIZE:
        raise ASLParseError(f"GIMP pattern data is too short ({len(data)} bytes)")

    header_size, version, width, height, bytes_per_pixel, magic = struct.unpack_from(_HEADER_FORMAT, data)

    if magic != GIMP_PATTERN_MAGIC:
        raise ASLParseError(f"Bad GIMP pattern magic: {magic!r}")
    if version != GIMP_PATTERN_VERSION:
        raise ASLParseError(f"Unsupported GIMP pattern version: {version}")
    if bytes_per_pixel not in (1, 2, 3, 4):
        raise ASLParseError(f"Unsupported GIMP pattern depth: {bytes_per_pixel} bytes per pixel")
    if header_size < _HEADER_SIZE or header_size > len(data):
        raise ASLParseError(f"Bad GIMP pattern header size: {header_size}")

    name = data[_HEADER_SIZE:header_size].split(b'\x00', 1)[0].decode('utf-8', errors='replace')

    n_pixel_bytes = width * height * bytes_per_pixel
    pixel_data = data[header_size:header_size + n_pixel_bytes]
    if len(pixel_data) != n_pixel_bytes:
        raise ASLParseError(f"GIMP pattern pixel data is truncated ({len(pixel_data)} of {n_pixel_bytes} bytes)")

    pixels = np.frombuffer(pixel_data, dtype=np.uint8).reshape((height, width, bytes_per_pixel))

    return GimpPattern(name, width, height, bytes_per_pixel, pixels)


def pack_pattern_blob(data: bytes, level: int = -1) -> str:
    """
    Compresses data with ``qCompress``-compatible framing and returns it base-64 encoded.
    """
    compressed = struct.pack('>I', len(data)) + zlib.compress(data, level)

    return base64.b64encode(compressed).decode('ascii')


def unpack_pattern_blob(blob: str) -> bytes:
    try:
        compressed = base64.b64decode(blob.encode('ascii'), validate=True)
    except (binascii.Error, UnicodeEncodeError) as e:
        raise ASLParseError("Pattern data is not valid base-64") from e

    if len(compressed) < 4:
        raise ASLParseError("Pattern data is too short")

    expected_length = struct.unpack_from('>I', compressed)[0]

    try:
        data = zlib.decompress(compressed[4:])
    except zlib.error as e:
        raise ASLParseError("Pattern data could not be decompressed") from e

    if len(data) != expected_length:
        raise ASLParseError(f"Pattern data should be {expected_length} bytes long, but is {len(data)}")

    return data


def decode_pattern_blob(blob: str) -> GimpPattern:
    """
    Decodes the content of an `ASLPatternBlob` node back into a `GimpPattern`.
    """
    return decode_gimp_pattern(unpack_pattern_blob(blob))
