"""
A decoder for ASL files, the binary "layer style" descriptor format used by image editing applications.

The main entry point is `read_asl`, which accepts bytes, a seekable binary file object, or a path::

    result = read_asl('styles.asl')

    if not result.ok:
        print(f"Decoding stopped early: {result.error}")

    for style in result.document.styles:
        print(style.class_id, style.keys())

The decoded data is a tree of immutable nodes (see the `nodes` module). Descriptors, lists and scalar values map to
their own node types, and patterns embedded in the file are converted into `KisPattern` descriptors holding their
image in a compressed GIMP pattern blob (see `pattern_file.decode_pattern_blob`). The tree can be rendered as XML with
`xml_export.asl_to_xml`.

Decoding never raises for malformed data. Instead, the result carries the parse error that stopped decoding, along
with warnings for recoverable problems (e.g. corrupt patterns, which are skipped).
"""

from os import PathLike
from io import IOBase
from typing import Union, AnyStr, BinaryIO, Optional

from atmfjstc.lib.asl_reader.ByteCursor import ByteCursor
from atmfjstc.lib.asl_reader.decoder import ASLDecodeResult, decode_asl_stream
from atmfjstc.lib.asl_reader.options import ASLDecoderOptions


__version__ = '1.0.0'


def read_asl(
    source: Union[bytes, BinaryIO, PathLike, AnyStr], options: Optional[ASLDecoderOptions] = None
) -> ASLDecodeResult:
    """
    Decodes an ASL file.

    Args:
        source: The data, as a `bytes` object, a seekable binary file object (read from its current position), or the
            path of a file (which will be opened and closed automatically).
        options: An `ASLDecoderOptions` object to adjust decoder behavior. Defaults are used if None.

    Returns:
        An `ASLDecodeResult` with the decoded tree, the error that stopped decoding (if any) and any warnings.

    Raises:
        ASLUnusableStreamError: If the file object is not a seekable binary stream.
        OSError: If the file cannot be opened or read.
    """

    if isinstance(source, (bytes, bytearray, memoryview, IOBase)):
        return decode_asl_stream(ByteCursor(source), options)

    with open(source, 'rb') as f:
        return decode_asl_stream(ByteCursor(f), options)
