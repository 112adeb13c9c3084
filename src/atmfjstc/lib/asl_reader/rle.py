"""
PackBits run-length compression, as used for the image planes of patterns embedded in ASL files.

Each run starts with a header byte ``n``:

- ``0 <= n <= 127``: the next ``n + 1`` bytes are copied literally
- ``129 <= n <= 255``: the next byte is repeated ``257 - n`` times
- ``n == 128``: no operation
"""

from atmfjstc.lib.asl_reader.errors import ASLDecompressionMismatchError


def decode_packbits(data: bytes, expected_length: int) -> bytes:
    """
    Decompresses PackBits data.

    Args:
        data: The compressed data.
        expected_length: The exact length the decompressed data must have.

    Returns:
        The decompressed data, exactly `expected_length` bytes long.

    Raises:
        ASLDecompressionMismatchError: If the data does not decompress to exactly `expected_length` bytes. This
            includes the case where the compressed data ends in the middle of a run.
    """

    output = bytearray()
    ptr = 0
    data_len = len(data)

    while ptr < data_len and len(output) < expected_length:
        n = data[ptr]
        ptr += 1

        if n < 128:
            count = n + 1
            if ptr + count > data_len:
                output += data[ptr:]
                raise ASLDecompressionMismatchError(expected_length, len(output))

            output += data[ptr:ptr + count]
            ptr += count
        elif n > 128:
            if ptr >= data_len:
                raise ASLDecompressionMismatchError(expected_length, len(output))

            output += bytes((data[ptr],)) * (257 - n)
            ptr += 1

    if len(output) != expected_length:
        raise ASLDecompressionMismatchError(expected_length, len(output))

    return bytes(output)


def encode_packbits(data: bytes) -> bytes:
    """
    Compresses data using PackBits. Runs of 3 or more identical bytes are encoded as repeats, everything else as
    literals of at most 128 bytes.
    """

    output = bytearray()
    literal = bytearray()
    pos = 0

    def _flush_literal():
        while len(literal) > 0:
            chunk = literal[:128]
            output.append(len(chunk) - 1)
            output.extend(chunk)
            del literal[:128]

    while pos < len(data):
        run_end = pos + 1
        while run_end < len(data) and run_end - pos < 128 and data[run_end] == data[pos]:
            run_end += 1

        run_length = run_end - pos

        if run_length >= 3:
            _flush_literal()
            output.append(257 - run_length)
            output.append(data[pos])
        else:
            literal.extend(data[pos:run_end])

        pos = run_end

    _flush_literal()

    return bytes(output)
