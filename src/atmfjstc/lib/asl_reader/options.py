from dataclasses import dataclass
from enum import Enum


# Each level of nesting costs a few stack frames, so this must stay well below the interpreter recursion limit
MAX_NESTING_DEPTH_LIMIT = 200


class UnsupportedValuePolicy(Enum):
    """
    What to do upon encountering a descriptor value whose type tag this decoder does not implement.

    - FAIL: abort parsing of the current stream (or pattern)
    - SKIP: skip over the value and record a warning, if the value's extent can be determined from the data ('tdta',
      'alis', 'type', 'GlbC'). References ('obj ') and unknown tags cannot be skipped and still abort parsing.
    """
    FAIL = 'fail'
    SKIP = 'skip'


@dataclass(frozen=True)
class ASLDecoderOptions:
    """
    Settings that control the behavior of the ASL decoder.

    Attributes:
        max_nesting_depth: The maximum nesting level of descriptors and lists. Deeper data is rejected with
            `ASLNestingTooDeepError`. At most `MAX_NESTING_DEPTH_LIMIT`.
        unsupported_values: The `UnsupportedValuePolicy` for unimplemented value types.
        strict_sections: If True, any length-prefixed section whose content does not exactly account for its declared
            length (within the allowed padding) is treated as a parse error instead of just a warning.
        patterns_section_padding: How many bytes may be left unconsumed at the end of the pattern section without a
            warning.
        pattern_compression_level: The zlib compression level used for embedded pattern data (-1 for the zlib
            default, otherwise 0-9).
    """

    max_nesting_depth: int = 100
    unsupported_values: UnsupportedValuePolicy = UnsupportedValuePolicy.FAIL
    strict_sections: bool = False
    patterns_section_padding: int = 0
    pattern_compression_level: int = -1

    def __post_init__(self):
        if not 1 <= self.max_nesting_depth <= MAX_NESTING_DEPTH_LIMIT:
            raise ValueError(
                f"max_nesting_depth must be between 1 and {MAX_NESTING_DEPTH_LIMIT} (is: {self.max_nesting_depth})"
            )
        if not isinstance(self.unsupported_values, UnsupportedValuePolicy):
            raise ValueError(f"unsupported_values must be an UnsupportedValuePolicy (is: {self.unsupported_values!r})")
        if self.patterns_section_padding < 0:
            raise ValueError(
                f"patterns_section_padding must be non-negative (is: {self.patterns_section_padding})"
            )
        if not -1 <= self.pattern_compression_level <= 9:
            raise ValueError(
                f"pattern_compression_level must be between -1 and 9 (is: {self.pattern_compression_level})"
            )


DEFAULT_OPTIONS = ASLDecoderOptions()
