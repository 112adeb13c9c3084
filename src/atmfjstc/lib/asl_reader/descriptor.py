"""
Recursive-descent parser for ASL descriptors.

A descriptor is a named, ordered collection of keyed values. Each value is introduced by a 4-character type tag
(its "OSType") that determines how the payload that follows is to be read. Values may themselves be descriptors or
lists, to any depth.
"""

import logging

from typing import List, Optional, Callable, Dict, ContextManager
from contextlib import contextmanager

from atmfjstc.lib.asl_reader.ByteCursor import ByteCursor
from atmfjstc.lib.asl_reader.errors import ASLUnsupportedVariantError, ASLNestingTooDeepError
from atmfjstc.lib.asl_reader.nodes import ASLNode, ASLDescriptor, ASLList, ASLDouble, ASLUnitFloat, ASLText, \
    ASLEnum, ASLInteger, ASLBoolean, canonical_double, canonical_int, canonical_bool
from atmfjstc.lib.asl_reader.options import ASLDecoderOptions, UnsupportedValuePolicy, DEFAULT_OPTIONS


LOG = logging.getLogger(__name__)


class DescriptorTreeBuilder:
    """
    Builds `ASLNode` trees from the descriptor data at the current position of a cursor.

    Parse failures are raised as `ASLParseError` subclasses. The builder does not attempt to recover from them, as a
    malformed descriptor has no well-defined point at which parsing could resume.
    """

    _cursor: ByteCursor
    _options: ASLDecoderOptions
    _mut_warnings: List[str]
    _depth: int = 0

    def __init__(
        self, cursor: ByteCursor, options: ASLDecoderOptions = DEFAULT_OPTIONS,
        mut_warnings: Optional[List[str]] = None
    ):
        self._cursor = cursor
        self._options = options
        self._mut_warnings = mut_warnings if mut_warnings is not None else []

    def read_descriptor(self, key: str = '') -> ASLDescriptor:
        """
        Reads a descriptor: unicode name, class ID, child count, and then that many keyed child values.
        """

        with self._nested():
            name = self._cursor.read_unicode_string('descriptor name')
            class_id = self._cursor.read_var_string('descriptor class ID')
            n_children = self._cursor.read_u32('descriptor child count')

            children = []
            for _ in range(n_children):
                child = self.read_child()
                if child is not None:
                    children.append(child)

        return ASLDescriptor(key, class_id=class_id, name=name, children=tuple(children))

    def read_child(self, skip_key: bool = False) -> Optional[ASLNode]:
        """
        Reads a single value, optionally preceded by its key.

        Returns:
            The value node, or None if the value was of an unsupported type and was skipped as per the
            `unsupported_values` policy.
        """

        key = '' if skip_key else self._cursor.read_var_string('value key')

        position = self._cursor.tell()
        tag = self._cursor.read_fixed_string(4, 'value type tag')

        reader = _VALUE_READERS.get(tag)
        if reader is not None:
            return reader(self, key)

        if tag in _SKIPPABLE_VALUE_READERS and self._options.unsupported_values == UnsupportedValuePolicy.SKIP:
            _SKIPPABLE_VALUE_READERS[tag](self._cursor)

            message = f"Skipped unsupported value of type {tag!r} (key {key!r}) at position {position}"
            LOG.warning(message)
            self._mut_warnings.append(message)

            return None

        if tag in _UNSUPPORTED_TAGS:
            raise ASLUnsupportedVariantError(
                f"At position {position}, found value of type {tag!r} (key {key!r}), which is not supported"
            )

        raise ASLUnsupportedVariantError(f"At position {position}, found unknown value type tag {tag!r} (key {key!r})")

    def _read_descriptor_value(self, key: str) -> ASLDescriptor:
        return self.read_descriptor(key)

    def _read_list(self, key: str) -> ASLList:
        with self._nested():
            n_items = self._cursor.read_u32('list item count')

            items = []
            for _ in range(n_items):
                item = self.read_child(skip_key=True)
                if item is not None:
                    items.append(item)

        return ASLList(key, items=tuple(items))

    def _read_double(self, key: str) -> ASLDouble:
        return ASLDouble(key, canonical_double(self._cursor.read_f64('double value')))

    def _read_unit_float(self, key: str) -> ASLUnitFloat:
        unit = self._cursor.read_fixed_string(4, 'unit')
        value = canonical_double(self._cursor.read_f64('unit float value'))

        return ASLUnitFloat(key, unit=unit, value=value)

    def _read_text(self, key: str) -> ASLText:
        return ASLText(key, self._cursor.read_unicode_string('text value'))

    def _read_enum(self, key: str) -> ASLEnum:
        type_id = self._cursor.read_var_string('enum type ID')
        value = self._cursor.read_var_string('enum value')

        return ASLEnum(key, type_id=type_id, value=value)

    def _read_integer(self, key: str) -> ASLInteger:
        return ASLInteger(key, canonical_int(self._cursor.read_u32('integer value')))

    def _read_boolean(self, key: str) -> ASLBoolean:
        return ASLBoolean(key, canonical_bool(self._cursor.read_u8('boolean value')))

    @contextmanager
    def _nested(self) -> ContextManager[None]:
        if self._depth >= self._options.max_nesting_depth:
            raise ASLNestingTooDeepError(self._options.max_nesting_depth)

        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1


def _skip_raw_data(cursor: ByteCursor):
    cursor.skip_bytes(cursor.read_u32('raw data length'), 'raw data')


def _skip_class_reference(cursor: ByteCursor):
    cursor.read_unicode_string('class name')
    cursor.read_var_string('class ID')


_VALUE_READERS: Dict[str, Callable[[DescriptorTreeBuilder, str], ASLNode]] = {
    'Objc': DescriptorTreeBuilder._read_descriptor_value,
    'GlbO': DescriptorTreeBuilder._read_descriptor_value,
    'VlLs': DescriptorTreeBuilder._read_list,
    'doub': DescriptorTreeBuilder._read_double,
    'UntF': DescriptorTreeBuilder._read_unit_float,
    'TEXT': DescriptorTreeBuilder._read_text,
    'enum': DescriptorTreeBuilder._read_enum,
    'long': DescriptorTreeBuilder._read_integer,
    'bool': DescriptorTreeBuilder._read_boolean,
}

_SKIPPABLE_VALUE_READERS: Dict[str, Callable[[ByteCursor], None]] = {
    'tdta': _skip_raw_data,
    'alis': _skip_raw_data,
    'type': _skip_class_reference,
    'GlbC': _skip_class_reference,
}

_UNSUPPORTED_TAGS = frozenset(['obj ', *_SKIPPABLE_VALUE_READERS.keys()])
