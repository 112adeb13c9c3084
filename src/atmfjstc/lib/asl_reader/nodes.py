"""
The semantic tree produced by decoding an ASL stream.

All nodes are inert, immutable data containers. Composite nodes (`ASLDescriptor`, `ASLList`, `ASLDocument`) own their
children in tuples; the tree has no shared or back references.

Numeric values are stored as text, in the canonical form produced by the `canonical_*` functions in this module, so
that the tree can be rendered to a textual interchange format (see `xml_export`) without any loss or ambiguity.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Optional, Iterator


class ASLNodeKind(Enum):
    DESCRIPTOR = 'Descriptor'
    LIST = 'List'
    INTEGER = 'Integer'
    DOUBLE = 'Double'
    TEXT = 'Text'
    BOOLEAN = 'Boolean'
    ENUM = 'Enum'
    UNIT_FLOAT = 'UnitFloat'
    PATTERN_BLOB = 'KisPatternData'


def canonical_int(value: int) -> str:
    return str(int(value))


def canonical_double(value: float) -> str:
    """
    Renders a double as the shortest decimal text that round-trips to the same value (Python's `repr`), e.g. ``'0.5'``,
    ``'100.0'``, ``'1e-05'``, ``'nan'``, ``'inf'``.
    """
    return repr(float(value))


def canonical_bool(value: int) -> str:
    return '1' if value else '0'


@dataclass(frozen=True)
class ASLNode:
    key: str

    @property
    def kind(self) -> ASLNodeKind:
        raise NotImplementedError


@dataclass(frozen=True)
class ASLDescriptor(ASLNode):
    class_id: str
    name: str = ''
    children: Tuple[ASLNode, ...] = ()

    @property
    def kind(self) -> ASLNodeKind:
        return ASLNodeKind.DESCRIPTOR

    def get(self, key: str) -> Optional[ASLNode]:
        """
        Returns the first child with the given key, or None if there is no such child.
        """
        for child in self.children:
            if child.key == key:
                return child

        return None

    def __getitem__(self, key: str) -> ASLNode:
        child = self.get(key)
        if child is None:
            raise KeyError(key)

        return child

    def keys(self) -> Tuple[str, ...]:
        return tuple(child.key for child in self.children)


@dataclass(frozen=True)
class ASLList(ASLNode):
    items: Tuple[ASLNode, ...] = ()

    @property
    def kind(self) -> ASLNodeKind:
        return ASLNodeKind.LIST

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[ASLNode]:
        return iter(self.items)


@dataclass(frozen=True)
class ASLInteger(ASLNode):
    value: str

    @property
    def kind(self) -> ASLNodeKind:
        return ASLNodeKind.INTEGER

    def as_int(self) -> int:
        return int(self.value)


@dataclass(frozen=True)
class ASLDouble(ASLNode):
    value: str

    @property
    def kind(self) -> ASLNodeKind:
        return ASLNodeKind.DOUBLE

    def as_float(self) -> float:
        return float(self.value)


@dataclass(frozen=True)
class ASLBoolean(ASLNode):
    value: str

    @property
    def kind(self) -> ASLNodeKind:
        return ASLNodeKind.BOOLEAN

    def as_bool(self) -> bool:
        return self.value != '0'


@dataclass(frozen=True)
class ASLText(ASLNode):
    value: str

    @property
    def kind(self) -> ASLNodeKind:
        return ASLNodeKind.TEXT


@dataclass(frozen=True)
class ASLEnum(ASLNode):
    type_id: str
    value: str

    @property
    def kind(self) -> ASLNodeKind:
        return ASLNodeKind.ENUM


@dataclass(frozen=True)
class ASLUnitFloat(ASLNode):
    unit: str
    value: str

    @property
    def kind(self) -> ASLNodeKind:
        return ASLNodeKind.UNIT_FLOAT

    def as_float(self) -> float:
        return float(self.value)


@dataclass(frozen=True)
class ASLPatternBlob(ASLNode):
    """
    Opaque pattern payload: a GIMP pattern file, compressed and base-64 encoded. Use
    `pattern_file.decode_pattern_blob` to get at the image.
    """
    data: str

    @property
    def kind(self) -> ASLNodeKind:
        return ASLNodeKind.PATTERN_BLOB


PATTERNS_KEY = 'Patterns'


@dataclass(frozen=True)
class ASLDocument:
    """
    The root of a decoded ASL file.

    Its children are, in order: the pattern collection (an `ASLList` keyed ``'Patterns'``, present only if the file
    has a non-empty pattern section), followed by the unkeyed top-level style descriptors.
    """
    children: Tuple[ASLNode, ...] = ()

    @property
    def has_patterns_section(self) -> bool:
        return any(isinstance(child, ASLList) and child.key == PATTERNS_KEY for child in self.children)

    @property
    def patterns(self) -> ASLList:
        """
        The pattern collection. If the file has no pattern section, this is an empty list that is not part of
        `children`.
        """
        for child in self.children:
            if isinstance(child, ASLList) and child.key == PATTERNS_KEY:
                return child

        return ASLList(PATTERNS_KEY)

    @property
    def styles(self) -> Tuple[ASLDescriptor, ...]:
        return tuple(child for child in self.children if isinstance(child, ASLDescriptor))
