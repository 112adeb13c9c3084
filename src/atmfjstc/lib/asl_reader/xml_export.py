"""
Renders a decoded ASL tree as XML.

The output follows the layout used by layer style editors for their interchange format::

    <asl>
      <node type="List" key="Patterns">
        <node type="Descriptor" classId="KisPattern" name="">
          <node type="Text" key="Nm  " value="..."/>
          ...
        </node>
      </node>
      <node type="Descriptor" classId="null" name="">
        <node type="UnitFloat" key="Opct" unit="#Prc" value="100.0"/>
        ...
      </node>
    </asl>

Characters that XML 1.0 cannot represent at all (most C0 control characters) are replaced with U+FFFD.
"""

import re
import xml.etree.ElementTree as ET

from atmfjstc.lib.asl_reader.nodes import ASLDocument, ASLNode, ASLDescriptor, ASLList, ASLInteger, ASLDouble, \
    ASLBoolean, ASLText, ASLEnum, ASLUnitFloat, ASLPatternBlob


# Characters that cannot appear in an XML 1.0 document, not even escaped
_XML_ILLEGAL_CHARS_RE = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")


def asl_to_xml(document: ASLDocument) -> ET.Element:
    root = ET.Element('asl')

    for child in document.children:
        _append_node(root, child)

    return root


def asl_to_xml_string(document: ASLDocument) -> str:
    return ET.tostring(asl_to_xml(document), encoding='unicode')


def _append_node(parent: ET.Element, node: ASLNode) -> ET.Element:
    el = ET.SubElement(parent, 'node')

    if node.key != '':
        _set(el, 'key', node.key)
    el.set('type', node.kind.value)

    if isinstance(node, ASLDescriptor):
        _set(el, 'classId', node.class_id)
        _set(el, 'name', node.name)
        for child in node.children:
            _append_node(el, child)
    elif isinstance(node, ASLList):
        for item in node.items:
            _append_node(el, item)
    elif isinstance(node, (ASLInteger, ASLDouble, ASLBoolean, ASLText)):
        _set(el, 'value', node.value)
    elif isinstance(node, ASLEnum):
        _set(el, 'typeId', node.type_id)
        _set(el, 'value', node.value)
    elif isinstance(node, ASLUnitFloat):
        _set(el, 'unit', node.unit)
        _set(el, 'value', node.value)
    elif isinstance(node, ASLPatternBlob):
        el.text = node.data
    else:
        raise TypeError(f"Don't know how to render node of type {node.__class__.__name__}")

    return el


def _set(el: ET.Element, name: str, value: str):
    el.set(name, _XML_ILLEGAL_CHARS_RE.sub('\ufffd', value))
