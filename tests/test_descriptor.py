import unittest

from atmfjstc.lib.asl_reader.ByteCursor import ByteCursor
from atmfjstc.lib.asl_reader.descriptor import DescriptorTreeBuilder
from atmfjstc.lib.asl_reader.errors import ASLUnsupportedVariantError, ASLNestingTooDeepError, ASLTruncatedInputError
from atmfjstc.lib.asl_reader.nodes import ASLNodeKind, ASLDescriptor, ASLList, ASLDouble, ASLUnitFloat, ASLText, \
    ASLEnum, ASLInteger, ASLBoolean
from atmfjstc.lib.asl_reader.options import ASLDecoderOptions, UnsupportedValuePolicy

from asl_builder import descriptor, child, objc, vlls, doub, untf, text, enum, long, bool_, fourcc, var_string, u32, \
    unicode_string


def _read(data: bytes, options: ASLDecoderOptions = ASLDecoderOptions(), warnings: list = None) -> ASLDescriptor:
    cursor = ByteCursor(data)
    result = DescriptorTreeBuilder(cursor, options, warnings).read_descriptor()

    assert cursor.bytes_remaining() == 0, "Descriptor was not fully consumed"

    return result


def _read_single(value: bytes) -> object:
    return _read(descriptor(children=[child('Vl  ', value)]))['Vl  ']


class ScalarValuesTest(unittest.TestCase):
    def test_double(self):
        self.assertEqual(_read_single(doub(0.5)), ASLDouble('Vl  ', '0.5'))

    def test_double_integral(self):
        self.assertEqual(_read_single(doub(100.0)).value, '100.0')

    def test_double_shortest_round_trip(self):
        node = _read_single(doub(0.1))

        self.assertEqual(node.value, '0.1')
        self.assertEqual(node.as_float(), 0.1)

    def test_unit_float(self):
        node = _read_single(untf('#Prc', 75.0))

        self.assertEqual(node, ASLUnitFloat('Vl  ', unit='#Prc', value='75.0'))
        self.assertEqual(node.kind, ASLNodeKind.UNIT_FLOAT)

    def test_text(self):
        self.assertEqual(_read_single(text('Drop Shadow')), ASLText('Vl  ', 'Drop Shadow'))

    def test_enum(self):
        self.assertEqual(_read_single(enum('BlnM', 'Mltp')), ASLEnum('Vl  ', type_id='BlnM', value='Mltp'))

    def test_enum_long_identifiers(self):
        node = _read_single(b'enum' + var_string('FrFl') + var_string('linearDodge'))

        self.assertEqual(node.value, 'linearDodge')

    def test_integer(self):
        self.assertEqual(_read_single(long(42)), ASLInteger('Vl  ', '42'))

    def test_integer_is_unsigned(self):
        self.assertEqual(_read_single(long(0xFFFFFFFF)).as_int(), 4294967295)

    def test_boolean(self):
        self.assertEqual(_read_single(bool_(1)), ASLBoolean('Vl  ', '1'))
        self.assertEqual(_read_single(bool_(0)).value, '0')

    def test_boolean_canonicalized(self):
        node = _read_single(bool_(7))

        self.assertEqual(node.value, '1')
        self.assertTrue(node.as_bool())


class CompositeValuesTest(unittest.TestCase):
    def test_empty_descriptor(self):
        self.assertEqual(_read(descriptor()), ASLDescriptor('', class_id='null', name='', children=()))

    def test_descriptor_attributes(self):
        node = _read(descriptor(name='Style 1', class_id=var_string('Styl'), children=[child('Nm  ', text('x'))]))

        self.assertEqual(node.name, 'Style 1')
        self.assertEqual(node.class_id, 'Styl')
        self.assertEqual(node.keys(), ('Nm  ',))
        self.assertEqual(node.kind, ASLNodeKind.DESCRIPTOR)

    def test_nested_descriptor(self):
        node = _read(descriptor(children=[
            child('Lefx', objc(descriptor(class_id=fourcc('Lefx'), children=[
                child('Scl ', untf('#Prc', 100.0)),
                child('DrSh', objc(descriptor(class_id=fourcc('DrSh'), children=[
                    child('enab', bool_(1)),
                    child('Md  ', enum('BlnM', 'Mltp')),
                ]))),
            ]))),
        ]))

        effects = node['Lefx']
        self.assertIsInstance(effects, ASLDescriptor)
        self.assertEqual(effects.class_id, 'Lefx')
        self.assertEqual(effects['Scl '].value, '100.0')
        self.assertEqual(effects['DrSh']['enab'].value, '1')
        self.assertEqual(effects['DrSh']['Md  '].value, 'Mltp')

    def test_global_object_is_descriptor(self):
        node = _read_single(b'GlbO' + descriptor(class_id=fourcc('Grdn')))

        self.assertIsInstance(node, ASLDescriptor)
        self.assertEqual(node.class_id, 'Grdn')

    def test_list(self):
        node = _read_single(vlls([long(1), doub(2.5), text('three'), objc(descriptor(class_id=fourcc('Clr ')))]))

        self.assertIsInstance(node, ASLList)
        self.assertEqual(len(node), 4)
        self.assertEqual([item.key for item in node], ['', '', '', ''])
        self.assertEqual(node.items[0].value, '1')
        self.assertEqual(node.items[1].value, '2.5')
        self.assertEqual(node.items[2].value, 'three')
        self.assertEqual(node.items[3].class_id, 'Clr ')

    def test_empty_list(self):
        self.assertEqual(_read_single(vlls([])), ASLList('Vl  ', items=()))

    def test_order_preserved(self):
        keys = ['Md  ', 'Opct', 'Clr ', 'lagl']
        node = _read(descriptor(children=[child(key, long(i)) for i, key in enumerate(keys)]))

        self.assertEqual(node.keys(), tuple(keys))

    def test_lookup(self):
        node = _read(descriptor(children=[child('Opct', long(1))]))

        self.assertIsNone(node.get('Nope'))
        with self.assertRaises(KeyError):
            node['Nope']

    def test_truncated_children(self):
        data = unicode_string('') + fourcc('null') + u32(3) + child('Opct', long(1))

        with self.assertRaises(ASLTruncatedInputError):
            DescriptorTreeBuilder(ByteCursor(data)).read_descriptor()


class UnsupportedValuesTest(unittest.TestCase):
    def test_unsupported_tags_fail(self):
        for tag in [b'obj ', b'type', b'GlbC', b'alis', b'tdta']:
            with self.subTest(tag=tag):
                with self.assertRaises(ASLUnsupportedVariantError):
                    _read_single(tag + u32(0))

    def test_unknown_tag_fails(self):
        with self.assertRaises(ASLUnsupportedVariantError) as cm:
            _read_single(b'zzzz' + u32(0))

        self.assertIn('zzzz', str(cm.exception))

    def test_skip_raw_data(self):
        warnings = []
        options = ASLDecoderOptions(unsupported_values=UnsupportedValuePolicy.SKIP)

        node = _read(descriptor(children=[
            child('Raw ', b'tdta' + u32(3) + b'xyz'),
            child('Opct', long(5)),
        ]), options, warnings)

        self.assertEqual(node.keys(), ('Opct',))
        self.assertEqual(len(warnings), 1)
        self.assertIn('tdta', warnings[0])

    def test_skip_class_reference_in_list(self):
        warnings = []
        options = ASLDecoderOptions(unsupported_values=UnsupportedValuePolicy.SKIP)

        node = _read(descriptor(children=[
            child('List', vlls([b'type' + unicode_string('Color') + fourcc('RGBC'), long(9)])),
        ]), options, warnings)

        self.assertEqual(len(node['List']), 1)
        self.assertEqual(node['List'].items[0].value, '9')
        self.assertEqual(len(warnings), 1)

    def test_reference_is_never_skipped(self):
        options = ASLDecoderOptions(unsupported_values=UnsupportedValuePolicy.SKIP)

        with self.assertRaises(ASLUnsupportedVariantError):
            _read(descriptor(children=[child('Ref ', b'obj ' + u32(0))]), options)


class NestingTest(unittest.TestCase):
    @staticmethod
    def _nested(depth: int) -> bytes:
        data = descriptor()
        for _ in range(depth - 1):
            data = descriptor(children=[child('Nest', objc(data))])

        return data

    def test_within_limit(self):
        node = _read(self._nested(5), ASLDecoderOptions(max_nesting_depth=5))

        for _ in range(4):
            node = node['Nest']

        self.assertEqual(node.children, ())

    def test_too_deep(self):
        with self.assertRaises(ASLNestingTooDeepError) as cm:
            DescriptorTreeBuilder(ByteCursor(self._nested(6)), ASLDecoderOptions(max_nesting_depth=5)).read_descriptor()

        self.assertEqual(cm.exception.max_depth, 5)

    def test_lists_count_towards_depth(self):
        data = descriptor(children=[child('List', vlls([vlls([vlls([])])]))])

        with self.assertRaises(ASLNestingTooDeepError):
            DescriptorTreeBuilder(ByteCursor(data), ASLDecoderOptions(max_nesting_depth=3)).read_descriptor()

    def test_pathological_depth_with_defaults(self):
        with self.assertRaises(ASLNestingTooDeepError):
            DescriptorTreeBuilder(ByteCursor(self._nested(500))).read_descriptor()


if __name__ == '__main__':
    unittest.main()
