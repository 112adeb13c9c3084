import unittest

from atmfjstc.lib.asl_reader.nodes import canonical_int, canonical_double, canonical_bool, ASLDocument, ASLList, \
    ASLDescriptor, ASLInteger, ASLBoolean


class CanonicalFormsTest(unittest.TestCase):
    def test_int(self):
        self.assertEqual(canonical_int(0), '0')
        self.assertEqual(canonical_int(4294967295), '4294967295')

    def test_double(self):
        cases = [(0.5, '0.5'), (100.0, '100.0'), (0.1, '0.1'), (1e-05, '1e-05'), (-2.25, '-2.25'), (1e16, '1e+16')]

        for value, text in cases:
            with self.subTest(value=value):
                self.assertEqual(canonical_double(value), text)
                self.assertEqual(float(canonical_double(value)), value)

    def test_bool(self):
        self.assertEqual([canonical_bool(v) for v in (0, 1, 255)], ['0', '1', '1'])


class DocumentTest(unittest.TestCase):
    def test_patterns_absent(self):
        doc = ASLDocument((ASLDescriptor('', class_id='null'),))

        self.assertFalse(doc.has_patterns_section)
        self.assertEqual(doc.patterns, ASLList('Patterns'))
        self.assertEqual(len(doc.styles), 1)

    def test_patterns_present(self):
        patterns = ASLList('Patterns', items=(ASLDescriptor('', class_id='KisPattern'),))
        doc = ASLDocument((patterns, ASLDescriptor('', class_id='null')))

        self.assertTrue(doc.has_patterns_section)
        self.assertIs(doc.patterns, patterns)
        self.assertEqual(len(doc.styles), 1)

    def test_scalar_accessors(self):
        self.assertEqual(ASLInteger('x', '17').as_int(), 17)
        self.assertFalse(ASLBoolean('x', '0').as_bool())


if __name__ == '__main__':
    unittest.main()
