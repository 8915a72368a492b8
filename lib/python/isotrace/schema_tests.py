#!/usr/bin/env python3

''' Unit tests for isotrace.schema.
'''

from io import StringIO
import sys
import unittest

from cs.logutils import setup_logging

from .boxes import FullBox
from .registry import BOX_REGISTRY, TRACK_REFERENCE_TYPES
from .schema import SCHEMA_NAME, dump_schema, dump_supported_box, supported_boxes

class TestSchema(unittest.TestCase):
  ''' Test the schema enumerator.
  '''

  def test_placeholders(self):
    rows_boxes = list(supported_boxes())
    self.assertEqual(len(rows_boxes), len(BOX_REGISTRY))
    for row, box in rows_boxes:
      with self.subTest(row=row):
        self.assertEqual(box.box_type, row.box_type)
        self.assertEqual(box.size, 0)
        if row.max_version or row.flags:
          self.assertIsInstance(box, FullBox)
          self.assertEqual(box.version, row.max_version)
          self.assertEqual(box.flags, row.flags)

  def test_dump_schema(self):
    f = StringIO()
    count = dump_schema(f)
    self.assertEqual(count, len(BOX_REGISTRY))
    text = f.getvalue()
    self.assertIn(f'Name="{SCHEMA_NAME}"', text)
    self.assertNotIn('not registered', text)
    self.assertNotIn('NULL Box', text)
    self.assertTrue(text.endswith('</IsoMediaFile>\n'))
    # the track reference kinds come first, in registry order
    offsets = [
        text.index(f'<TrackReferenceTypeBox Size="0" Type="{ref}"')
        for ref in TRACK_REFERENCE_TYPES
    ]
    self.assertEqual(offsets, sorted(offsets))
    self.assertLess(text.index('<MovieBox '), text.index('<MovieHeaderBox '))
    # the item information entry appears at versions 1 and 2
    self.assertLess(
        text.index(
            '<ItemInfoEntryBox Size="0" Type="infe" Version="1" Flags="0x0"'
        ),
        text.index(
            '<ItemInfoEntryBox Size="0" Type="infe" Version="2" Flags="0x0"'
        ),
    )

  def test_dump_schema_name(self):
    f = StringIO()
    dump_schema(f, name='boxes')
    self.assertIn('Name="boxes"', f.getvalue())

  def test_dump_supported_box(self):
    f = StringIO()
    dump_supported_box(0, f)
    self.assertEqual(
        f.getvalue(), '<UnknownBox Size="0" Type="UNKN">\n</UnknownBox>\n'
    )
    for index in -1, len(BOX_REGISTRY):
      with self.subTest(index=index):
        with self.assertRaises(IndexError):
          dump_supported_box(index, StringIO())

  def test_rows_match_document(self):
    whole = StringIO()
    dump_schema(whole)
    parts = StringIO()
    for index in range(len(BOX_REGISTRY)):
      dump_supported_box(index, parts)
    self.assertIn(parts.getvalue(), whole.getvalue())

def selftest(argv, **kw):
  ''' Run the unit tests.
  '''
  setup_logging(__file__)
  sys.argv = argv
  unittest.main(__name__, defaultTest=None, argv=argv, failfast=True, **kw)

if __name__ == '__main__':
  selftest(sys.argv)
