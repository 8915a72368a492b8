#!/usr/bin/env python3

''' Unit tests for isotrace.registry.
'''

import sys
import unittest

from cs.logutils import setup_logging

from .boxes import UnregisteredBoxTypeError
from .registry import (
    APPLE_TAG_TYPES,
    BOX_REGISTRY,
    TRACK_REFERENCE_TYPES,
    is_registered,
    lookup,
    rows_for,
)

class TestRegistry(unittest.TestCase):
  ''' Test the box type registry.
  '''

  def test_rows_are_well_formed(self):
    for row in BOX_REGISTRY:
      with self.subTest(row=row):
        self.assertEqual(len(row.box_type), 4)
        self.assertTrue(callable(row.renderer))
        self.assertIn(row.max_version, (0, 1, 2))

  def test_lookup_first_row(self):
    row = lookup('moov')
    self.assertEqual(row.box_type, 'moov')
    self.assertIs(row, rows_for('moov')[0])
    self.assertEqual(lookup('REFT').alt_type, TRACK_REFERENCE_TYPES[0])

  def test_lookup_unregistered(self):
    with self.assertRaises(UnregisteredBoxTypeError) as cm:
      lookup('zzzz')
    self.assertEqual(cm.exception.box_type, 'zzzz')
    self.assertIsInstance(cm.exception, LookupError)
    self.assertFalse(is_registered('zzzz'))

  def test_lookup_bad_code(self):
    for box_type in 'moo', '', 'moovv':
      with self.subTest(box_type=box_type):
        with self.assertRaises(UnregisteredBoxTypeError):
          lookup(box_type)
        self.assertFalse(is_registered(box_type))

  def test_track_references(self):
    rows = rows_for('REFT')
    self.assertEqual(len(rows), 17)
    self.assertEqual([row.alt_type for row in rows], list(TRACK_REFERENCE_TYPES))
    self.assertEqual(
        [row.alt_type for row in rows_for('REFI')], ['tbas', 'iloc']
    )

  def test_sample_group_rows(self):
    row = lookup('sgpd')
    self.assertIsNone(row.alt_type)
    self.assertEqual(row.max_version, 2)
    kinds = [row.alt_type for row in rows_for('sgpd')[1:]]
    self.assertEqual(kinds, ['roll', 'seig', 'oinf', 'linf', 'trif', 'nalm'])

  def test_auxiliary_info_rows(self):
    self.assertEqual([row.flags for row in rows_for('saiz')], [0, 1])
    self.assertEqual([row.flags for row in rows_for('saio')], [0, 1])

  def test_apple_tags(self):
    for tag in APPLE_TAG_TYPES:
      with self.subTest(tag=tag):
        self.assertTrue(is_registered(tag))
    self.assertTrue(is_registered('\xa9nam'))

  def test_infe_rows(self):
    rows = rows_for('infe')
    self.assertEqual([row.max_version for row in rows], [1, 2])
    self.assertIs(lookup('infe'), rows[0])

def selftest(argv, **kw):
  ''' Run the unit tests.
  '''
  setup_logging(__file__)
  sys.argv = argv
  unittest.main(__name__, defaultTest=None, argv=argv, failfast=True, **kw)

if __name__ == '__main__':
  selftest(sys.argv)
