#!/usr/bin/env python3

''' Unit tests for isotrace.boxes.
'''

import sys
import unittest

from cs.logutils import setup_logging

from .boxes import Box, FullBox, new_box

class TestBox(unittest.TestCase):
  ''' Test the `Box` node.
  '''

  def test_unset_fields(self):
    box = Box('mvhd', 108, timescale=1000)
    self.assertEqual(box.timescale, 1000)
    self.assertIsNone(box.duration)
    self.assertEqual(box.boxes, [])
    self.assertEqual(box.other_boxes, [])

  def test_type_conversion(self):
    self.assertEqual(Box(b'moov').box_type, 'moov')
    self.assertEqual(Box(0x7472616b).box_type, 'trak')

  def test_virtual_attributes(self):
    tkhd = Box('tkhd', 92)
    mdia = Box('mdia', 200)
    udta1 = Box('udta', 8)
    udta2 = Box('udta', 8)
    trak = Box('trak', 316, boxes=[tkhd, mdia, udta1, udta2])
    self.assertIs(trak.TKHD, tkhd)
    self.assertIs(trak.MDIA0, mdia)
    self.assertIsNone(trak.EDTS0)
    self.assertEqual(trak.UDTAs, [udta1, udta2])
    self.assertEqual(trak.EDTSs, [])
    self.assertEqual(trak.children_of_type('udta'), [udta1, udta2])
    with self.assertRaises(ValueError):
      trak.UDTA0
    self.assertEqual(list(trak), [tkhd, mdia, udta1, udta2])

  def test_url_space_type(self):
    url = Box('url ', 12)
    dref = Box('dref', 28, boxes=[url])
    self.assertIs(dref.URL_0, url)

  def test_placeholder(self):
    self.assertTrue(Box('moov').is_placeholder)
    self.assertFalse(Box('moov', 8).is_placeholder)

  def test_private_attributes(self):
    with self.assertRaises(AttributeError):
      Box('moov')._missing

class TestNewBox(unittest.TestCase):
  ''' Test the `new_box` factory.
  '''

  def test_full_box(self):
    box = new_box('mvhd', version=1, flags=3)
    self.assertIsInstance(box, FullBox)
    self.assertEqual(box.version, 1)
    self.assertEqual(box.flags, 3)

  def test_plain_box(self):
    box = new_box(b'moov')
    self.assertNotIsInstance(box, FullBox)
    self.assertEqual(box.box_type, 'moov')
    self.assertEqual(box.size, 0)

  def test_full_box_defaults(self):
    box = new_box('tkhd', 92)
    self.assertEqual((box.version, box.flags), (0, 0))

def selftest(argv, **kw):
  ''' Run the unit tests.
  '''
  setup_logging(__file__)
  sys.argv = argv
  unittest.main(__name__, defaultTest=None, argv=argv, failfast=True, **kw)

if __name__ == '__main__':
  selftest(sys.argv)
