#!/usr/bin/env python3

''' Unit tests for isotrace.textsample.
'''

from struct import pack
import sys
import unittest

from cs.logutils import setup_logging

from .boxes import TextSampleDecodeError
from .textsample import TextSample, rgba_to_argb

def modifier(box_type: bytes, body: bytes) -> bytes:
  ''' Return a text modifier box with `body`.
  '''
  return pack('>L4s', 8 + len(body), box_type) + body

def text_sample_bytes(text: bytes, *boxes) -> bytes:
  return pack('>H', len(text)) + text + b''.join(boxes)

class TestTextSample(unittest.TestCase):
  ''' Test decoding of timed text samples.
  '''

  def test_empty(self):
    sample = TextSample.from_bytes(b'\x00\x00')
    self.assertEqual(sample.text, '')
    self.assertEqual(sample.boxes, [])

  def test_plain_utf8(self):
    sample = TextSample.from_bytes(text_sample_bytes('caf\xe9'.encode('utf-8')))
    self.assertEqual(sample.text, 'caf\xe9')

  def test_utf16(self):
    sample = TextSample.from_bytes(
        text_sample_bytes(b'\xfe\xff' + 'Hi'.encode('utf_16_be'))
    )
    self.assertEqual(sample.text, 'Hi')

  def test_style_and_highlight(self):
    data = text_sample_bytes(
        b'Hello',
        modifier(
            b'styl',
            pack('>H', 1) + pack('>HHHBBL', 0, 5, 1, 1, 18, 0xFF000080)
        ),
        modifier(b'hlit', pack('>HH', 1, 3)),
    )
    sample = TextSample.from_bytes(data)
    self.assertEqual(sample.text, 'Hello')
    self.assertEqual([box.box_type for box in sample.boxes], ['styl', 'hlit'])
    style, = sample.styles
    self.assertEqual((style.start_char, style.end_char), (0, 5))
    self.assertEqual(style.font_id, 1)
    self.assertEqual(style.style_flags, 1)
    self.assertEqual(style.font_size, 18)
    self.assertEqual(style.text_color, 0x80FF0000)
    hlit = sample.box_of_type('hlit')
    self.assertEqual((hlit.start_char, hlit.end_char), (1, 3))
    self.assertIsNone(sample.box_of_type('krok'))

  def test_karaoke(self):
    data = text_sample_bytes(
        b'la la',
        modifier(
            b'krok',
            pack('>LH', 100, 2) + pack('>LHH', 500, 0, 2) +
            pack('>LHH', 900, 3, 5)
        ),
    )
    krok = TextSample.from_bytes(data).box_of_type('krok')
    self.assertEqual(krok.highlight_start_time, 100)
    self.assertEqual(
        [
            (r.highlight_end_time, r.start_char, r.end_char)
            for r in krok.records
        ],
        [(500, 0, 2), (900, 3, 5)],
    )

  def test_href(self):
    data = text_sample_bytes(
        b'link',
        modifier(b'href', pack('>HHB', 0, 4, 5) + b'a.com' + pack('>B', 0)),
    )
    href = TextSample.from_bytes(data).box_of_type('href')
    self.assertEqual(href.url, 'a.com')
    self.assertEqual(href.url_hint, '')

  def test_unknown_box(self):
    data = text_sample_bytes(b'x', modifier(b'zzzz', b'\x01\x02'))
    sample = TextSample.from_bytes(data)
    self.assertEqual(sample.boxes, [])
    other, = sample.others
    self.assertEqual(other.box_type, 'zzzz')
    self.assertEqual(other.data, b'\x01\x02')

  def test_truncated(self):
    for data in (
        b'',
        b'\x00',
        b'\x00\x05ab',
        text_sample_bytes(b'x', pack('>L4s', 20, b'styl')),
        text_sample_bytes(b'x', pack('>L4s', 4, b'styl')),
    ):
      with self.subTest(data=data):
        with self.assertRaises(TextSampleDecodeError):
          TextSample.from_bytes(data)

  def test_rgba_to_argb(self):
    self.assertEqual(rgba_to_argb(0x11223344), 0x44112233)

def selftest(argv, **kw):
  ''' Run the unit tests.
  '''
  setup_logging(__file__)
  sys.argv = argv
  unittest.main(__name__, defaultTest=None, argv=argv, failfast=True, **kw)

if __name__ == '__main__':
  selftest(sys.argv)
