#!/usr/bin/env python3

''' Unit tests for isotrace.escape.
'''

from html import unescape
import sys
import unittest

from cs.logutils import setup_logging

from .escape import (
    data_uri,
    fixed_16_16,
    fixed_8_8,
    fmt_4cc_list,
    fmt_hex,
    format_duration,
    format_srt_duration,
    format_uuid,
    fourcc,
    hex_data,
    hex_dump,
    xml_escape_text,
)

class TestEscape(unittest.TestCase):
  ''' Test the escaping and formatting functions.
  '''

  def test_hex_dump(self):
    self.assertEqual(hex_dump(b''), '')
    self.assertEqual(hex_dump(b'\x00\x0a\xff'), '000AFF')
    self.assertEqual(hex_data(b'\x12\x34'), '0x1234')

  def test_data_uri(self):
    self.assertEqual(data_uri(b'AB'), 'data:application/octet-string,4142')
    self.assertEqual(data_uri(b''), 'data:application/octet-string,')

  def test_xml_escape_text(self):
    self.assertEqual(
        xml_escape_text('<a href="x">\'&\'</a>'),
        '&lt;a href=&quot;x&quot;&gt;&apos;&amp;&apos;&lt;/a&gt;',
    )
    self.assertEqual(xml_escape_text(b'a<\xe9'), b'a&lt;\xe9')

  def test_xml_escape_text_idempotent_on_plain_text(self):
    for text in '', 'plain text', 'caf\xe9 \u2603', 'tab\tnewline\n':
      with self.subTest(text=text):
        self.assertEqual(xml_escape_text(text), text)
        self.assertEqual(xml_escape_text(xml_escape_text(text)), text)

  def test_xml_escape_text_round_trip(self):
    for text in '<>&"\'', 'a && b', '&amp; already', '\'"<tag attr="1"/>"\'':
      with self.subTest(text=text):
        self.assertEqual(unescape(xml_escape_text(text)), text)

  def test_xml_escape_text_bytes_round_trip(self):
    for bs in (
        bytes(range(256)),
        b'\xff\xfe<&>',
        b'\xc3(&amp;\x80"\'',
        b'caf\xc3\xa9 &lt;',
    ):
      with self.subTest(bs=bs):
        escaped = xml_escape_text(bs)
        self.assertIsInstance(escaped, bytes)
        for c in b'<>"\'':
          self.assertNotIn(c, escaped)
        self.assertEqual(
            unescape(escaped.decode('iso8859-1')).encode('iso8859-1'), bs
        )

  def test_format_duration(self):
    for timescale in 1, 1000, 90000:
      with self.subTest(timescale=timescale):
        self.assertEqual(format_duration(0, timescale), '00:00:00.000')
        self.assertEqual(format_duration(timescale, timescale), '00:00:01.000')
    self.assertEqual(format_duration(3723004, 1000), '01:02:03.004')
    self.assertEqual(format_srt_duration(2500, 1000), '00:00:02,500')

  def test_format_uuid(self):
    self.assertEqual(
        format_uuid(bytes(range(16))),
        '{00010203-04050607-08090A0B-0C0D0E0F}',
    )

  def test_fourcc(self):
    self.assertEqual(fourcc(b'moov'), 'moov')
    self.assertEqual(fourcc(0x6d6f6f76), 'moov')
    self.assertEqual(fourcc(b'\xa9nam'), '\xa9nam')
    self.assertEqual(fourcc(None), '')
    self.assertEqual(fmt_4cc_list([b'isom', 'avc1']), 'isom avc1')

  def test_fixed_point(self):
    self.assertEqual(fixed_16_16(0x00010000), 1.0)
    self.assertEqual(fixed_8_8(0x0180), 1.5)
    self.assertIsNone(fixed_16_16(None))

  def test_fmt_hex(self):
    self.assertEqual(fmt_hex(255), '0xFF')
    self.assertEqual(fmt_hex(1, 8), '0x00000001')
    self.assertEqual(fmt_hex(None), '')

def selftest(argv, **kw):
  ''' Run the unit tests.
  '''
  setup_logging(__file__)
  sys.argv = argv
  unittest.main(__name__, defaultTest=None, argv=argv, failfast=True, **kw)

if __name__ == '__main__':
  selftest(sys.argv)
