#!/usr/bin/env python3

''' Unit tests for isotrace.subtitles.
'''

from io import StringIO
import os
import os.path
from struct import pack
import sys
from tempfile import TemporaryDirectory
import unittest

from cs.logutils import setup_logging

from .boxes import Box, InvalidTrackParameterError, new_box
from .subtitles import (
    ListSampleSource,
    Sample,
    SampleSource,
    color_name,
    dump_srt,
    dump_svg,
    dump_svg_file,
    dump_ttxt,
    shifted,
    srt_style_tags,
    timed_samples,
    ttxt_text,
)
from .textsample import BoxRecord, StyleRecord

WHITE = 0xFFFFFFFF

def text_sample_bytes(text: str, *boxes) -> bytes:
  text_bs = text.encode('utf-8')
  return pack('>H', len(text_bs)) + text_bs + b''.join(boxes)

def styl(*records) -> bytes:
  body = pack('>H', len(records)) + b''.join(
      pack('>HHHBBL', *record) for record in records
  )
  return pack('>L4s', 8 + len(body), b'styl') + body

def hlit(start_char, end_char) -> bytes:
  return pack('>L4sHH', 12, b'hlit', start_char, end_char)

def modifier(box_type: bytes, body: bytes) -> bytes:
  return pack('>L4s', 8 + len(body), box_type) + body

def text_trak(handler_type='text', description_type='tx3g', duration=4000):
  ''' Make a minimal text track box tree.
  '''
  description = Box(
      description_type,
      64,
      data_reference_index=1,
      display_flags=0,
      horizontal_justification=1,
      vertical_justification=-1,
      background_color=0xFF000000,
      default_box=BoxRecord(0, 0, 60, 320),
      default_style=StyleRecord(0, 0, 1, 0, 18, WHITE),
      boxes=[Box('ftab', 18, fonts=[])],
  )
  stbl = Box('stbl', 100, boxes=[new_box('stsd', 80, boxes=[description])])
  mdia = Box(
      'mdia',
      200,
      boxes=[
          new_box('mdhd', 32, timescale=1000, duration=duration),
          new_box('hdlr', 33, handler_type=handler_type),
          Box('minf', 120, boxes=[stbl]),
      ],
  )
  tkhd = new_box(
      'tkhd', 92, width=320 << 16, height=60 << 16, layer=0,
      matrix=(0x10000, 0, 0, 0, 0x10000, 0, 0, 0, 0x40000000)
  )
  return Box('trak', 300, boxes=[tkhd, mdia])

class TestHelpers(unittest.TestCase):
  ''' Test the conversion helpers.
  '''

  def test_ttxt_text(self):
    markup, shifts = ttxt_text('a\r\nb<c>\xe9')
    self.assertEqual(markup, 'a\nb&lt;c&gt;&#233;')
    self.assertEqual(shifts, [1])

  def test_shifted(self):
    self.assertEqual(shifted(0, [2]), 0)
    self.assertEqual(shifted(2, [2]), 2)
    self.assertEqual(shifted(4, [2]), 3)
    self.assertEqual(shifted(9, [2, 5]), 7)

  def test_timed_samples(self):
    samples = ListSampleSource([(0, b'', 1), (1000, b'', 1), (900, b'', 1)])
    self.assertEqual(
        [(index, end) for index, _, end in timed_samples(samples, 500)],
        [(1, 1000), (2, 1000), (3, 900)],
    )

  def test_sample_source_is_abstract(self):
    with self.assertRaises(TypeError):
      SampleSource()
    self.assertEqual(ListSampleSource([(0, b'', 1)]).sample_count, 1)

  def test_srt_style_tags(self):
    self.assertEqual(srt_style_tags(0, 7), '<b><i><u>')
    self.assertEqual(srt_style_tags(7, 0), '</u></i></b>')
    self.assertEqual(srt_style_tags(1, 2), '<i></b>')

  def test_color_name(self):
    self.assertEqual(color_name(0xFFFF0000), 'red')
    self.assertEqual(color_name(0xFF123456), '#123456')

class TestTrackCheck(unittest.TestCase):
  ''' Test rejection of unsuitable tracks.
  '''

  def test_bad_handler(self):
    f = StringIO()
    with self.assertRaises(InvalidTrackParameterError):
      dump_srt(text_trak(handler_type='vide'), ListSampleSource([]), f)
    self.assertEqual(f.getvalue(), '')

  def test_bad_description(self):
    for dump in dump_srt, dump_ttxt:
      with self.subTest(dump=dump.__name__):
        f = StringIO()
        with self.assertRaises(InvalidTrackParameterError):
          dump(text_trak(description_type='mp4v'), ListSampleSource([]), f)
        self.assertEqual(f.getvalue(), '')

  def test_no_track_no_files(self):
    with TemporaryDirectory() as tmpdir:
      svg_path = os.path.join(tmpdir, 'out.svg')
      with self.assertRaises(InvalidTrackParameterError):
        dump_svg_file(Box('trak', 8), ListSampleSource([]), svg_path)
      self.assertFalse(os.path.exists(svg_path))
      self.assertFalse(os.path.exists(svg_path + '.nhml'))

class TestSRT(unittest.TestCase):
  ''' Test SRT conversion.
  '''

  def test_bold_sample(self):
    samples = ListSampleSource(
        [
            Sample(0, text_sample_bytes('Hi'), 1),
            Sample(1000, text_sample_bytes('Hello', styl((0, 5, 1, 1, 18, WHITE))), 1),
            Sample(2500, text_sample_bytes('Bye'), 1),
        ]
    )
    f = StringIO()
    dump_srt(text_trak(), samples, f)
    self.assertEqual(
        f.getvalue(), (
            '1\n'
            '00:00:00,000 --> 00:00:01,000\n'
            'Hi\n\n'
            '2\n'
            '00:00:01,000 --> 00:00:02,500\n'
            '<b>Hello</b>\n\n'
            '3\n'
            '00:00:02,500 --> 00:00:04,000\n'
            'Bye\n\n'
        )
    )

  def test_colour_and_crlf(self):
    samples = ListSampleSource(
        [
            Sample(
                0,
                text_sample_bytes(
                    'ab\r\ncd', styl((0, 2, 1, 2, 18, 0xFF0000FF))
                ),
                1,
            ),
        ],
        media_duration=1000,
    )
    f = StringIO()
    dump_srt(text_trak(), samples, f)
    self.assertEqual(
        f.getvalue(), (
            '1\n'
            '00:00:00,000 --> 00:00:01,000\n'
            '<i><font color="red">ab</i></font>\ncd\n\n'
        )
    )

  def test_skipped_samples(self):
    samples = ListSampleSource(
        [
            Sample(0, b'\x00\x09ab', 1),
            Sample(200, b'\x00\x00', 1),
            Sample(500, text_sample_bytes('ok'), 1),
        ]
    )
    f = StringIO()
    dump_srt(text_trak(duration=1000), samples, f)
    self.assertEqual(f.getvalue(), '1\n00:00:00,500 --> 00:00:01,000\nok\n\n')

class TestTTXT(unittest.TestCase):
  ''' Test TTXT conversion.
  '''

  def test_document(self):
    samples = ListSampleSource(
        [Sample(1000, text_sample_bytes('ab\r\ncd', hlit(4, 6)), 1)]
    )
    f = StringIO()
    dump_ttxt(text_trak(), samples, f)
    text = f.getvalue()
    self.assertTrue(
        text.startswith(
            '<?xml version="1.0" encoding="UTF-8" ?>\n'
            '<!-- GPAC 3GPP Text Stream -->\n'
            '<TextStream version="1.1">\n'
            '<TextStreamHeader width="320" height="60" layer="0"'
            ' translation_x="0" translation_y="0">\n'
            '<TextSampleDescription horizontalJustification="center"'
            ' verticalJustification="bottom" backColor="0 0 0 ff"'
            ' verticalText="no" fillTextRegion="no" continuousKaraoke="no"'
            ' scroll="None">\n'
            '<FontTable>\n</FontTable>\n'
            '<TextBox top="0" left="0" bottom="60" right="320"/>\n'
            '<Style styles="Normal" fontID="1" fontSize="18" color="ff ff ff ff"/>\n'
            '</TextSampleDescription>\n'
            '</TextStreamHeader>\n'
        )
    )
    self.assertIn(
        '<TextSample sampleTime="00:00:01.000" xml:space="preserve">'
        'ab\ncd<Highlight fromChar="3" toChar="5"/>\n</TextSample>\n', text
    )
    self.assertTrue(
        text.endswith(
            '<TextSample sampleTime="00:00:04.000" text="" />\n'
            '</TextStream>\n'
        )
    )

  def test_crlf_modifier_offsets(self):
    sample = text_sample_bytes(
        'ab\r\ncd',
        styl((4, 6, 1, 1, 18, WHITE)),
        modifier(b'krok', pack('>LH', 0, 1) + pack('>LHH', 500, 4, 6)),
        modifier(
            b'href',
            pack('>HHB', 4, 6, 5) + b'a.com' + pack('>B', 4) + b'link'
        ),
        modifier(b'blnk', pack('>HH', 4, 6)),
    )
    f = StringIO()
    dump_ttxt(text_trak(), ListSampleSource([Sample(1000, sample, 1)]), f)
    self.assertIn(
        '<TextSample sampleTime="00:00:01.000" xml:space="preserve">ab\ncd'
        '<Style fromChar="3" toChar="5" styles="Bold" fontID="1"'
        ' fontSize="18" color="ff ff ff ff"/>\n'
        '<Karaoke startTime="0">\n'
        '<KaraokeRange fromChar="3" toChar="5" endTime="0.5"/>\n'
        '</Karaoke>\n'
        '<HyperLink fromChar="3" toChar="5" URL="a.com" URLToolTip="link"/>\n'
        '<Blinking fromChar="3" toChar="5"/>\n'
        '</TextSample>\n', f.getvalue()
    )

class TestSVG(unittest.TestCase):
  ''' Test SVG and NHML conversion.
  '''

  def test_document(self):
    samples = ListSampleSource(
        [
            Sample(0, text_sample_bytes('Hi'), 1),
            Sample(2000, text_sample_bytes('A&B'), 1),
        ],
        media_duration=3000,
    )
    f = StringIO()
    nhml_f = StringIO()
    dump_svg(text_trak(), samples, f, nhml_f)
    svg = f.getvalue()
    self.assertIn('width="320" height="60"', svg)
    self.assertIn('<g transform="translate(160, 30)" text-anchor="middle">', svg)
    self.assertIn(
        ' <text id="text_1" display="none">Hi\n'
        '  <set attributeName="display" to="inline" begin="0" end="2"/>\n'
        '  <discard begin="2"/>\n'
        ' </text>\n', svg
    )
    self.assertIn(' <text id="text_2" display="none">A&amp;B\n', svg)
    self.assertIn('begin="2" end="3"', svg)
    self.assertTrue(svg.endswith('</g>\n</svg>\n'))
    self.assertEqual(
        nhml_f.getvalue(), (
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            '<NHNTStream streamType="3" objectTypeIndication="10"'
            ' timeScale="1000" baseMediaFile="file.svg" inRootOD="yes">\n'
            '<NHNTSample isRAP="yes" DTS="0" xmlFrom="doc.start"'
            ' xmlTo="text_1.start"/>\n'
            '<NHNTSample isRAP="no" DTS="0.000000" xmlFrom="text_1.start"'
            ' xmlTo="text_2.start"/>\n'
            '<NHNTSample isRAP="no" DTS="2000.000000" xmlFrom="text_2.start"'
            ' xmlTo="doc.end"/>\n'
            '</NHNTStream>\n'
        )
    )

  def test_files(self):
    samples = ListSampleSource([Sample(0, text_sample_bytes('Hi'), 1)])
    with TemporaryDirectory() as tmpdir:
      svg_path = os.path.join(tmpdir, 'out.svg')
      dump_svg_file(text_trak(), samples, svg_path)
      with open(svg_path, encoding='utf-8') as f:
        self.assertIn('text_1', f.read())
      with open(svg_path + '.nhml', encoding='utf-8') as f:
        self.assertIn(f'baseMediaFile="{svg_path}"', f.read())

def selftest(argv, **kw):
  ''' Run the unit tests.
  '''
  setup_logging(__file__)
  sys.argv = argv
  unittest.main(__name__, defaultTest=None, argv=argv, failfast=True, **kw)

if __name__ == '__main__':
  selftest(sys.argv)
