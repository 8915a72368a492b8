#!/usr/bin/env python3

''' Unit tests for isotrace.trace and a sample of the box renderers.
'''

from collections import namedtuple
from io import StringIO
import sys
import unittest

from cs.logutils import setup_logging

from .boxes import Box, UnregisteredBoxTypeError, new_box
from .render_hint import render_hnti
from .render_meta import AssociationEntry, PropertyAssociation
from .textsample import BoxRecord, StyleRecord
from .trace import DUMP_MODE, Trace, attr_str, comment_safe, dump_file, render

TimeToSampleEntry = namedtuple('TimeToSampleEntry', 'sample_delta sample_count')

def trace_of(box, expected_type=None, **trace_kw):
  ''' Render `box` and return the trace text.
  '''
  f = StringIO()
  render(box, f, expected_type, **trace_kw)
  return f.getvalue()

class TestTraceWriter(unittest.TestCase):
  ''' Test the trace writer primitives.
  '''

  def test_attr_str(self):
    self.assertEqual(attr_str(None), '')
    self.assertEqual(attr_str(True), 'yes')
    self.assertEqual(attr_str(False), 'no')
    self.assertEqual(attr_str(12), '12')
    self.assertEqual(attr_str(1.5), '1.5')
    self.assertEqual(attr_str(b'\x01\x02'), 'data:application/octet-string,0102')
    self.assertEqual(attr_str('a<"b"'), 'a&lt;&quot;b&quot;')

  def test_comment_safe(self):
    self.assertEqual(comment_safe('a--b'), 'a- -b')
    self.assertEqual(comment_safe('tail-'), 'tail')

  def test_entries_limit(self):
    f = StringIO()
    T = Trace(f, max_samples=2)
    self.assertEqual(list(T.entries(range(5))), [0, 1])
    self.assertEqual(f.getvalue(), '<!-- 3 further entries not shown -->\n')

  def test_dump_mode(self):
    with DUMP_MODE(max_samples=1):
      T = Trace(StringIO())
    self.assertEqual(T.max_samples, 1)
    self.assertIsNone(Trace(StringIO()).max_samples)

class TestRender(unittest.TestCase):
  ''' Test the recursive renderer.
  '''

  def test_null_box(self):
    self.assertEqual(
        trace_of(None, 'ftyp'),
        '<!--ERROR: NULL Box Found, expecting ftyp -->\n',
    )
    self.assertEqual(trace_of(None), '<!--ERROR: NULL Box Found-->\n')

  def test_unregistered(self):
    f = StringIO()
    self.assertFalse(render(Box('zzzz', 8), f))
    self.assertEqual(
        f.getvalue(), '<!--ERROR: Box type "zzzz" not registered-->\n'
    )

  def test_unregistered_sibling(self):
    f = StringIO()
    T = Trace(f)
    failures = T.dump_boxes(
        [
            Box('free', 16, data_size=8),
            Box('zzzz', 8),
            Box('skip', 12, data_size=4),
        ]
    )
    self.assertEqual(len(failures), 1)
    self.assertIsInstance(failures[0], UnregisteredBoxTypeError)
    self.assertEqual(
        f.getvalue(), (
            '<FreeSpaceBox Size="16" Type="free" dataSize="8"/>\n'
            '<!--ERROR: Box type "zzzz" not registered-->\n'
            '<SkipBox Size="12" Type="skip" dataSize="4"/>\n'
        )
    )

  def test_bad_type_code_sibling(self):
    f = StringIO()
    T = Trace(f)
    failures = T.dump_boxes(
        [
            Box('free', 16, data_size=8),
            Box(b'abc', 8),
            Box('skip', 12, data_size=4),
        ]
    )
    self.assertEqual(len(failures), 1)
    self.assertIsInstance(failures[0], UnregisteredBoxTypeError)
    self.assertEqual(
        f.getvalue(), (
            '<FreeSpaceBox Size="16" Type="free" dataSize="8"/>\n'
            '<!--ERROR: Box type "abc" not registered-->\n'
            '<SkipBox Size="12" Type="skip" dataSize="4"/>\n'
        )
    )

  def test_invalid_structure(self):
    f = StringIO()
    T = Trace(f)
    failures = T.dump_boxes(
        [Box('uuid', 24, internal_type='ZZZZ'), Box('free', 8, data_size=0)]
    )
    self.assertEqual(failures, [])
    self.assertEqual(
        f.getvalue(), (
            "<!--WARNING: unsupported extension box kind 'ZZZZ'-->\n"
            '<FreeSpaceBox Size="8" Type="free" dataSize="0"/>\n'
        )
    )

  def test_large_size(self):
    text = trace_of(Box('mdat', 0x100000008, data_size=0x100000000))
    self.assertTrue(
        text.startswith('<MediaDataBox LargeSize="4294967304" Type="mdat"')
    )

  def test_full_box_header(self):
    box = new_box(
        'stts',
        24,
        version=0,
        flags=0,
        entries=[TimeToSampleEntry(1000, 3)],
    )
    self.assertEqual(
        trace_of(box), (
            '<TimeToSampleBox Size="24" Type="stts" Version="0" Flags="0x0"'
            ' EntryCount="1">\n'
            '<TimeToSampleEntry SampleDelta="1000" SampleCount="3"/>\n'
            '<!-- counted 3 samples in STTS entries -->\n'
            '</TimeToSampleBox>\n'
        )
    )

  def test_required_child(self):
    text = trace_of(Box('moov', 8))
    self.assertIn('<!--ERROR: NULL Box Found, expecting mvhd -->', text)
    self.assertTrue(text.endswith('</MovieBox>\n'))
    # placeholders do not report missing children
    self.assertNotIn('NULL Box', trace_of(Box('moov')))

  def test_other_boxes(self):
    box = Box('moov', 120, other_boxes=[Box('free', 8, data_size=0)])
    text = trace_of(box)
    self.assertIn('<FreeSpaceBox Size="8" Type="free" dataSize="0"/>\n</MovieBox>\n', text)

  def test_track_reference(self):
    box = Box('REFT', 16, reference_type='hint', track_ids=[1, 2])
    self.assertEqual(
        trace_of(box),
        '<TrackReferenceTypeBox Size="16" Type="hint" Tracks=" 1 2">\n'
        '</TrackReferenceTypeBox>\n',
    )
    self.assertEqual(trace_of(Box('REFT', 16, track_ids=[1])), '')

  def test_ftyp(self):
    box = Box(
        'ftyp', 24, major_brand=b'isom', minor_version=512,
        compatible_brands=[b'isom', b'mp41']
    )
    self.assertEqual(
        trace_of(box), (
            '<FileTypeBox Size="24" Type="ftyp" MajorBrand="isom" MinorVersion="512">\n'
            '<BrandEntry AlternateBrand="isom"/>\n'
            '<BrandEntry AlternateBrand="mp41"/>\n'
            '</FileTypeBox>\n'
        )
    )
    self.assertIn('<BrandEntry AlternateBrand="4CC"/>', trace_of(Box('ftyp')))

class TestRenderers(unittest.TestCase):
  ''' Test a selection of the box renderers.
  '''

  def test_sdtp_placeholder(self):
    text = trace_of(new_box('sdtp'))
    self.assertIn(
        '<SampleDependencyEntry dependsOnOther="unknown|yes|no|RESERVED"'
        ' dependedOn="unknown|yes|no|RESERVED"'
        ' hasRedundancy="unknown|yes|no|RESERVED"/>', text
    )
    self.assertNotIn('Warning', text)

  def test_sdtp_without_samples(self):
    text = trace_of(new_box('sdtp', 12))
    self.assertIn('<!--Warning: No sample dependencies indications-->', text)

  def test_tx3g(self):
    box = Box(
        'tx3g',
        64,
        data_reference_index=1,
        display_flags=0x20000,
        horizontal_justification=1,
        vertical_justification=-1,
        background_color=0xFF000000,
        default_box=BoxRecord(0, 0, 60, 320),
        default_style=StyleRecord(0, 0, 1, 0, 18, 0xFFFFFFFF),
        boxes=[Box('ftab', 18, fonts=[])],
    )
    text = trace_of(box)
    self.assertTrue(
        text.startswith(
            '<Tx3gSampleEntryBox Size="64" Type="tx3g" dataReferenceIndex="1"'
            ' displayFlags="20000" horizontal-justification="1"'
            ' vertical-justification="-1" backgroundColor="0 0 0 ff">\n'
            '<DefaultBox>\n'
            '<BoxRecord top="0" left="0" bottom="60" right="320"/>\n'
            '</DefaultBox>\n'
            '<DefaultStyle>\n'
            '<StyleRecord startChar="0" endChar="0" fontID="1" styles="Normal"'
            ' fontSize="18" textColor="ff ff ff ff"/>\n'
            '</DefaultStyle>\n'
        )
    )
    self.assertIn('Type="ftab"', text)
    self.assertTrue(text.endswith('</Tx3gSampleEntryBox>\n'))

  def test_tx3g_missing_font_table(self):
    text = trace_of(Box('tx3g', 46))
    self.assertIn('<!--ERROR: NULL Box Found, expecting ftab -->', text)

  def test_ipma(self):
    box = new_box(
        'ipma',
        30,
        entries=[
            AssociationEntry(
                1, [PropertyAssociation(1, True),
                    PropertyAssociation(2, False)]
            )
        ]
    )
    self.assertEqual(
        trace_of(box), (
            '<ItemPropertyAssociationBox Size="30" Type="ipma" Version="0"'
            ' Flags="0x0" entry_count="1">\n'
            '<AssociationEntry item_ID="1" association_count="2">\n'
            '<Property index="1" essential="1"/>\n'
            '<Property index="2" essential="0"/>\n'
            '</AssociationEntry>\n'
            '</ItemPropertyAssociationBox>\n'
        )
    )

  def test_hnti(self):
    rtp = Box('rtp ', 40, sub_type='sdp ', sdp_text='v=0')
    f = StringIO()
    render_hnti(Box('hnti', 48, boxes=[rtp]), Trace(f))
    self.assertEqual(
        f.getvalue(), (
            '<HintTrackInfoBox Size="48" Type="hnti">\n'
            '<RTPInfoBox subType="sdp ">\n'
            '<!-- sdp text: v=0 -->\n'
            '</RTPInfoBox>\n'
            '</HintTrackInfoBox>\n'
        )
    )

  def test_generic_sample_entries(self):
    gnrm = Box('gnrm', 24, entry_type=b'abcd', data_reference_index=1, data_size=8)
    self.assertEqual(
        trace_of(gnrm), (
            '<SampleDescriptionBox Size="24" Type="abcd"'
            ' DataReferenceIndex="1" ExtensionDataSize="8">\n'
            '</SampleDescriptionBox>\n'
        )
    )
    self.assertEqual(gnrm.box_type, 'gnrm')
    gnrv = Box('gnrv', 86, entry_type='mp4x', width=320, height=240)
    self.assertTrue(
        trace_of(gnrv).startswith(
            '<VisualSampleDescriptionBox Size="86" Type="mp4x"'
        )
    )
    self.assertIn(' Width="320" Height="240"', trace_of(gnrv))
    self.assertEqual(gnrv.box_type, 'gnrv')
    gnra = Box('gnra', 36, entry_type='mp4y', channel_count=2)
    self.assertTrue(
        trace_of(gnra).startswith(
            '<AudioSampleDescriptionBox Size="36" Type="mp4y"'
        )
    )
    self.assertIn(' ChannelCount="2"', trace_of(gnra))
    self.assertEqual(gnra.box_type, 'gnra')

  def test_tkhd_audio(self):
    box = new_box(
        'tkhd', 92, version=0, flags=7, creation_time=0,
        modification_time=0, track_id=1, duration=1000, volume=0x0180
    )
    self.assertEqual(
        trace_of(box), (
            '<TrackHeaderBox Size="92" Type="tkhd" Version="0" Flags="0x7"'
            ' CreationTime="0" ModificationTime="0" TrackID="1"'
            ' Duration="1000" Volume="1.50">\n'
            '</TrackHeaderBox>\n'
        )
    )

  def test_tkhd_visual(self):
    box = new_box(
        'tkhd', 92, version=0, flags=3, creation_time=0,
        modification_time=0, track_id=2, duration=1000, volume=0,
        width=(320 << 16) | 0x8000, height=240 << 16
    )
    text = trace_of(box)
    self.assertIn(' Duration="1000" Width="320.50" Height="240.00">\n', text)
    self.assertNotIn('Volume', text)
    self.assertIn('<Matrix m11="0x00010000"', text)
    self.assertTrue(text.endswith('</TrackHeaderBox>\n'))

class TestDumpFile(unittest.TestCase):
  ''' Test whole document rendering.
  '''

  def test_document(self):
    f = StringIO()
    failures = dump_file(
        [
            Box('ftyp', 16, major_brand='isom', minor_version=0),
            Box('zzzz', 8),
            Box('free', 8, data_size=0),
        ],
        f,
        name='test.mp4',
    )
    text = f.getvalue()
    self.assertEqual(len(failures), 1)
    self.assertTrue(
        text.startswith(
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            '<!--MP4Box dump trace-->\n'
            '<IsoMediaFile xmlns="urn:mpeg:isobmff:schema:file:2016"'
            ' Name="test.mp4">\n'
        )
    )
    self.assertIn('<!--ERROR: Invalid Top-level Box Found ("zzzz")-->\n', text)
    self.assertIn('<FreeSpaceBox Size="8" Type="free" dataSize="0"/>\n', text)
    self.assertTrue(text.endswith('</IsoMediaFile>\n'))

  def test_empty_type_code(self):
    f = StringIO()
    failures = dump_file(
        [Box('', 8), Box('free', 8, data_size=0)], f, name='empty.mp4'
    )
    text = f.getvalue()
    self.assertEqual(len(failures), 1)
    self.assertIsInstance(failures[0], UnregisteredBoxTypeError)
    self.assertIn('<!--ERROR: Box type "" not registered-->\n', text)
    self.assertIn('<FreeSpaceBox Size="8" Type="free" dataSize="0"/>\n', text)
    self.assertTrue(text.endswith('</IsoMediaFile>\n'))

def selftest(argv, **kw):
  ''' Run the unit tests.
  '''
  setup_logging(__file__)
  sys.argv = argv
  unittest.main(__name__, defaultTest=None, argv=argv, failfast=True, **kw)

if __name__ == '__main__':
  selftest(sys.argv)
