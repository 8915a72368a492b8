#!/usr/bin/env python3
#
# Renderers for the movie fragment and segment boxes.
#

''' Trace renderers for movie fragments, fragment random access,
    the segment index boxes, producer reference time
    and the Adobe HTTP streaming bootstrap boxes.
'''

from collections import namedtuple
from datetime import datetime, timezone

from .escape import fmt_hex

TrackRunEntry = namedtuple('TrackRunEntry', 'duration size flags cts_offset')
RandomAccessEntry = namedtuple(
    'RandomAccessEntry', 'time moof_offset traf_number trun_number sample_number'
)
SegmentReference = namedtuple(
    'SegmentReference', (
        'reference_type reference_size subsegment_duration'
        ' starts_with_sap sap_type sap_delta_time'
    )
)
Subsegment = namedtuple('Subsegment', 'ranges')
SubsegmentRange = namedtuple('SubsegmentRange', 'level range_size')
LevelAssignment = namedtuple(
    'LevelAssignment', (
        'track_id padding_flag assignment_type grouping_type'
        ' grouping_type_parameter sub_track_id'
    )
)
LocalAccessEntry = namedtuple('LocalAccessEntry', 'time offset')
GlobalAccessEntry = namedtuple(
    'GlobalAccessEntry', 'time segment fragment afra_offset offset_from_afra'
)
FragmentRunEntry = namedtuple(
    'FragmentRunEntry', (
        'first_fragment first_fragment_timestamp fragment_duration'
        ' discontinuity_indicator'
    )
)
SegmentRunEntry = namedtuple(
    'SegmentRunEntry', 'first_segment fragments_per_segment'
)

# 'tfhd' flags
TFHD_BASE_DATA_OFFSET = 0x000001
TFHD_SAMPLE_DESCRIPTION_INDEX = 0x000002
TFHD_DEFAULT_SAMPLE_DURATION = 0x000008
TFHD_DEFAULT_SAMPLE_SIZE = 0x000010
TFHD_DEFAULT_SAMPLE_FLAGS = 0x000020
TFHD_DEFAULT_BASE_IS_MOOF = 0x020000

# 'trun' flags
TRUN_DATA_OFFSET = 0x001
TRUN_FIRST_SAMPLE_FLAGS = 0x004
TRUN_SAMPLE_DURATION = 0x100
TRUN_SAMPLE_SIZE = 0x200
TRUN_SAMPLE_FLAGS = 0x400
TRUN_SAMPLE_CTS_OFFSET = 0x800

# seconds from the NTP epoch (1900) to the UNIX epoch (1970)
NTP_TO_UNIX_SECONDS = 2208988800

def decode_sample_flags(flags: int) -> dict:
  ''' Decode a 32 bit fragment sample flags value into its fields.
  '''
  flags = flags or 0
  return {
      'is_leading': (flags >> 26) & 3,
      'depends_on': (flags >> 24) & 3,
      'is_depended_on': (flags >> 22) & 3,
      'has_redundancy': (flags >> 20) & 3,
      'padding': (flags >> 17) & 7,
      'sync': 0 if (flags >> 16) & 1 else 1,
      'degradation_priority': flags & 0xFFFF,
  }

def sample_flags_element(T, name, flags):
  ''' Write the sample `flags` as an element `name`.
  '''
  decoded = decode_sample_flags(flags)
  T.element(
      name, {
          'IsLeading': decoded['is_leading'],
          'SampleDependsOn': decoded['depends_on'],
          'SampleIsDependedOn': decoded['is_depended_on'],
          'SampleHasRedundancy': decoded['has_redundancy'],
          'SamplePadding': decoded['padding'],
          'SampleSync': decoded['sync'],
          'SampleDegradationPriority': decoded['degradation_priority'],
      }
  )

def sample_flags_attrs(flags):
  ''' Return the sample `flags` as a list of inline attributes.
  '''
  decoded = decode_sample_flags(flags)
  return [
      ('SamplePadding', decoded['padding']),
      ('Sync', decoded['sync']),
      ('DegradationPriority', decoded['degradation_priority']),
      ('IsLeading', decoded['is_leading']),
      ('DependsOn', decoded['depends_on']),
      ('IsDependedOn', decoded['is_depended_on']),
      ('HasRedundancy', decoded['has_redundancy']),
  ]

def render_mvex(box, T):
  ''' Movie extends box - ISO14496 section 8.8.1.
  '''
  T.start(box, 'MovieExtendsBox')
  T.dump_slots(box, ('mehd', 'trex', 'trep'))
  T.done(box, 'MovieExtendsBox')

def render_mehd(box, T):
  T.start(
      box, 'MovieExtendsHeaderBox', {'fragmentDuration': box.fragment_duration}
  )
  T.done(box, 'MovieExtendsHeaderBox')

def render_trex(box, T):
  ''' Track extends box - ISO14496 section 8.8.3.
  '''
  T.start(
      box, 'TrackExtendsBox', {
          'TrackID': box.track_id,
          'SampleDescriptionIndex': box.default_sample_description_index,
          'SampleDuration': box.default_sample_duration,
          'SampleSize': box.default_sample_size,
      }
  )
  sample_flags_element(T, 'DefaultSampleFlags', box.default_sample_flags)
  T.done(box, 'TrackExtendsBox')

def render_trep(box, T):
  T.start(box, 'TrackExtensionPropertiesBox', {'TrackID': box.track_id})
  T.done(box, 'TrackExtensionPropertiesBox')

def render_moof(box, T):
  ''' Movie fragment box - ISO14496 section 8.8.4.
  '''
  T.start(
      box, 'MovieFragmentBox',
      {'TrackFragments': len(box.children_of_type('traf'))}
  )
  T.dump_slots(box, ('mfhd', 'traf'))
  T.done(box, 'MovieFragmentBox')

def render_mfhd(box, T):
  T.start(
      box, 'MovieFragmentHeaderBox',
      {'FragmentSequenceNumber': box.sequence_number}
  )
  T.done(box, 'MovieFragmentHeaderBox')

def render_traf(box, T):
  ''' Track fragment box - ISO14496 section 8.8.6.
  '''
  T.start(box, 'TrackFragmentBox')
  T.dump_slots(
      box, (
          'tfhd', 'sdtp', 'tfdt', 'subs', 'sgpd', 'sbgp', 'trun', 'saiz',
          'saio', 'uuid', 'senc'
      )
  )
  T.done(box, 'TrackFragmentBox')

def render_tfhd(box, T):
  ''' Track fragment header box - ISO14496 section 8.8.7.
      Without an explicit base data offset the base is the 'moof' box
      or, lacking that flag, the end of the previous track fragment.
  '''
  flags = box.flags or 0
  attrs = [('TrackID', box.track_id)]
  if flags & TFHD_BASE_DATA_OFFSET:
    attrs.append(('BaseDataOffset', box.base_data_offset))
  elif flags & TFHD_DEFAULT_BASE_IS_MOOF:
    attrs.append(('BaseDataOffset', 'moof'))
  else:
    attrs.append(('BaseDataOffset', 'moof-or-previous-traf'))
  if flags & TFHD_SAMPLE_DESCRIPTION_INDEX:
    attrs.append(('SampleDescriptionIndex', box.sample_description_index))
  if flags & TFHD_DEFAULT_SAMPLE_DURATION:
    attrs.append(('SampleDuration', box.default_sample_duration))
  if flags & TFHD_DEFAULT_SAMPLE_SIZE:
    attrs.append(('SampleSize', box.default_sample_size))
  if flags & TFHD_DEFAULT_SAMPLE_FLAGS:
    attrs.extend(sample_flags_attrs(box.default_sample_flags))
  T.start(box, 'TrackFragmentHeaderBox', attrs)
  T.done(box, 'TrackFragmentHeaderBox')

def render_tfxd(box, T):
  ''' Smooth Streaming fragment absolute time, a 'uuid' box.
  '''
  T.start(
      box, 'MSSTimeExtensionBox', {
          'AbsoluteTime': box.absolute_time,
          'FragmentDuration': box.fragment_duration,
      }
  )
  T.element(
      'FullBoxInfo', {
          'Version': box.version or 0,
          'Flags': fmt_hex(box.flags or 0)
      }
  )
  T.done(box, 'MSSTimeExtensionBox')

def render_trun(box, T):
  ''' Track fragment run box - ISO14496 section 8.8.8.
      Per sample entries are shown only if some per sample field is present.
  '''
  flags = box.flags or 0
  entries = list(box.entries or ())
  sample_count = box.sample_count
  if sample_count is None:
    sample_count = len(entries)
  attrs = [('SampleCount', sample_count)]
  if flags & TRUN_DATA_OFFSET:
    attrs.append(('DataOffset', box.data_offset))
  T.start(box, 'TrackRunBox', attrs)
  if flags & TRUN_FIRST_SAMPLE_FLAGS:
    sample_flags_element(T, 'FirstSampleFlags', box.first_sample_flags)
  if flags & (TRUN_SAMPLE_DURATION | TRUN_SAMPLE_SIZE | TRUN_SAMPLE_FLAGS
              | TRUN_SAMPLE_CTS_OFFSET):
    for entry in T.entries(entries):
      entry_attrs = []
      if flags & TRUN_SAMPLE_DURATION:
        entry_attrs.append(('Duration', entry.duration))
      if flags & TRUN_SAMPLE_SIZE:
        entry_attrs.append(('Size', entry.size))
      if flags & TRUN_SAMPLE_CTS_OFFSET:
        cts_offset = entry.cts_offset or 0
        if not box.version:
          # version 0 offsets are unsigned
          cts_offset &= 0xFFFFFFFF
        entry_attrs.append(('CTSOffset', cts_offset))
      if flags & TRUN_SAMPLE_FLAGS:
        entry_attrs.extend(sample_flags_attrs(entry.flags))
      T.element('TrackRunEntry', entry_attrs)
  elif box.size:
    T.comment('all default values used')
  else:
    T.element(
        'TrackRunEntry',
        [('Duration', ''), ('Size', ''),
         ('CTSOffset', '')] + sample_flags_attrs(0)
    )
  T.done(box, 'TrackRunBox')

def render_tfdt(box, T):
  T.start(
      box, 'TrackFragmentBaseMediaDecodeTimeBox',
      {'baseMediaDecodeTime': box.base_media_decode_time}
  )
  T.done(box, 'TrackFragmentBaseMediaDecodeTimeBox')

def render_mfra(box, T):
  T.start(box, 'MovieFragmentRandomAccessBox')
  T.dump_slots(box, ('tfra', 'mfro'))
  T.done(box, 'MovieFragmentRandomAccessBox')

def render_tfra(box, T):
  ''' Track fragment random access box - ISO14496 section 8.8.10.
  '''
  entries = list(box.entries or ())
  T.start(
      box, 'TrackFragmentRandomAccessBox', {
          'TrackId': box.track_id,
          'number_of_entries': len(entries),
      }
  )
  for entry in T.entries(entries):
    T.element(
        'RandomAccessEntry', {
            'time': entry.time,
            'moof_offset': entry.moof_offset,
            'traf': entry.traf_number,
            'trun': entry.trun_number,
            'sample': entry.sample_number,
        }
    )
  if not box.size:
    T.element(
        'RandomAccessEntry', {
            'time': '',
            'moof_offset': '',
            'traf': '',
            'trun': '',
            'sample': '',
        }
    )
  T.done(box, 'TrackFragmentRandomAccessBox')

def render_mfro(box, T):
  T.start(
      box, 'MovieFragmentRandomAccessOffsetBox',
      {'container_size': box.container_size}
  )
  T.done(box, 'MovieFragmentRandomAccessOffsetBox')

def render_sidx(box, T):
  ''' Segment index box - ISO14496 section 8.16.3.
  '''
  T.start(
      box, 'SegmentIndexBox', {
          'reference_ID': box.reference_id,
          'timescale': box.timescale,
          'earliest_presentation_time': box.earliest_presentation_time,
          'first_offset': box.first_offset,
      }
  )
  for ref in T.entries(box.references):
    T.element(
        'Reference', {
            'type': ref.reference_type,
            'size': ref.reference_size,
            'duration': ref.subsegment_duration,
            'startsWithSAP': ref.starts_with_sap,
            'SAP_type': ref.sap_type,
            'SAPDeltaTime': ref.sap_delta_time,
        }
    )
  if not box.size:
    T.element(
        'Reference', {
            'type': '',
            'size': '',
            'duration': '',
            'startsWithSAP': '',
            'SAP_type': '',
            'SAPDeltaTime': '',
        }
    )
  T.done(box, 'SegmentIndexBox')

def render_ssix(box, T):
  subsegments = list(box.subsegments or ())
  T.start(box, 'SubsegmentIndexBox', {'subsegment_count': len(subsegments)})
  for subsegment in T.entries(subsegments):
    ranges = list(subsegment.ranges or ())
    T.element('Subsegment', {'range_count': len(ranges)}, close=False)
    for r in ranges:
      T.element('Range', {'level': r.level, 'range_size': r.range_size})
    T.end('Subsegment')
  if not box.size:
    T.element('Subsegment', {'range_count': ''}, close=False)
    T.element('Range', {'level': '', 'range_size': ''})
    T.end('Subsegment')
  T.done(box, 'SubsegmentIndexBox')

def render_leva(box, T):
  levels = list(box.levels or ())
  T.start(box, 'LevelAssignmentBox', {'level_count': len(levels)})
  for level in T.entries(levels):
    T.element(
        'Assignement', {
            'track_id': level.track_id,
            'padding_flag': level.padding_flag,
            'assignement_type': level.assignment_type,
            'grouping_type': level.grouping_type,
            'grouping_type_parameter': level.grouping_type_parameter,
            'sub_track_id': level.sub_track_id,
        }
    )
  if not box.size:
    T.element(
        'Assignement', {
            'track_id': '',
            'padding_flag': '',
            'assignement_type': '',
            'grouping_type': '',
            'grouping_type_parameter': '',
            'sub_track_id': '',
        }
    )
  T.done(box, 'LevelAssignmentBox')

def render_pcrb(box, T):
  pcr_values = list(box.pcr_values or ())
  T.start(box, 'MPEG2TSPCRInfoBox', {'subsegment_count': len(pcr_values)})
  for pcr in T.entries(pcr_values):
    T.element('PCRInfo', {'PCR': pcr})
  if not box.size:
    T.element('PCRInfo', {'PCR': ''})
  T.done(box, 'MPEG2TSPCRInfoBox')

def ntp_utc(ntp: int) -> str:
  ''' Format a 64 bit NTP timestamp as an ISO8601 UTC time
      with millisecond precision.
  '''
  secs = (ntp >> 32) - NTP_TO_UNIX_SECONDS
  ms = int((ntp & 0xFFFFFFFF) / 0xFFFFFFFF * 1000)
  when = datetime.fromtimestamp(secs, timezone.utc)
  return f'{when:%Y-%m-%dT%H:%M:%S}.{ms:03d}Z'

def render_prft(box, T):
  ''' Producer reference time box - ISO14496 section 8.16.5.
  '''
  ntp = box.ntp
  T.start(
      box, 'ProducerReferenceTimeBox', {
          'referenceTrackID': box.reference_track_id,
          'timestamp': box.media_time,
          'NTP': ntp,
          'UTC': None if ntp is None else ntp_utc(ntp),
      }
  )
  T.done(box, 'ProducerReferenceTimeBox')

def render_abst(box, T):
  ''' Adobe bootstrap information box.
  '''
  attrs = [
      ('BootstrapinfoVersion', box.bootstrapinfo_version),
      ('Profile', box.profile),
      ('Live', box.live),
      ('Update', box.update),
      ('TimeScale', box.timescale),
      ('CurrentMediaTime', box.current_media_time),
      ('SmpteTimeCodeOffset', box.smpte_time_code_offset),
  ]
  if box.movie_identifier:
    attrs.append(('MovieIdentifier', box.movie_identifier))
  if box.drm_data:
    attrs.append(('DrmData', box.drm_data))
  if box.meta_data:
    attrs.append(('MetaData', box.meta_data))
  T.start(box, 'AdobeBootstrapBox', attrs)
  for server in box.server_entries or ():
    T.text_element('ServerEntry', server)
  for quality in box.quality_entries or ():
    T.text_element('QualityEntry', quality)
  T.dump_slots(box, ('asrt', 'afrt'))
  T.done(box, 'AdobeBootstrapBox')

def render_afra(box, T):
  T.start(
      box, 'AdobeFragmentRandomAccessBox', {
          'LongIDs': box.long_ids,
          'LongOffsets': box.long_offsets,
          'TimeScale': box.timescale,
      }
  )
  for entry in T.entries(box.local_access_entries):
    T.element('LocalAccessEntry', {'Time': entry.time, 'Offset': entry.offset})
  for entry in T.entries(box.global_access_entries):
    T.element(
        'GlobalAccessEntry', {
            'Time': entry.time,
            'Segment': entry.segment,
            'Fragment': entry.fragment,
            'AfraOffset': entry.afra_offset,
            'OffsetFromAfra': entry.offset_from_afra,
        }
    )
  T.done(box, 'AdobeFragmentRandomAccessBox')

def render_afrt(box, T):
  ''' Adobe fragment run table box.
      A zero duration run carries a discontinuity indicator.
  '''
  T.start(box, 'AdobeFragmentRunTableBox', {'TimeScale': box.timescale})
  for quality in box.quality_entries or ():
    T.text_element('QualityEntry', quality)
  for entry in T.entries(box.fragment_runs):
    attrs = [
        ('FirstFragment', entry.first_fragment),
        ('FirstFragmentTimestamp', entry.first_fragment_timestamp),
        ('FirstFragmentDuration', entry.fragment_duration),
    ]
    if not entry.fragment_duration:
      attrs.append(('DiscontinuityIndicator', entry.discontinuity_indicator))
    T.element('FragmentRunEntry', attrs)
  T.done(box, 'AdobeFragmentRunTableBox')

def render_asrt(box, T):
  T.start(box, 'AdobeSegmentRunTableBox')
  for quality in box.quality_entries or ():
    T.text_element('QualityEntry', quality)
  for entry in T.entries(box.segment_runs):
    T.element(
        'SegmentRunEntry', {
            'FirstSegment': entry.first_segment,
            'FragmentsPerSegment': entry.fragments_per_segment,
        }
    )
  T.done(box, 'AdobeSegmentRunTableBox')
