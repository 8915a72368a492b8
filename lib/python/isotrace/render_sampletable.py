#!/usr/bin/env python3
#
# Renderers for the sample table boxes.
#

''' Trace renderers for the sample table boxes
    and the sample group and auxiliary information boxes
    which may also appear in track fragments.
'''

from collections import namedtuple

from cs.binary import UInt8, UInt16BE
from cs.buffer import CornuCopyBuffer
from cs.pfx import Pfx

from .escape import data_uri, fourcc, hex_data

# table entries
TimeToSampleEntry = namedtuple('TimeToSampleEntry', 'sample_count sample_delta')
CompositionOffsetEntry = namedtuple(
    'CompositionOffsetEntry', 'sample_count offset'
)
SyncShadowEntry = namedtuple('SyncShadowEntry', 'shadowed_sample sync_sample')
SampleToChunkEntry = namedtuple(
    'SampleToChunkEntry',
    'first_chunk samples_per_chunk sample_description_index'
)
SampleFragmentEntry = namedtuple(
    'SampleFragmentEntry', 'sample_number fragment_sizes'
)
SubSampleEntry = namedtuple('SubSampleEntry', 'sample_delta subsamples')
SubSample = namedtuple('SubSample', 'size priority discardable reserved')
SampleGroupEntry = namedtuple(
    'SampleGroupEntry', 'sample_count group_description_index'
)

# sample group description entries
RollRecoveryEntry = namedtuple('RollRecoveryEntry', 'roll_distance')
VisualRandomAccessEntry = namedtuple(
    'VisualRandomAccessEntry', 'num_leading_samples_known num_leading_samples'
)
CENCSampleEncryptionGroupEntry = namedtuple(
    'CENCSampleEncryptionGroupEntry',
    'is_protected per_sample_iv_size kid constant_iv_size constant_iv'
)
OperatingPointsInformation = namedtuple(
    'OperatingPointsInformation',
    'scalability_mask profile_tier_levels operating_points dependency_layers'
)
ProfileTierLevel = namedtuple(
    'ProfileTierLevel', (
        'general_profile_space general_tier_flag general_profile_idc'
        ' general_profile_compatibility_flags'
        ' general_constraint_indicator_flags'
    )
)
OperatingPoint = namedtuple(
    'OperatingPoint', (
        'output_layer_set_idx max_temporal_id layer_count'
        ' min_pic_width min_pic_height max_pic_width max_pic_height'
        ' max_chroma_format max_bit_depth'
        ' frame_rate_info_flag bit_rate_info_flag'
        ' avg_frame_rate constant_frame_rate max_bit_rate avg_bit_rate'
    )
)
DependentLayer = namedtuple(
    'DependentLayer',
    'dependent_layer_id dependent_on_layer_ids dimension_identifiers'
)
LayerInfoItem = namedtuple(
    'LayerInfoItem',
    'layer_id min_temporal_id max_temporal_id sub_layer_presence_flags'
)

# sample dependency values
SAMPLE_DEPENDENCY_NAMES = ('unknown', 'yes', 'no', 'RESERVED')

# operating point scalability masks
SCALABILITY_NAMES = {
    2: 'Multiview',
    4: 'Spatial scalability',
    8: 'Auxilary',
}

# the sample table children in their dump order
STBL_SLOTS = (
    'stsd', 'stts', 'ctts', 'cslg', 'stss', 'stsh', 'stsc', 'stsz', 'stz2',
    'stco', 'co64', 'stdp', 'sdtp', 'padb', 'stsf', 'subs', 'sgpd', 'sbgp',
    'saiz', 'saio'
)

def render_stbl(box, T):
  ''' Sample table box - ISO14496 section 8.5.1.
      Either size box and either chunk offset box will do.
  '''
  required = ['stsd', 'stts', 'stsc']
  if not box.children_of_type('stz2'):
    required.append('stsz')
  if not box.children_of_type('co64'):
    required.append('stco')
  T.start(box, 'SampleTableBox')
  T.dump_slots(box, STBL_SLOTS, required=required)
  T.done(box, 'SampleTableBox')

def render_stsd(box, T):
  T.start(box, 'SampleDescriptionBox')
  T.dump_children(box)
  T.done(box, 'SampleDescriptionBox')

def render_stts(box, T):
  ''' Decoding time to sample box - ISO14496 section 8.6.1.2.
  '''
  entries = list(box.entries or ())
  T.start(box, 'TimeToSampleBox', {'EntryCount': len(entries)})
  for entry in T.entries(entries):
    T.element(
        'TimeToSampleEntry', {
            'SampleDelta': entry.sample_delta,
            'SampleCount': entry.sample_count,
        }
    )
  if box.size:
    T.comment(
        f'counted {sum(e.sample_count for e in entries)}'
        ' samples in STTS entries'
    )
  else:
    T.element('TimeToSampleEntry', {'SampleDelta': '', 'SampleCount': ''})
  T.done(box, 'TimeToSampleBox')

def render_ctts(box, T):
  ''' Composition time to sample box - ISO14496 section 8.6.1.3.
  '''
  entries = list(box.entries or ())
  T.start(box, 'CompositionOffsetBox', {'EntryCount': len(entries)})
  for entry in T.entries(entries):
    T.element(
        'CompositionOffsetEntry', {
            'CompositionOffset': entry.offset,
            'SampleCount': entry.sample_count,
        }
    )
  if box.size:
    T.comment(
        f'counted {sum(e.sample_count for e in entries)}'
        ' samples in CTTS entries'
    )
  else:
    T.element(
        'CompositionOffsetEntry', {
            'CompositionOffset': '',
            'SampleCount': '',
        }
    )
  T.done(box, 'CompositionOffsetBox')

def render_cslg(box, T):
  T.start(
      box, 'CompositionToDecodeBox', {
          'compositionToDTSShift': box.composition_to_dts_shift,
          'leastDecodeToDisplayDelta': box.least_decode_to_display_delta,
          'greatestDecodeToDisplayDelta': box.greatest_decode_to_display_delta,
          'compositionStartTime': box.composition_start_time,
          'compositionEndTime': box.composition_end_time,
      }
  )
  T.done(box, 'CompositionToDecodeBox')

def render_stsh(box, T):
  entries = list(box.entries or ())
  T.start(box, 'SyncShadowBox', {'EntryCount': len(entries)})
  for entry in T.entries(entries):
    T.element(
        'SyncShadowEntry', {
            'ShadowedSample': entry.shadowed_sample,
            'SyncSample': entry.sync_sample,
        }
    )
  if not box.size:
    T.element('SyncShadowEntry', {'ShadowedSample': '', 'SyncSample': ''})
  T.done(box, 'SyncShadowBox')

def stsc_sample_count(entries) -> int:
  ''' Count the samples described by a list of `SampleToChunkEntry`s.
      The final entry is assumed to describe a single chunk,
      so this can undercount.
  '''
  count = 0
  for i, entry in enumerate(entries):
    if i + 1 < len(entries):
      count += (entries[i + 1].first_chunk -
                entry.first_chunk) * entry.samples_per_chunk
    else:
      count += entry.samples_per_chunk
  return count

def render_stsc(box, T):
  ''' Sample to chunk box - ISO14496 section 8.7.4.
  '''
  entries = list(box.entries or ())
  T.start(box, 'SampleToChunkBox', {'EntryCount': len(entries)})
  for entry in T.entries(entries):
    T.element(
        'SampleToChunkEntry', {
            'FirstChunk': entry.first_chunk,
            'SamplesPerChunk': entry.samples_per_chunk,
            'SampleDescriptionIndex': entry.sample_description_index,
        }
    )
  if box.size:
    T.comment(
        f'counted {stsc_sample_count(entries)}'
        ' samples in STSC entries (could be less than sample count)'
    )
  else:
    T.element(
        'SampleToChunkEntry', {
            'FirstChunk': '',
            'SamplesPerChunk': '',
            'SampleDescriptionIndex': '',
        }
    )
  T.done(box, 'SampleToChunkBox')

def render_stsz(box, T):
  ''' Sample size box and compact sample size box - ISO14496 section 8.7.3.
      Per sample sizes are listed unless the 'stsz' box
      has a constant sample size.
  '''
  is_compact = box.box_type == 'stz2'
  name = 'CompactSampleSizeBox' if is_compact else 'SampleSizeBox'
  sizes = box.sizes
  sample_count = box.sample_count
  if sample_count is None and sizes is not None:
    sample_count = len(sizes)
  attrs = [('SampleCount', sample_count)]
  if is_compact:
    attrs.append(('SampleSizeBits', box.field_size))
  elif box.sample_size:
    attrs.append(('ConstantSampleSize', box.sample_size))
  T.start(box, name, attrs)
  if is_compact or not box.sample_size:
    if sizes is None:
      if box.size:
        T.write('<!--WARNING: No Sample Size indications-->\n')
    else:
      for size in T.entries(sizes):
        T.element('SampleSizeEntry', {'Size': size})
  if not box.size:
    T.element('SampleSizeEntry', {'Size': ''})
  T.done(box, name)

def _render_offsets(box, T, name, entry_name, attr_name, missing):
  offsets = box.offsets
  T.start(box, name, {'EntryCount': len(offsets or ())})
  if offsets is None:
    if box.size:
      T.write(f'<!--Warning: No {missing} indications-->\n')
  else:
    for offset in T.entries(offsets):
      T.element(entry_name, {attr_name: offset})
  if not box.size:
    T.element(entry_name, {attr_name: ''})
  T.done(box, name)

def render_stco(box, T):
  _render_offsets(
      box, T, 'ChunkOffsetBox', 'ChunkEntry', 'offset', 'Chunk Offsets'
  )

def render_co64(box, T):
  _render_offsets(
      box, T, 'ChunkLargeOffsetBox', 'ChunkOffsetEntry', 'offset',
      'Chunk Offsets'
  )

def render_stss(box, T):
  ''' Sync sample box - ISO14496 section 8.6.2.
  '''
  sample_numbers = box.sample_numbers
  T.start(box, 'SyncSampleBox', {'EntryCount': len(sample_numbers or ())})
  if sample_numbers is None:
    if box.size:
      T.write('<!--Warning: No Key Frames indications-->\n')
  else:
    for sample_number in T.entries(sample_numbers):
      T.element('SyncSampleEntry', {'sampleNumber': sample_number})
  if not box.size:
    T.element('SyncSampleEntry', {'sampleNumber': ''})
  T.done(box, 'SyncSampleBox')

def render_stdp(box, T):
  priorities = box.priorities
  T.start(box, 'DegradationPriorityBox', {'EntryCount': len(priorities or ())})
  if priorities is None:
    if box.size:
      T.write('<!--Warning: No Degradation Priority indications-->\n')
  else:
    for priority in T.entries(priorities):
      T.element('DegradationPriorityEntry', {'DegradationPriority': priority})
  if not box.size:
    T.element('DegradationPriorityEntry', {'DegradationPriority': ''})
  T.done(box, 'DegradationPriorityBox')

def sample_dependency(flag: int):
  ''' Decode a sample dependency byte into its
      `(dependsOnOther, dependedOn, hasRedundancy)` names.
  '''
  return (
      SAMPLE_DEPENDENCY_NAMES[(flag >> 4) & 3],
      SAMPLE_DEPENDENCY_NAMES[(flag >> 2) & 3],
      SAMPLE_DEPENDENCY_NAMES[flag & 3],
  )

def render_sdtp(box, T):
  ''' Independent and disposable samples box - ISO14496 section 8.6.4.
  '''
  sample_info = box.sample_info
  sample_count = box.sample_count
  if sample_count is None:
    sample_count = len(sample_info or ())
  T.start(box, 'SampleDependencyTypeBox', {'SampleCount': sample_count})
  if sample_info is None:
    if box.size:
      T.write('<!--Warning: No sample dependencies indications-->\n')
  else:
    for flag in T.entries(sample_info):
      depends, depended, redundant = sample_dependency(flag)
      T.element(
          'SampleDependencyEntry', {
              'dependsOnOther': depends,
              'dependedOn': depended,
              'hasRedundancy': redundant,
          }
      )
  if not box.size:
    any_value = '|'.join(SAMPLE_DEPENDENCY_NAMES)
    T.element(
        'SampleDependencyEntry', {
            'dependsOnOther': any_value,
            'dependedOn': any_value,
            'hasRedundancy': any_value,
        }
    )
  T.done(box, 'SampleDependencyTypeBox')

def render_padb(box, T):
  pad_bits = box.pad_bits
  T.start(box, 'PaddingBitsBox', {'EntryCount': len(pad_bits or ())})
  for bits in T.entries(pad_bits):
    T.element('PaddingBitsEntry', {'PaddingBits': bits})
  if not box.size:
    T.element('PaddingBitsEntry', {'PaddingBits': ''})
  T.done(box, 'PaddingBitsBox')

def render_stsf(box, T):
  entries = list(box.entries or ())
  T.start(box, 'SampleFragmentBox', {'EntryCount': len(entries)})
  for entry in T.entries(entries):
    sizes = list(entry.fragment_sizes or ())
    T.element(
        'SampleFragmentEntry', {
            'SampleNumber': entry.sample_number,
            'FragmentCount': len(sizes),
        },
        close=False
    )
    for size in sizes:
      T.element('FragmentSizeEntry', {'size': size})
    T.end('SampleFragmentEntry')
  if not box.size:
    T.element(
        'SampleFragmentEntry', {
            'SampleNumber': '',
            'FragmentCount': '',
        }, close=False
    )
    T.element('FragmentSizeEntry', {'size': ''})
    T.end('SampleFragmentEntry')
  T.done(box, 'SampleFragmentBox')

def render_subs(box, T):
  ''' Sub-sample information box - ISO14496 section 8.7.7.
  '''
  entries = list(box.entries or ())
  T.start(box, 'SubSampleInformationBox', {'EntryCount': len(entries)})
  for entry in T.entries(entries):
    subsamples = list(entry.subsamples or ())
    T.element(
        'SampleEntry', {
            'SampleDelta': entry.sample_delta,
            'SubSampleCount': len(subsamples),
        },
        close=False
    )
    for subsample in subsamples:
      T.element(
          'SubSample', {
              'Size': subsample.size,
              'Priority': subsample.priority,
              'Discardable': subsample.discardable,
              'Reserved': f'{subsample.reserved or 0:08X}',
          }
      )
    T.end('SampleEntry')
  if not box.size:
    T.element(
        'SampleEntry', {
            'SampleDelta': '',
            'SubSampleCount': '',
        }, close=False
    )
    T.element(
        'SubSample', {
            'Size': '',
            'Priority': '',
            'Discardable': '',
            'Reserved': '',
        }
    )
    T.end('SampleEntry')
  T.done(box, 'SubSampleInformationBox')

def _is_alnum_byte(b: int) -> bool:
  b &= 0xFF
  return b < 0x80 and chr(b).isalnum()

def render_sbgp(box, T):
  ''' Sample to group box - ISO14496 section 8.9.2.
      A version 1 grouping type parameter is shown as a 4 character code
      when its low byte is alphanumeric.
  '''
  attrs = [('grouping_type', fourcc(box.grouping_type))]
  if box.version == 1:
    param = box.grouping_type_parameter
    if isinstance(param, int) and _is_alnum_byte(param):
      param = fourcc(param)
    attrs.append(('grouping_type_parameter', param))
  T.start(box, 'SampleGroupBox', attrs)
  for entry in T.entries(box.entries):
    T.element(
        'SampleGroupBoxEntry', {
            'sample_count': entry.sample_count,
            'group_description_index': entry.group_description_index,
        }
    )
  if not box.size:
    T.element(
        'SampleGroupBoxEntry', {
            'sample_count': '',
            'group_description_index': '',
        }
    )
  T.done(box, 'SampleGroupBox')

def render_roll_entry(entry, T):
  T.element('RollRecoveryEntry', {'roll_distance': entry.roll_distance})

def render_rap_entry(entry, T):
  attrs = [('num_leading_samples_known', bool(entry.num_leading_samples_known))]
  if entry.num_leading_samples_known:
    attrs.append(('num_leading_samples', entry.num_leading_samples))
  T.element('VisualRandomAccessEntry', attrs)

def render_seig_entry(entry, T):
  ''' A common encryption sample group entry;
      the constant IV is shown for protected entries
      with no per sample IV.
  '''
  attrs = [
      ('IsEncrypted', entry.is_protected),
      ('IV_size', entry.per_sample_iv_size),
      ('KID', hex_data(entry.kid or b'')),
  ]
  if entry.is_protected == 1 and not entry.per_sample_iv_size:
    attrs.append(('constant_IV_size', entry.constant_iv_size))
    attrs.append(('constant_IV', hex_data(entry.constant_iv or b'')))
  T.element('CENCSampleEncryptionGroupEntry', attrs)

def render_oinf_entry(entry, T):
  ''' An L-HEVC operating points information entry.
  '''
  mask = entry.scalability_mask or 0
  profile_tier_levels = list(entry.profile_tier_levels or ())
  operating_points = list(entry.operating_points or ())
  dependency_layers = list(entry.dependency_layers or ())
  T.element(
      'OperatingPointsInformation', {
          'scalability_mask':
          f'{mask} ({SCALABILITY_NAMES.get(mask, "unknown")})',
          'num_profile_tier_level': len(profile_tier_levels),
          'num_operating_points': len(operating_points),
          'dependency_layers': len(dependency_layers),
      },
      close=False
  )
  for ptl in profile_tier_levels:
    T.element(
        'ProfileTierLevel', {
            'general_profile_space':
            ptl.general_profile_space,
            'general_tier_flag':
            ptl.general_tier_flag,
            'general_profile_idc':
            ptl.general_profile_idc,
            'general_profile_compatibility_flags':
            ptl.general_profile_compatibility_flags,
            'general_constraint_indicator_flags':
            ptl.general_constraint_indicator_flags,
        }
    )
  for op in operating_points:
    attrs = [
        ('output_layer_set_idx', op.output_layer_set_idx),
        ('max_temporal_id', op.max_temporal_id),
        ('layer_count', op.layer_count),
        ('minPicWidth', op.min_pic_width),
        ('minPicHeight', op.min_pic_height),
        ('maxPicWidth', op.max_pic_width),
        ('maxPicHeight', op.max_pic_height),
        ('maxChromaFormat', op.max_chroma_format),
        ('maxBitDepth', op.max_bit_depth),
        ('frame_rate_info_flag', op.frame_rate_info_flag),
        ('bit_rate_info_flag', op.bit_rate_info_flag),
    ]
    if op.frame_rate_info_flag:
      attrs.append(('avgFrameRate', op.avg_frame_rate))
      attrs.append(('constantFrameRate', op.constant_frame_rate))
    if op.bit_rate_info_flag:
      attrs.append(('maxBitRate', op.max_bit_rate))
      attrs.append(('avgBitRate', op.avg_bit_rate))
    T.element('OperatingPoint', attrs)
  for dep in dependency_layers:
    dependent_on = list(dep.dependent_on_layer_ids or ())
    attrs = [
        ('dependent_layerID', dep.dependent_layer_id),
        ('num_layers_dependent_on', len(dependent_on)),
    ]
    if dependent_on:
      attrs.append(
          ('dependent_on_layerID', ''.join(f'{i} ' for i in dependent_on))
      )
    # one dimension identifier per bit set in the scalability mask
    dimensions = list(dep.dimension_identifiers or ())
    attrs.append(
        (
            'dimension_identifier', ''.join(
                f'{dimensions[j]} '
                for j in range(min(16, len(dimensions)))
                if mask & (1 << j)
            )
        )
    )
    T.element('Layer', attrs)
  T.end('OperatingPointsInformation')

def render_linf_entry(entry, T):
  layers = list(entry or ())
  T.element('LayerInformation', {'num_layers': len(layers)}, close=False)
  for layer in layers:
    T.element(
        'LayerInfoItem', {
            'layer_id': layer.layer_id,
            'min_temporalId': layer.min_temporal_id,
            'max_temporalId': layer.max_temporal_id,
            'sub_layer_presence_flags': layer.sub_layer_presence_flags,
        }
    )
  T.end('LayerInformation')

def render_trif_entry(data: bytes, T):
  ''' A tile region group entry, decoded from its payload.
  '''
  bfr = CornuCopyBuffer.from_bytes(data)
  with Pfx("trif"):
    tile_id = UInt16BE.parse_value(bfr)
    bits = UInt8.parse_value(bfr)
    tile_group = bits >> 7
    attrs = [('ID', tile_id), ('tileGroup', tile_group)]
    if not tile_group:
      T.element('TileRegionGroupEntry', attrs)
      return
    independent = (bits >> 5) & 3
    full_picture = (bits >> 4) & 1
    filter_disabled = (bits >> 3) & 1
    has_dependencies = (bits >> 2) & 1
    attrs.extend(
        (
            ('independent', independent),
            ('full_picture', full_picture),
            ('filter_disabled', filter_disabled),
        )
    )
    if not full_picture:
      attrs.append(('x', UInt16BE.parse_value(bfr)))
      attrs.append(('y', UInt16BE.parse_value(bfr)))
    attrs.append(('w', UInt16BE.parse_value(bfr)))
    attrs.append(('h', UInt16BE.parse_value(bfr)))
    if not has_dependencies:
      T.element('TileRegionGroupEntry', attrs)
      return
    T.element('TileRegionGroupEntry', attrs, close=False)
    for _ in range(UInt16BE.parse_value(bfr)):
      T.element('TileRegionDependency', {'tileID': UInt16BE.parse_value(bfr)})
    T.end('TileRegionGroupEntry')

def render_nalm_entry(data: bytes, T):
  ''' A NAL unit map entry, decoded from its payload.
  '''
  bfr = CornuCopyBuffer.from_bytes(data)
  with Pfx("nalm"):
    bits = UInt8.parse_value(bfr)
    large_size = (bits >> 1) & 1
    rle = bits & 1
    count_type = UInt16BE if large_size else UInt8
    entry_count = count_type.parse_value(bfr)
    T.element('NALUMap', {'rle': rle, 'large_size': large_size}, close=False)
    for _ in range(entry_count):
      attrs = []
      if rle:
        attrs.append(('NALU_startNumber', count_type.parse_value(bfr)))
      attrs.append(('groupID', UInt16BE.parse_value(bfr)))
      T.element('NALUMapEntry', attrs)
    T.end('NALUMap')

def render_default_entry(data: bytes, T):
  data = bytes(data or b'')
  T.element(
      'DefaultSampleGroupDescriptionEntry', {
          'size': len(data),
          'data': data_uri(data),
      }
  )

def _exemplar(T, name, attrs, children=()):
  if children:
    T.element(name, attrs, close=False)
    for child_name, child_attrs in children:
      T.element(child_name, child_attrs)
    T.end(name)
  else:
    T.element(name, attrs)

def _blank(names):
  return {name: '' for name in names.split()}

# grouping type => (entry renderer, exemplar writer)
SGPD_ENTRY_RENDERERS = {
    'roll': (
        render_roll_entry,
        lambda T: _exemplar(T, 'RollRecoveryEntry', _blank('roll_distance')),
    ),
    'rap ': (
        render_rap_entry,
        lambda T: _exemplar(
            T, 'VisualRandomAccessEntry', {
                'num_leading_samples_known': 'yes|no',
                'num_leading_samples': '',
            }
        ),
    ),
    'seig': (
        render_seig_entry,
        lambda T: _exemplar(
            T, 'CENCSampleEncryptionGroupEntry',
            _blank('IsEncrypted IV_size KID constant_IV_size constant_IV')
        ),
    ),
    'oinf': (
        render_oinf_entry,
        lambda T: _exemplar(
            T, 'OperatingPointsInformation', {
                'scalability_mask':
                'Multiview|Spatial scalability|Auxilary|unknown',
                'num_profile_tier_level': '',
                'num_operating_points': '',
                'dependency_layers': '',
            }, (
                (
                    'ProfileTierLevel',
                    _blank(
                        'general_profile_space general_tier_flag'
                        ' general_profile_idc'
                        ' general_profile_compatibility_flags'
                        ' general_constraint_indicator_flags'
                    )
                ),
                (
                    'OperatingPoint',
                    _blank(
                        'output_layer_set_idx max_temporal_id layer_count'
                        ' minPicWidth minPicHeight maxPicWidth maxPicHeight'
                        ' maxChromaFormat maxBitDepth frame_rate_info_flag'
                        ' bit_rate_info_flag avgFrameRate constantFrameRate'
                        ' maxBitRate avgBitRate'
                    )
                ),
                (
                    'Layer',
                    _blank(
                        'dependent_layerID num_layers_dependent_on'
                        ' dependent_on_layerID dimension_identifier'
                    )
                ),
            )
        ),
    ),
    'linf': (
        render_linf_entry,
        lambda T: _exemplar(
            T, 'LayerInformation', _blank('num_layers'), (
                (
                    'LayerInfoItem',
                    _blank(
                        'layer_id min_temporalId max_temporalId'
                        ' sub_layer_presence_flags'
                    )
                ),
            )
        ),
    ),
    'trif': (
        render_trif_entry,
        lambda T: _exemplar(
            T, 'TileRegionGroupEntry',
            _blank(
                'ID tileGroup independent full_picture filter_disabled'
                ' x y w h'
            ), (('TileRegionDependency', _blank('tileID')),)
        ),
    ),
    'nalm': (
        render_nalm_entry,
        lambda T: _exemplar(
            T, 'NALUMap', _blank('rle large_size'),
            (('NALUMapEntry', _blank('NALU_startNumber groupID')),)
        ),
    ),
}

DEFAULT_SGPD_ENTRY_RENDERER = (
    render_default_entry,
    lambda T: _exemplar(
        T, 'DefaultSampleGroupDescriptionEntry', _blank('size data')
    ),
)

def render_sgpd(box, T):
  ''' Sample group description box - ISO14496 section 8.9.3.
      The entries are rendered according to the grouping type.
  '''
  grouping_type = fourcc(box.grouping_type)
  attrs = [('grouping_type', grouping_type)]
  if box.version == 1:
    attrs.append(('default_length', box.default_length))
  if (box.version or 0) >= 2 and box.default_description_index:
    attrs.append(('default_group_index', box.default_description_index))
  T.start(box, 'SampleGroupDescriptionBox', attrs)
  render_entry, render_exemplar = SGPD_ENTRY_RENDERERS.get(
      grouping_type, DEFAULT_SGPD_ENTRY_RENDERER
  )
  for entry in T.entries(box.entries):
    render_entry(entry, T)
  if not box.size:
    render_exemplar(T)
  T.done(box, 'SampleGroupDescriptionBox')

def aux_info_attrs(box):
  ''' The auxiliary information type attributes
      present when flag `1` is set.
  '''
  if not (box.flags or 0) & 1:
    return []
  aux_info_type = box.aux_info_type
  if isinstance(aux_info_type, int) and _is_alnum_byte(aux_info_type >> 24):
    aux_info_type = fourcc(aux_info_type)
  return [
      ('aux_info_type', aux_info_type),
      ('aux_info_type_parameter', box.aux_info_type_parameter),
  ]

def render_saiz(box, T):
  ''' Sample auxiliary information sizes box - ISO14496 section 8.7.8.
  '''
  sizes = box.sizes
  sample_count = box.sample_count
  if sample_count is None:
    sample_count = len(sizes or ())
  attrs = [
      ('default_sample_info_size', box.default_sample_info_size),
      ('sample_count', sample_count),
  ]
  attrs.extend(aux_info_attrs(box))
  T.start(box, 'SampleAuxiliaryInfoSizeBox', attrs)
  if not box.default_sample_info_size:
    for size in T.entries(sizes):
      T.element('SAISize', {'size': size})
  if not box.size:
    T.element('SAISize', {'size': ''})
  T.done(box, 'SampleAuxiliaryInfoSizeBox')

def render_saio(box, T):
  ''' Sample auxiliary information offsets box - ISO14496 section 8.7.9.
  '''
  offsets = list(box.offsets or ())
  attrs = [('entry_count', len(offsets))]
  attrs.extend(aux_info_attrs(box))
  T.start(box, 'SampleAuxiliaryInfoOffsetBox', attrs)
  for offset in T.entries(offsets):
    T.element('SAIChunkOffset', {'offset': offset})
  if not box.size:
    T.element('SAIChunkOffset', {'offset': ''})
  T.done(box, 'SampleAuxiliaryInfoOffsetBox')
