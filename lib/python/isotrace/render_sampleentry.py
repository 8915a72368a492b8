#!/usr/bin/env python3
#
# Renderers for the sample entry boxes and their configuration boxes.
#

''' Trace renderers for the sample description entries:
    the MPEG-4 systems, visual and audio entries,
    the generic entries, the AVC/SVC/HEVC configuration records,
    the 3GPP entries, AC-3, LASeR, metadata and subtitle entries,
    DIMS and WebVTT.
'''

from collections import namedtuple

from .boxes import InvalidStructureError
from .escape import data_uri, fmt_x, fourcc, hex_data, xml_escape_text

# a parameter set from a decoder configuration record
ParameterSet = namedtuple('ParameterSet', 'data')

AVCConfig = namedtuple(
    'AVCConfig', (
        'configuration_version profile_indication profile_compatibility'
        ' level_indication nal_unit_size complete_representation'
        ' chroma_format luma_bit_depth chroma_bit_depth'
        ' sequence_parameter_sets picture_parameter_sets'
        ' sequence_parameter_set_extensions'
    ),
    defaults=(None,) * 12,
)

HEVCConfig = namedtuple(
    'HEVCConfig', (
        'nal_unit_size configuration_version profile_space tier_flag'
        ' profile_idc general_profile_compatibility_flags'
        ' progressive_source_flag interlaced_source_flag'
        ' non_packed_constraint_flag frame_only_constraint_flag'
        ' constraint_indicator_flags level_idc'
        ' min_spatial_segmentation_idc parallelism_type'
        ' chroma_format luma_bit_depth chroma_bit_depth'
        ' avg_frame_rate constant_frame_rate num_temporal_layers'
        ' temporal_id_nested param_arrays'
    ),
    defaults=(None,) * 22,
)

# an array of parameter sets of one NAL unit type
HEVCParamArray = namedtuple('HEVCParamArray', 'nalu_type complete nalus')

# an E-AC-3 independent substream
EC3Stream = namedtuple(
    'EC3Stream', 'fscod bsid bsmod acmod lfon num_dep_sub chan_loc'
)

# the AVC profiles which carry the chroma format and bit depths
AVC_REXT_PROFILES = frozenset(
    (100, 110, 122, 244, 44, 83, 86, 118, 128, 138, 139, 134, 135)
)

CHROMA_FORMAT_NAMES = {
    0: 'Monochrome',
    1: 'YUV 4:2:0',
    2: 'YUV 4:2:2',
    3: 'YUV 4:4:4',
}

# the 3GPP audio entry names by entry type
GPP_AUDIO_NAMES = {
    'samr': 'AMRSampleDescriptionBox',
    'sawb': 'AMR_WB_SampleDescriptionBox',
    'sevc': 'EVRCSampleDescriptionBox',
    'sqcp': 'QCELPSampleDescriptionBox',
    'ssmv': 'SMVSampleDescriptionBox',
}

# the 3GPP configuration box types and the codec each configures
GPP_CONFIG_CODECS = {
    'damr': 'AMR',
    'devc': 'EVRC',
    'dqcp': 'QCELP',
    'dsmv': 'SMV',
    'd263': 'H263',
}

# the metadata and subtitle entry names by entry type
METX_NAMES = {
    'metx': 'XMLMetaDataSampleEntryBox',
    'mett': 'TextMetaDataSampleEntryBox',
    'sbtt': 'SubtitleSampleEntryBox',
    'stxt': 'SimpleTextSampleEntryBox',
    'stpp': 'XMLSubtitleSampleEntryBox',
}

def chroma_format_name(chroma_format):
  if chroma_format is None:
    return None
  return CHROMA_FORMAT_NAMES.get(chroma_format, 'Unknown')

def visual_entry_attrs(box):
  ''' The attributes common to the visual sample entries.
  '''
  attrs = [
      ('DataReferenceIndex', box.data_reference_index),
      ('Width', box.width),
      ('Height', box.height),
      ('XDPI', box.horiz_res),
      ('YDPI', box.vert_res),
      ('BitDepth', box.bit_depth),
  ]
  if box.compressor_name:
    attrs.append(('CompressorName', box.compressor_name))
  return attrs

def audio_entry_attrs(box):
  ''' The attributes common to the audio sample entries.
  '''
  return [
      ('DataReferenceIndex', box.data_reference_index),
      ('SampleRate', box.samplerate),
      ('Channels', box.channel_count),
      ('BitsPerSample', box.bits_per_sample),
  ]

def render_mp4s(box, T):
  T.start(
      box, 'MPEGSystemsSampleDescriptionBox',
      {'DataReferenceIndex': box.data_reference_index}
  )
  if box.size and not box.children_of_type('esds'):
    T.write(
        '<!--INVALID MP4 FILE: ESDBox not present'
        ' in MPEG Sample Description or corrupted-->\n'
    )
  T.dump_slots(box, ('esds', 'sinf'))
  T.done(box, 'MPEGSystemsSampleDescriptionBox')

def render_mp4v(box, T):
  ''' The MPEG-4 visual sample entry, also used for the AVC, SVC
      and HEVC entries and the protected 'encv' entry.
  '''
  if box.children_of_type('avcC'):
    name = 'AVCSampleEntryBox'
  else:
    name = 'MPEGVisualSampleDescriptionBox'
  T.start(box, name, visual_entry_attrs(box))
  T.dump_slots(
      box, (
          'esds', 'hvcC', 'avcC', 'm4ds', 'svcC', 'lhvC', 'btrt', 'sinf',
          'pasp', 'rvcc'
      )
  )
  T.done(box, name)

def render_mp4a(box, T):
  T.start(box, 'MPEGAudioSampleDescriptionBox', audio_entry_attrs(box))
  if box.size and not box.children_of_type('esds'):
    T.write(
        '<!--INVALID MP4 FILE: ESDBox not present'
        ' in MPEG Sample Description or corrupted-->\n'
    )
  T.dump_slots(box, ('esds', 'sinf'))
  T.done(box, 'MPEGAudioSampleDescriptionBox')

def render_gnrm(box, T):
  ''' A generic sample entry for an unknown entry type,
      displayed with its real entry type.
  '''
  T.start(
      box,
      'SampleDescriptionBox', {
          'DataReferenceIndex': box.data_reference_index,
          'ExtensionDataSize': box.data_size,
      },
      display_type=box.entry_type
  )
  T.done(box, 'SampleDescriptionBox')

def render_gnrv(box, T):
  T.start(
      box,
      'VisualSampleDescriptionBox', {
          'DataReferenceIndex': box.data_reference_index,
          'Version': box.entry_version,
          'Revision': box.revision,
          'Vendor': box.vendor,
          'TemporalQuality': box.temporal_quality,
          'SpacialQuality': box.spatial_quality,
          'Width': box.width,
          'Height': box.height,
          'HorizontalResolution': box.horiz_res,
          'VerticalResolution': box.vert_res,
          'CompressorName': box.compressor_name,
          'BitDepth': box.bit_depth,
      },
      display_type=box.entry_type
  )
  T.done(box, 'VisualSampleDescriptionBox')

def render_gnra(box, T):
  T.start(
      box,
      'AudioSampleDescriptionBox', {
          'DataReferenceIndex': box.data_reference_index,
          'Version': box.entry_version,
          'Revision': box.revision,
          'Vendor': box.vendor,
          'ChannelCount': box.channel_count,
          'BitsPerSample': box.bits_per_sample,
          'Samplerate': box.samplerate,
      },
      display_type=box.entry_type
  )
  T.done(box, 'AudioSampleDescriptionBox')

def render_esds(box, T):
  ''' Elementary stream descriptor box - ISO14496-14 section 5.6.
      The descriptor is rendered by the trace's descriptor dumper.
  '''
  T.start(box, 'MPEG4ESDescriptorBox')
  if box.descriptor is not None:
    T.dump_descriptor(box.descriptor)
  elif box.size:
    T.write(
        '<!--INVALID MP4 FILE: ESD not present'
        ' in MPEG Sample Description or corrupted-->\n'
    )
  T.done(box, 'MPEG4ESDescriptorBox')

def render_m4ds(box, T):
  T.start(box, 'MPEG4ExtensionDescriptorsBox')
  for descriptor in box.descriptors or ():
    T.dump_descriptor(descriptor, 'Descriptor')
  T.done(box, 'MPEG4ExtensionDescriptorsBox')

def _parameter_sets(T, name, parameter_sets):
  for ps in parameter_sets or ():
    data = bytes(ps.data if isinstance(ps, ParameterSet) else ps)
    T.element(name, {'size': len(data), 'content': data_uri(data)})

def render_avcc(box, T):
  ''' The AVC or SVC decoder configuration box - ISO14496-15 section 5.3.3.
  '''
  kind = 'SVC' if box.box_type == 'svcC' else 'AVC'
  box_name = f'{kind}ConfigurationBox'
  record_name = f'{kind}DecoderConfigurationRecord'
  T.start(box, box_name)
  config = box.config
  if config is None:
    if box.size:
      T.element(record_name, close=False)
      T.comment('INVALID AVC ENTRY : no AVC/SVC config record')
    else:
      T.element(
          record_name, {
              name: ''
              for name in (
                  'configurationVersion', 'AVCProfileIndication',
                  'profile_compatibility', 'AVCLevelIndication',
                  'nal_unit_size', 'complete_representation',
                  'chroma_format', 'luma_bit_depth', 'chroma_bit_depth'
              )
          },
          close=False
      )
      for ps_name in ('SequenceParameterSet', 'PictureParameterSet',
                      'SequenceParameterSetExtensions'):
        T.element(ps_name, {'size': '', 'content': ''})
    T.end(record_name)
    T.done(box, box_name)
    return
  attrs = [
      ('configurationVersion', config.configuration_version),
      ('AVCProfileIndication', config.profile_indication),
      ('profile_compatibility', config.profile_compatibility),
      ('AVCLevelIndication', config.level_indication),
      ('nal_unit_size', config.nal_unit_size),
  ]
  if kind == 'SVC':
    attrs.append(('complete_representation', config.complete_representation))
  elif config.profile_indication in AVC_REXT_PROFILES:
    attrs.extend(
        (
            ('chroma_format', chroma_format_name(config.chroma_format)),
            ('luma_bit_depth', config.luma_bit_depth),
            ('chroma_bit_depth', config.chroma_bit_depth),
        )
    )
  T.element(record_name, attrs, close=False)
  _parameter_sets(T, 'SequenceParameterSet', config.sequence_parameter_sets)
  _parameter_sets(T, 'PictureParameterSet', config.picture_parameter_sets)
  _parameter_sets(
      T, 'SequenceParameterSetExtensions',
      config.sequence_parameter_set_extensions
  )
  T.end(record_name)
  T.done(box, box_name)

def render_hvcc(box, T):
  ''' The HEVC or L-HEVC decoder configuration box - ISO14496-15 section 8.3.3.
      The profile, tier, level and format fields are HEVC only.
  '''
  kind = 'HEVC' if box.box_type == 'hvcC' else 'L-HEVC'
  is_hevc = kind == 'HEVC'
  box_name = f'{kind}ConfigurationBox'
  record_name = f'{kind}DecoderConfigurationRecord'
  T.start(box, box_name)
  config = box.config
  if config is None:
    if box.size:
      T.comment('INVALID HEVC ENTRY: no HEVC/SHVC config record')
    else:
      names = ['nal_unit_size', 'configurationVersion']
      if is_hevc:
        names.extend(
            (
                'profile_space', 'tier_flag', 'profile_idc',
                'general_profile_compatibility_flags',
                'progressive_source_flag', 'interlaced_source_flag',
                'non_packed_constraint_flag', 'frame_only_constraint_flag',
                'constraint_indicator_flags', 'level_idc'
            )
        )
      names.extend(('min_spatial_segmentation_idc', 'parallelismType'))
      if is_hevc:
        names.extend(
            (
                'chroma_format', 'luma_bit_depth', 'chroma_bit_depth',
                'avgFrameRate', 'constantFrameRate', 'numTemporalLayers',
                'temporalIdNested'
            )
        )
      T.element(record_name, {name: '' for name in names}, close=False)
      T.element('ParameterSetArray', {'nalu_type': '', 'complete_set': ''},
                close=False)
      T.element('ParameterSet', {'size': '', 'content': ''})
      T.end('ParameterSetArray')
      T.end(record_name)
    T.done(box, box_name)
    return
  attrs = [
      ('nal_unit_size', config.nal_unit_size),
      ('configurationVersion', config.configuration_version),
  ]
  if is_hevc:
    attrs.extend(
        (
            ('profile_space', config.profile_space),
            ('tier_flag', config.tier_flag),
            ('profile_idc', config.profile_idc),
            (
                'general_profile_compatibility_flags',
                config.general_profile_compatibility_flags
            ),
            ('progressive_source_flag', config.progressive_source_flag),
            ('interlaced_source_flag', config.interlaced_source_flag),
            ('non_packed_constraint_flag', config.non_packed_constraint_flag),
            ('frame_only_constraint_flag', config.frame_only_constraint_flag),
            ('constraint_indicator_flags', config.constraint_indicator_flags),
            ('level_idc', config.level_idc),
        )
    )
  attrs.extend(
      (
          ('min_spatial_segmentation_idc', config.min_spatial_segmentation_idc),
          ('parallelismType', config.parallelism_type),
      )
  )
  if is_hevc:
    attrs.extend(
        (
            ('chroma_format', chroma_format_name(config.chroma_format)),
            ('luma_bit_depth', config.luma_bit_depth),
            ('chroma_bit_depth', config.chroma_bit_depth),
            ('avgFrameRate', config.avg_frame_rate),
            ('constantFrameRate', config.constant_frame_rate),
            ('numTemporalLayers', config.num_temporal_layers),
            ('temporalIdNested', config.temporal_id_nested),
        )
    )
  T.element(record_name, attrs, close=False)
  for param_array in config.param_arrays or ():
    T.element(
        'ParameterSetArray', {
            'nalu_type': param_array.nalu_type,
            'complete_set': param_array.complete,
        },
        close=False
    )
    _parameter_sets(T, 'ParameterSet', param_array.nalus)
    T.end('ParameterSetArray')
  T.end(record_name)
  T.done(box, box_name)

def render_btrt(box, T):
  T.start(
      box, 'BitRateBox', {
          'BufferSizeDB': box.buffer_size_db,
          'avgBitRate': box.avg_bitrate,
          'maxBitRate': box.max_bitrate,
      }
  )
  T.done(box, 'BitRateBox')

def render_pasp(box, T):
  T.start(
      box, 'PixelAspectRatioBox', {
          'hSpacing': box.h_spacing,
          'vSpacing': box.v_spacing,
      }
  )
  T.done(box, 'PixelAspectRatioBox')

def _render_gpp_config(box, T):
  if box.size and not any(child.box_type in GPP_CONFIG_CODECS
                          for child in box.boxes):
    T.comment('INVALID 3GPP FILE: Config not present in Sample Description')
  T.dump_slots(box, tuple(GPP_CONFIG_CODECS))

def render_gppa(box, T):
  ''' A 3GPP audio sample entry, named for its codec.
  '''
  name = GPP_AUDIO_NAMES.get(box.box_type, '3GPAudioSampleDescriptionBox')
  T.start(box, name, audio_entry_attrs(box))
  _render_gpp_config(box, T)
  T.done(box, name)

def render_gppv(box, T):
  ''' A 3GPP visual sample entry, named for its codec.
  '''
  if box.box_type == 's263':
    name = 'H263SampleDescriptionBox'
  else:
    name = '3GPVisualSampleDescriptionBox'
  T.start(box, name, visual_entry_attrs(box))
  _render_gpp_config(box, T)
  T.done(box, name)

def render_gppc(box, T):
  ''' A 3GPP decoder configuration box, laid out according to its codec.
  '''
  codec = GPP_CONFIG_CODECS.get(box.box_type)
  if codec is None:
    raise InvalidStructureError(
        f'unknown 3GPP configuration box type {box.box_type!r}'
    )
  name = f'{codec}ConfigurationBox'
  attrs = [
      ('Vendor', fourcc(box.vendor)),
      ('Version', box.decoder_version),
  ]
  if codec == 'AMR':
    attrs.extend(
        (
            ('FramesPerSample', box.frames_per_sample),
            ('SupportedModes', fmt_x(box.mode_set)),
            ('ModeRotating', box.mode_change_period),
        )
    )
  elif codec == 'H263':
    attrs.extend((('Profile', box.profile), ('Level', box.level)))
  else:
    attrs.append(('FramesPerSample', box.frames_per_sample))
  T.start(box, name, attrs)
  T.done(box, name)

def render_dac3(box, T):
  ''' The AC-3 specific box, or the E-AC-3 specific box
      when `is_ec3` is true, displayed as 'dec3'.
  '''
  if box.is_ec3:
    streams = list(box.streams or ())
    T.start(
        box,
        'EC3SpecificBox', {
            'nb_streams': len(streams),
            'data_rate': box.bit_rate_code,
        },
        display_type='dec3'
    )
    for stream in streams:
      T.element(
          'EC3StreamConfig', {
              'fscod': stream.fscod,
              'bsid': stream.bsid,
              'bsmod': stream.bsmod,
              'acmod': stream.acmod,
              'lfon': stream.lfon,
              'num_sub_dep': stream.num_dep_sub,
              'chan_loc': stream.chan_loc,
          }
      )
    T.done(box, 'EC3SpecificBox')
    return
  T.start(
      box, 'AC3SpecificBox', {
          'fscod': box.fscod,
          'bsid': box.bsid,
          'bsmod': box.bsmod,
          'acmod': box.acmod,
          'lfon': box.lfon,
          'bit_rate_code': box.bit_rate_code,
      }
  )
  T.done(box, 'AC3SpecificBox')

def render_ac3(box, T):
  ''' The AC-3 sample entry, or the E-AC-3 entry displayed as 'ec-3'.
  '''
  if box.is_ec3:
    name = 'EC3SampleEntryBox'
    display_type = 'ec-3'
  else:
    name = 'AC3SampleEntryBox'
    display_type = None
  T.start(box, name, audio_entry_attrs(box), display_type=display_type)
  if box.size and not box.children_of_type('dac3'):
    T.dump_box(None, 'dec3' if box.is_ec3 else 'dac3')
  T.dump_slots(box, ('dac3',))
  T.done(box, name)

def render_lsrc(box, T):
  T.start(
      box, 'LASeRConfigurationBox',
      {'LASeRHeader': hex_data(box.header or b'')}
  )
  T.done(box, 'LASeRConfigurationBox')

def render_lsr1(box, T):
  T.start(
      box, 'LASeRSampleEntryBox',
      {'DataReferenceIndex': box.data_reference_index}
  )
  T.dump_slots(box, ('lsrC', 'm4ds'))
  T.done(box, 'LASeRSampleEntryBox')

def render_metx(box, T):
  ''' The metadata and subtitle sample entries
      'metx', 'mett', 'sbtt', 'stxt' and 'stpp'.
  '''
  box_type = box.box_type
  name = METX_NAMES.get(box_type, 'UnknownTextSampleEntryBox')
  if box_type in ('metx', 'stpp'):
    attrs = [('namespace', box.xml_namespace)]
    if box.xml_schema_loc:
      attrs.append(('schema_location', box.xml_schema_loc))
    if box_type == 'metx':
      if box.content_encoding:
        attrs.append(('content_encoding', box.content_encoding))
    elif box.mime_type:
      attrs.append(('auxiliary_mime_types', box.mime_type))
  else:
    attrs = [('mime_type', box.mime_type)]
    if box.content_encoding:
      attrs.append(('content_encoding', box.content_encoding))
  T.start(box, name, attrs)
  T.dump_slots(box, ('txtc', 'sinf'))
  T.done(box, name)

def render_txtc(box, T):
  T.start(box, 'TextConfigBox')
  if box.config:
    T.write(xml_escape_text(box.config))
    T.write('\n')
  T.done(box, 'TextConfigBox')

def render_dims(box, T):
  T.start(
      box, 'DIMSSampleEntryBox',
      {'dataReferenceIndex': box.data_reference_index}
  )
  T.dump_slots(box, ('dimC', 'diST', 'sinf'))
  T.done(box, 'DIMSSampleEntryBox')

def render_dimc(box, T):
  T.start(
      box, 'DIMSSceneConfigBox', {
          'profile': box.profile,
          'level': box.level,
          'pathComponents': box.path_components,
          'useFullRequestHosts': box.full_request_host,
          'streamType': box.stream_type,
          'containsRedundant': box.contains_redundant,
          'textEncoding': box.text_encoding,
          'contentEncoding': box.content_encoding,
      }
  )
  T.done(box, 'DIMSSceneConfigBox')

def render_dist(box, T):
  T.start(box, 'DIMSScriptTypesBox', {'types': box.content_script_types})
  T.done(box, 'DIMSScriptTypesBox')

def render_wvtt(box, T):
  ''' The WebVTT sample entry.
  '''
  T.start(
      box, 'WVTTSampleEntryBox',
      {'DataReferenceIndex': box.data_reference_index}
  )
  T.dump_slots(box, ('vttC', 'btrt'))
  T.done(box, 'WVTTSampleEntryBox')
