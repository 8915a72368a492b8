#!/usr/bin/env python3
#
# Renderers for the movie structure boxes.
#

''' Trace renderers for the movie structure boxes:
    the file and movie level boxes, tracks, media, handlers,
    data references, track references and groups,
    user data and the WebVTT string boxes.

    Each renderer is a function `render_`*name*`(box, T)`
    where `T` is the `isotrace.trace.Trace`.
'''

from collections import namedtuple

from cs.logutils import warning

from .boxes import InvalidStructureError
from .escape import (
    fixed_16_16,
    fixed_8_8,
    fmt_float,
    fourcc,
    format_duration,
)
from .render_fragments import render_tfxd
from .render_protection import (
    render_piff_psec,
    render_piff_pssh,
    render_piff_tenc,
)

# a chapter from a 'chpl' box, start_time in 100ns units
ChapterEntry = namedtuple('ChapterEntry', 'name start_time')

# an entry from a 'pdin' box
DownloadInfo = namedtuple('DownloadInfo', 'rate estimated_time')

# an entry from an 'elst' box
EditListEntry = namedtuple(
    'EditListEntry', 'segment_duration media_time media_rate'
)

# the 'chpl' clock runs at 10MHz
CHAPTER_TIMESCALE = 10000000

# the unity transformation matrix
IDENTITY_MATRIX = (0x10000, 0, 0, 0, 0x10000, 0, 0, 0, 0x40000000)

# box types which can serve as the media header of a 'minf' box
MEDIA_HEADER_TYPES = (
    'vmhd', 'smhd', 'hmhd', 'nmhd', 'sthd', 'odhd', 'crhd', 'sdhd'
)

def unpack_language(language):
  ''' Return the 3 character ISO 639-2/T code from `language`,
      which may be the 16 bit packed form or already a string.
  '''
  if language is None:
    return None
  if isinstance(language, int):
    return bytes(
        [
            x + 0x60 for x in (
                (language >> 10) & 0x1f, (language >> 5) & 0x1f,
                language & 0x1f
            )
        ]
    ).decode('ascii')
  return str(language)

def pascal_name(name):
  ''' Strip a leading Pascal style length byte from `name`
      if it exactly matches the length of the remainder.
  '''
  if isinstance(name, (bytes, bytearray)):
    name = bytes(name).decode('utf-8', errors='replace')
  if name and ord(name[0]) == len(name) - 1:
    return name[1:]
  return name

def render_unknown(box, T):
  ''' An unknown box type, displayed with its original type code.
  '''
  T.start(box, 'UnknownBox', display_type=box.original_type)
  T.done(box, 'UnknownBox')

def render_free(box, T):
  name = 'FreeSpaceBox' if box.box_type == 'free' else 'SkipBox'
  T.start(box, name, {'dataSize': box.data_size}, close=True)

def render_mdat(box, T):
  T.start(box, 'MediaDataBox', {'dataSize': box.data_size}, close=True)

def render_moov(box, T):
  ''' Movie box - ISO14496 section 8.2.1.
  '''
  T.start(box, 'MovieBox')
  T.dump_slots(
      box, ('iods', 'meta', 'mvhd', 'mvex', 'trak', 'udta'),
      required=('mvhd',)
  )
  T.done(box, 'MovieBox')

def render_mvhd(box, T):
  ''' Movie header box - ISO14496 section 8.2.2.
  '''
  T.start(
      box, 'MovieHeaderBox', {
          'CreationTime': box.creation_time,
          'ModificationTime': box.modification_time,
          'TimeScale': box.timescale,
          'Duration': box.duration,
          'NextTrackID': box.next_track_id,
      }
  )
  T.done(box, 'MovieHeaderBox')

def render_mdhd(box, T):
  ''' Media header box - ISO14496 section 8.4.2.
      The `language` may be packed or a 3 character string.
  '''
  T.start(
      box, 'MediaHeaderBox', {
          'CreationTime': box.creation_time,
          'ModificationTime': box.modification_time,
          'TimeScale': box.timescale,
          'Duration': box.duration,
          'LanguageCode': unpack_language(box.language),
      }
  )
  T.done(box, 'MediaHeaderBox')

def render_vmhd(box, T):
  T.start(box, 'VideoMediaHeaderBox')
  T.done(box, 'VideoMediaHeaderBox')

def render_smhd(box, T):
  T.start(box, 'SoundMediaHeaderBox')
  T.done(box, 'SoundMediaHeaderBox')

def render_hmhd(box, T):
  T.start(
      box, 'HintMediaHeaderBox', {
          'MaximumPDUSize': box.max_pdu_size,
          'AveragePDUSize': box.avg_pdu_size,
          'MaxBitRate': box.max_bitrate,
          'AverageBitRate': box.avg_bitrate,
      }
  )
  T.done(box, 'HintMediaHeaderBox')

def render_nmhd(box, T):
  ''' The null media header, also used by the MPEG-4 systems streams.
  '''
  T.start(box, 'MPEGMediaHeaderBox')
  T.done(box, 'MPEGMediaHeaderBox')

def render_dinf(box, T):
  T.start(box, 'DataInformationBox')
  T.dump_slots(box, ('dref',), required=('dref',))
  T.done(box, 'DataInformationBox')

def render_url(box, T):
  ''' A URL data entry; with no `location` the media data
      must be in this file, indicated by flag `1`.
  '''
  location = box.location
  T.start(
      box, 'URLDataEntryBox',
      None if location is None else {'URL': location}
  )
  if location is None and box.size:
    if not (box.flags or 0) & 1:
      T.write('<!--ERROR: No location indicated-->\n')
    else:
      T.write('<!--Data is contained in the movie file-->\n')
  T.done(box, 'URLDataEntryBox')

def render_urn(box, T):
  attrs = []
  if box.name_urn is not None:
    attrs.append(('URN', box.name_urn))
  if box.location is not None:
    attrs.append(('URL', box.location))
  T.start(box, 'URNDataEntryBox', attrs)
  T.done(box, 'URNDataEntryBox')

def render_dref(box, T):
  T.start(box, 'DataReferenceBox')
  T.dump_children(box)
  T.done(box, 'DataReferenceBox')

def render_cprt(box, T):
  T.start(
      box, 'CopyrightBox', {
          'LanguageCode': unpack_language(box.language),
          'CopyrightNotice': box.notice,
      }
  )
  T.done(box, 'CopyrightBox')

def render_kind(box, T):
  T.start(
      box, 'KindBox', {
          'schemeURI': box.scheme_uri,
          'value': box.value or '',
      }
  )
  T.done(box, 'KindBox')

def render_chpl(box, T):
  ''' Nero chapter list, start times on a 10MHz clock.
  '''
  T.start(box, 'ChapterListBox')
  if box.size:
    for chapter in T.entries(box.chapters):
      T.element(
          'Chapter', {
              'name':
              chapter.name,
              'startTime':
              format_duration(chapter.start_time, CHAPTER_TIMESCALE),
          }
      )
  else:
    T.element('Chapter', {'name': '', 'startTime': ''})
  T.done(box, 'ChapterListBox')

def render_pdin(box, T):
  ''' Progressive download information - ISO14496 section 8.1.3.
  '''
  T.start(box, 'ProgressiveDownloadBox')
  if box.size:
    for info in T.entries(box.entries):
      T.element(
          'DownloadInfo', {
              'rate': info.rate,
              'estimatedTime': info.estimated_time,
          }
      )
  else:
    T.element('DownloadInfo', {'rate': '', 'estimatedTime': ''})
  T.done(box, 'ProgressiveDownloadBox')

def render_hdlr(box, T):
  ''' Handler reference box - ISO14496 section 8.4.3.
  '''
  T.start(
      box, 'HandlerBox', {
          'hdlrType': fourcc(box.handler_type),
          'Name': pascal_name(box.name),
          'reserved1': box.reserved1,
          'reserved2': box.reserved2,
      }
  )
  T.done(box, 'HandlerBox')

def render_iods(box, T):
  T.start(box, 'ObjectDescriptorBox')
  if box.descriptor is not None:
    T.dump_descriptor(box.descriptor, 'ObjectDescriptor')
  elif box.size:
    T.write('<!--WARNING: Object Descriptor not present-->\n')
  T.done(box, 'ObjectDescriptorBox')

def render_trak(box, T):
  ''' Track box - ISO14496 section 8.3.1.
  '''
  T.start(box, 'TrackBox')
  if box.size and not box.children_of_type('tkhd'):
    T.write('<!--INVALID FILE: Missing Track Header-->\n')
  T.dump_slots(
      box, ('tkhd', 'tref', 'meta', 'edts', 'mdia', 'trgr', 'udta')
  )
  T.done(box, 'TrackBox')

def render_tkhd(box, T):
  ''' Track header box - ISO14496 section 8.3.2.
      A track with a volume is audio and shows no dimensions,
      otherwise the dimensions, layer and matrix are shown
      when there are dimensions.
  '''
  attrs = [
      ('CreationTime', box.creation_time),
      ('ModificationTime', box.modification_time),
      ('TrackID', box.track_id),
      ('Duration', box.duration),
  ]
  if box.alternate_group:
    attrs.append(('AlternateGroupID', box.alternate_group))
  has_dimensions = bool(box.width or box.height)
  if box.volume:
    attrs.append(('Volume', fmt_float(fixed_8_8(box.volume))))
  elif has_dimensions:
    attrs.append(('Width', fmt_float(fixed_16_16(box.width or 0))))
    attrs.append(('Height', fmt_float(fixed_16_16(box.height or 0))))
    if box.layer:
      attrs.append(('Layer', box.layer))
  T.start(box, 'TrackHeaderBox', attrs)
  if has_dimensions:
    matrix = list(box.matrix or IDENTITY_MATRIX)
    T.element(
        'Matrix', [
            (f'm{row+1}{col+1}', f'0x{matrix[row*3+col]:08x}')
            for row in range(3)
            for col in range(3)
        ]
    )
  T.done(box, 'TrackHeaderBox')

def render_tref(box, T):
  T.start(box, 'TrackReferenceBox')
  T.dump_children(box)
  T.done(box, 'TrackReferenceBox')

def render_reftype(box, T):
  ''' A track reference of kind `reference_type`,
      displayed with the reference kind as its type.
      A reference with no kind is not rendered.
  '''
  reference_type = box.reference_type
  if not reference_type:
    warning("%s: no reference_type, not rendered", box)
    return
  T.start(
      box,
      'TrackReferenceTypeBox',
      {'Tracks': ''.join(f' {track_id}' for track_id in box.track_ids or ())},
      display_type=reference_type,
  )
  T.done(box, 'TrackReferenceTypeBox')

def render_edts(box, T):
  T.start(box, 'EditBox')
  T.dump_slots(box, ('elst',), required=('elst',))
  T.done(box, 'EditBox')

def render_elst(box, T):
  ''' Edit list box - ISO14496 section 8.6.6.
  '''
  entries = list(box.entries or ())
  T.start(box, 'EditListBox', {'EntryCount': len(entries)})
  for entry in T.entries(entries):
    T.element(
        'EditListEntry', {
            'Duration': entry.segment_duration,
            'MediaTime': entry.media_time,
            'MediaRate': entry.media_rate,
        }
    )
  if not box.size:
    T.element('EditListEntry', {'Duration': '', 'MediaTime': '', 'MediaRate': ''})
  T.done(box, 'EditListBox')

def render_udta(box, T):
  T.start(box, 'UserDataBox')
  T.dump_children(box)
  T.done(box, 'UserDataBox')

def render_mdia(box, T):
  ''' Media box - ISO14496 section 8.4.1.
  '''
  T.start(box, 'MediaBox')
  T.dump_slots(
      box, ('mdhd', 'hdlr', 'minf'), required=('mdhd', 'hdlr', 'minf')
  )
  T.done(box, 'MediaBox')

def render_minf(box, T):
  ''' Media information box - ISO14496 section 8.4.4.
      The media header is whichever of the media header types is present.
  '''
  T.start(box, 'MediaInformationBox')
  if box.size and not any(child.box_type in MEDIA_HEADER_TYPES
                          for child in box.boxes):
    T.dump_box(None, 'nmhd')
  T.dump_slots(
      box, MEDIA_HEADER_TYPES + ('dinf', 'stbl'), required=('dinf', 'stbl')
  )
  T.done(box, 'MediaInformationBox')

def render_elng(box, T):
  T.start(box, 'ExtendedLanguageBox', {'LanguageCode': box.extended_language})
  T.done(box, 'ExtendedLanguageBox')

def render_ftyp(box, T):
  ''' File type box, also the segment type box 'styp'.
  '''
  name = 'FileTypeBox' if box.box_type == 'ftyp' else 'SegmentTypeBox'
  T.start(
      box, name, {
          'MajorBrand': fourcc(box.major_brand),
          'MinorVersion': box.minor_version,
      }
  )
  for brand in box.compatible_brands or ():
    T.element('BrandEntry', {'AlternateBrand': fourcc(brand)})
  if not box.size:
    T.element('BrandEntry', {'AlternateBrand': '4CC'})
  T.done(box, name)

def render_void(box, T):
  T.start(box, 'VoidBox')
  T.done(box, 'VoidBox')

def render_uuid_unknown(box, T):
  T.start(box, 'UnknownUUIDBox')
  T.done(box, 'UnknownUUIDBox')

# renderers for extension boxes by their recognised internal type
UUID_RENDERERS = {
    'TENC': render_piff_tenc,
    'PSEC': render_piff_psec,
    'PSSH': render_piff_pssh,
    'TFXD': render_tfxd,
    'MSSM': render_uuid_unknown,
    'TFRF': render_uuid_unknown,
    'UNKN': render_uuid_unknown,
}

def render_uuid(box, T):
  ''' A user extension box, dispatched on its `internal_type`,
      the recognised kind of its extended type.
      An unrecognised `internal_type` raises `InvalidStructureError`.
  '''
  internal_type = box.internal_type or 'UNKN'
  try:
    renderer = UUID_RENDERERS[internal_type]
  except KeyError as e:
    raise InvalidStructureError(
        f'unsupported extension box kind {internal_type!r}'
    ) from e
  renderer(box, T)

def render_rvcc(box, T):
  attrs = [('predefined', box.predefined_rvc_config)]
  if not box.predefined_rvc_config:
    attrs.append(('rvc_meta_idx', box.rvc_meta_idx))
  T.start(box, 'RVCConfigurationBox', attrs)
  T.done(box, 'RVCConfigurationBox')

def render_trgr(box, T):
  T.start(box, 'TrackGroupBox')
  T.dump_children(box)
  T.done(box, 'TrackGroupBox')

def render_trgt(box, T):
  ''' A track group of kind `group_type`, displayed with that as its type.
  '''
  T.start(
      box,
      'TrackGroupTypeBox',
      {'track_group_id': box.track_group_id},
      display_type=box.group_type,
  )
  T.done(box, 'TrackGroupTypeBox')

# element names for the WebVTT boxes holding just a string
VTT_STRING_BOX_NAMES = {
    'vttC': 'WebVTTConfigurationBox',
    'ctim': 'CueTimeBox',
    'iden': 'CueIDBox',
    'sttg': 'CueSettingsBox',
    'payl': 'CuePayloadBox',
    'vttA': 'VTTAdditionalCueBox',
}

def render_boxstring(box, T):
  ''' A WebVTT box whose content is a single string,
      written as character data.
  '''
  name = VTT_STRING_BOX_NAMES.get(box.box_type, 'StringBox')
  T.start(box, name)
  text = box.string or ''
  T.write(f'<![CDATA[{text.replace("]]>", "]]]]><![CDATA[>")}]]>\n')
  T.done(box, name)

def render_vtcu(box, T):
  T.start(box, 'VTTCueBox')
  T.dump_slots(box, ('iden', 'ctim', 'sttg', 'payl'))
  T.done(box, 'VTTCueBox')

def render_vtte(box, T):
  T.start(box, 'VTTEmptyCueBox')
  T.done(box, 'VTTEmptyCueBox')
