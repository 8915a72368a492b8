#!/usr/bin/env python3
#
# Renderers for the meta box, item boxes and iTunes style tags.
#

''' Trace renderers for the `meta` box and its item information,
    location, reference and property boxes,
    and for the iTunes style `ilst` tag list.
'''

from collections import namedtuple

from cs.logutils import warning

from .escape import fourcc, hex_data

ItemLocationEntry = namedtuple(
    'ItemLocationEntry',
    'item_id data_reference_index base_offset construction_method extents'
)
ItemExtent = namedtuple('ItemExtent', 'extent_offset extent_length extent_index')
AssociationEntry = namedtuple('AssociationEntry', 'item_id associations')
PropertyAssociation = namedtuple(
    'PropertyAssociation', 'property_index essential'
)

# the order in which the meta box renders its children
META_SLOTS = ('hdlr', 'pitm', 'dinf', 'iloc', 'ipro', 'iinf', 'ipmc', 'iref', 'iprp')

# element names for the iTunes tags
APPLE_TAG_NAMES = {
    '\xa9nam': 'NameBox',
    '\xa9cmt': 'CommentBox',
    '\xa9day': 'CreatedBox',
    '\xa9ART': 'ArtistBox',
    '\xa9trk': 'TrackBox',
    '\xa9alb': 'AlbumBox',
    '\xa9com': 'CompositorBox',
    '\xa9wrt': 'WriterBox',
    '\xa9too': 'ToolBox',
    '\xa9cpy': 'CopyrightBox',
    '\xa9des': 'DescriptionBox',
    '\xa9gen': 'GenreBox',
    'gnre': 'GenreBox',
    '\xa9grp': 'GroupBox',
    'aART': 'AlbumArtistBox',
    'pgap': 'GapelessBox',
    'disk': 'DiskBox',
    'trkn': 'TrackNumberBox',
    'tmpo': 'TempoBox',
    'cpil': 'CompilationBox',
    'covr': 'CoverArtBox',
    '----': 'iTunesSpecificBox',
}

# tags whose data is never shown
APPLE_OPAQUE_TAGS = ('covr', '----')

def render_meta(box, T):
  ''' Meta box - ISO14496 section 8.11.1.
  '''
  T.start(box, 'MetaBox')
  T.dump_slots(box, META_SLOTS)
  T.done(box, 'MetaBox')

def render_xml(box, T):
  ''' XML box, the document is written verbatim in a CDATA section.
  '''
  T.start(box, 'XMLBox')
  T.write('<![CDATA[\n')
  xml = box.xml
  if xml:
    if isinstance(xml, (bytes, bytearray)):
      xml = bytes(xml).decode('utf-8', errors='replace')
    T.write(xml.replace(']]>', ']]]]><![CDATA[>'))
  T.write(']]>\n')
  T.done(box, 'XMLBox')

def render_bxml(box, T):
  T.start(
      box, 'BinaryXMLBox',
      {'binarySize': None if box.data is None else len(box.data)}
  )
  T.done(box, 'BinaryXMLBox')

def render_pitm(box, T):
  T.start(box, 'PrimaryItemBox', {'item_ID': box.item_id})
  T.done(box, 'PrimaryItemBox')

def render_ipro(box, T):
  T.start(box, 'ItemProtectionBox')
  T.dump_children(box)
  T.done(box, 'ItemProtectionBox')

def render_infe(box, T):
  ''' Item information entry - ISO14496 section 8.11.6.
  '''
  T.start(
      box, 'ItemInfoEntryBox', {
          'item_ID': box.item_id,
          'item_protection_index': box.item_protection_index,
          'item_name': box.item_name,
          'content_type': box.content_type,
          'content_encoding': box.content_encoding,
          'item_type': fourcc(box.item_type),
      }
  )
  T.done(box, 'ItemInfoEntryBox')

def render_iinf(box, T):
  T.start(box, 'ItemInfoBox')
  T.dump_children(box)
  T.done(box, 'ItemInfoBox')

def render_iloc(box, T):
  ''' Item location box - ISO14496 section 8.11.3.
  '''
  T.start(
      box, 'ItemLocationBox', {
          'offset_size': box.offset_size,
          'length_size': box.length_size,
          'base_offset_size': box.base_offset_size,
          'index_size': box.index_size,
      }
  )
  for entry in T.entries(box.entries):
    T.element(
        'ItemLocationEntry', {
            'item_ID': entry.item_id,
            'data_reference_index': entry.data_reference_index,
            'base_offset': entry.base_offset,
            'construction_method': entry.construction_method,
        },
        close=False
    )
    for extent in entry.extents or ():
      T.element(
          'ItemExtentEntry', {
              'extent_offset': extent.extent_offset,
              'extent_length': extent.extent_length,
              'extent_index': extent.extent_index,
          }
      )
    T.end('ItemLocationEntry')
  if not box.size:
    T.element(
        'ItemLocationEntry', {
            'item_ID': '',
            'data_reference_index': '',
            'base_offset': '',
            'construction_method': '',
        },
        close=False
    )
    T.element(
        'ItemExtentEntry', {
            'extent_offset': '',
            'extent_length': '',
            'extent_index': '',
        }
    )
    T.end('ItemLocationEntry')
  T.done(box, 'ItemLocationBox')

def render_iref(box, T):
  T.start(box, 'ItemReferenceBox')
  T.dump_children(box)
  T.done(box, 'ItemReferenceBox')

def render_ireftype(box, T):
  ''' An item reference of kind `reference_type`,
      displayed with the reference kind as its type.
      A reference with no kind is not rendered.
  '''
  reference_type = box.reference_type
  if not reference_type:
    warning("%s: no reference_type, not rendered", box)
    return
  name = f'{fourcc(reference_type)}ItemReferenceBox'
  T.start(
      box,
      name, {
          'from_item_id': box.from_item_id,
          'to_item_ids': ''.join(f' {item_id}' for item_id in box.to_item_ids or ()),
      },
      display_type=reference_type
  )
  T.done(box, name)

def apple_tag_value(data: bytes) -> str:
  ''' The display value of iTunes tag data:
      text unless it starts with a NUL, otherwise hex.
  '''
  if data and data[0]:
    return data.decode('utf-8', errors='replace')
  return hex_data(data)

def apple_tag_attrs(box):
  ''' The tag specific attributes of an iTunes tag box.
  '''
  tag = box.box_type
  data = box.data
  if tag in APPLE_OPAQUE_TAGS or data is None:
    return ()
  if tag in ('disk', 'trkn'):
    number = int.from_bytes(data[2:4], 'big')
    total = int.from_bytes(data[4:6], 'big')
    if tag == 'disk':
      return (('DiskNumber', number), ('NbDisks', total))
    return (('TrackNumber', number), ('NbTracks', total))
  if tag == 'tmpo':
    return (('BPM', int.from_bytes(data[:2], 'big')),)
  if tag == 'cpil':
    return (('IsCompilation', bool(data and data[0])),)
  if tag == 'pgap':
    return (('IsGapeless', bool(data and data[0])),)
  if tag not in APPLE_TAG_NAMES:
    return ()
  return (('value', apple_tag_value(bytes(data))),)

def render_apple_tag(box, T):
  ''' An iTunes tag.
      The tag payload is in `data`, the well known type of the
      enclosed data box in `data_type`.
  '''
  name = APPLE_TAG_NAMES.get(box.box_type, 'UnknownBox')
  attrs = list(apple_tag_attrs(box))
  if box.data_type is not None and name != 'UnknownBox':
    attrs.append(('dataType', box.data_type))
  T.start(box, name, attrs)
  T.done(box, name)

def render_ilst(box, T):
  ''' The iTunes tag list.
      Every child is rendered as a tag, registered or not.
  '''
  T.start(box, 'ItemListBox')
  for tag in box.boxes:
    render_apple_tag(tag, T)
  T.done(box, 'ItemListBox')

def render_ispe(box, T):
  T.start(
      box, 'ImageSpatialExtentsPropertyBox', {
          'image_width': box.image_width,
          'image_height': box.image_height,
      }
  )
  T.done(box, 'ImageSpatialExtentsPropertyBox')

def render_colr(box, T):
  ''' Colour information box - ISO14496 section 12.1.5.
  '''
  T.start(
      box, 'ColourInformationBox', {
          'colour_type': fourcc(box.colour_type),
          'colour_primaries': box.colour_primaries,
          'transfer_characteristics': box.transfer_characteristics,
          'matrix_coefficients': box.matrix_coefficients,
          'full_range_flag': box.full_range_flag,
      }
  )
  T.done(box, 'ColourInformationBox')

def render_pixi(box, T):
  bits = list(box.bits_per_channel or ())
  T.start(
      box, 'PixelInformationPropertyBox', {
          'num_channels': len(bits),
          'bits_per_channel': ', '.join(str(b) for b in bits),
      }
  )
  T.done(box, 'PixelInformationPropertyBox')

def render_rloc(box, T):
  T.start(
      box, 'RelativeLocationPropertyBox', {
          'horizontal_offset': box.horizontal_offset,
          'vertical_offset': box.vertical_offset,
      }
  )
  T.done(box, 'RelativeLocationPropertyBox')

def render_irot(box, T):
  ''' Image rotation, `angle` is in units of 90 degrees.
  '''
  T.start(
      box, 'ImageRotationBox',
      {'angle': None if box.angle is None else box.angle * 90}
  )
  T.done(box, 'ImageRotationBox')

def render_ipco(box, T):
  T.start(box, 'ItemPropertyContainerBox')
  T.dump_children(box)
  T.done(box, 'ItemPropertyContainerBox')

def render_iprp(box, T):
  T.start(box, 'ItemPropertiesBox')
  T.dump_slots(box, ('ipco', 'ipma'))
  T.done(box, 'ItemPropertiesBox')

def render_ipma(box, T):
  ''' Item property associations - ISO23008-12 section 9.3.
  '''
  entries = list(box.entries or ())
  T.start(box, 'ItemPropertyAssociationBox', {'entry_count': len(entries)})
  for entry in T.entries(entries):
    associations = list(entry.associations or ())
    T.element(
        'AssociationEntry', {
            'item_ID': entry.item_id,
            'association_count': len(associations),
        },
        close=False
    )
    for association in associations:
      T.element(
          'Property', {
              'index': association.property_index,
              'essential': int(bool(association.essential)),
          }
      )
    T.end('AssociationEntry')
  if not box.size:
    T.element(
        'AssociationEntry', {
            'item_ID': '',
            'association_count': '',
        }, close=False
    )
    T.element('Property', {'index': '', 'essential': ''})
    T.end('AssociationEntry')
  T.done(box, 'ItemPropertyAssociationBox')

def render_grpl(box, T):
  T.start(box, 'GroupListBox')
  T.dump_children(box)
  T.done(box, 'GroupListBox')
