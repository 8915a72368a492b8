#!/usr/bin/env python3
#
# Decoding of 3GPP timed text samples.
#

''' Decoding of 3GPP timed text samples, 3GPP TS 26.245 section 5.17.

    A text sample is a 16 bit big endian text length,
    the text itself in UTF-8 or in UTF-16 with a leading `FE FF` BOM,
    then a sequence of text modifier boxes.
    The modifier boxes decode into `Box` nodes
    with the same fields the trace renderers use.
'''

from typing import List, Optional

from cs.binary import BinaryStruct, UInt8, UInt16BE, UInt32BE
from cs.buffer import CornuCopyBuffer
from cs.logutils import debug
from cs.pfx import Pfx

from .boxes import Box, TextSampleDecodeError
from .escape import fourcc

# the text modifier box types
MODIFIER_BOX_TYPES = (
    'styl', 'hlit', 'hclr', 'krok', 'dlay', 'href', 'tbox', 'blnk', 'twrp'
)

UTF16_BOM = b'\xfe\xff'

def rgba_to_argb(rgba: int) -> int:
  ''' Convert a colour stored as `r g b a` bytes to a packed ARGB integer.
  '''
  return ((rgba & 0xFF) << 24) | (rgba >> 8)

BoxRecord = BinaryStruct('BoxRecord', '>hhhh', 'top left bottom right')

class StyleRecord(BinaryStruct('StyleRecord', '>HHHBBL',
                               'start_char end_char font_id style_flags font_size rgba')):
  ''' A style run over the characters `start_char` to `end_char`.
  '''

  @property
  def text_color(self) -> int:
    ''' The text colour as a packed ARGB integer.
    '''
    return rgba_to_argb(self.rgba)

KaraokeRecord = BinaryStruct(
    'KaraokeRecord', '>LHH', 'highlight_end_time start_char end_char'
)
CharRange = BinaryStruct('CharRange', '>HH', 'start_char end_char')

class FontRecord:
  ''' A font table entry.
  '''

  def __init__(self, font_id: int, font_name: Optional[str]):
    self.font_id = font_id
    self.font_name = font_name

  def __repr__(self):
    return f'{self.__class__.__name__}({self.font_id},{self.font_name!r})'

def parse_pascal_string(bfr: CornuCopyBuffer) -> str:
  ''' Parse an 8 bit length prefixed UTF-8 string.
  '''
  length = UInt8.parse_value(bfr)
  return bfr.take(length).decode('utf-8', errors='replace')

def parse_styl(bfr):
  count = UInt16BE.parse_value(bfr)
  return dict(styles=[StyleRecord.parse(bfr) for _ in range(count)])

def parse_char_range(bfr):
  char_range = CharRange.parse(bfr)
  return dict(start_char=char_range.start_char, end_char=char_range.end_char)

def parse_hclr(bfr):
  return dict(highlight_color=rgba_to_argb(UInt32BE.parse_value(bfr)))

def parse_krok(bfr):
  highlight_start_time = UInt32BE.parse_value(bfr)
  count = UInt16BE.parse_value(bfr)
  return dict(
      highlight_start_time=highlight_start_time,
      records=[KaraokeRecord.parse(bfr) for _ in range(count)],
  )

def parse_dlay(bfr):
  return dict(scroll_delay=UInt32BE.parse_value(bfr))

def parse_href(bfr):
  fields = parse_char_range(bfr)
  fields.update(url=parse_pascal_string(bfr))
  fields.update(url_hint=parse_pascal_string(bfr))
  return fields

def parse_tbox(bfr):
  return dict(box_record=BoxRecord.parse(bfr))

def parse_twrp(bfr):
  return dict(wrap_flag=UInt8.parse_value(bfr))

# parsers for the modifier box bodies, returning the box fields
MODIFIER_PARSERS = {
    'styl': parse_styl,
    'hlit': parse_char_range,
    'hclr': parse_hclr,
    'krok': parse_krok,
    'dlay': parse_dlay,
    'href': parse_href,
    'tbox': parse_tbox,
    'blnk': parse_char_range,
    'twrp': parse_twrp,
}

class TextSample:
  ''' A decoded 3GPP timed text sample.

      Attributes:
      * `text`: the sample text
      * `boxes`: the decoded modifier boxes, in sample order
      * `others`: boxes of other types, with their raw body in `data`
  '''

  def __init__(self, text='', boxes=None, others=None):
    self.text = text
    self.boxes = list(boxes or ())
    self.others = list(others or ())

  def __repr__(self):
    return (
        f'{self.__class__.__name__}({self.text!r},'
        f'boxes={[box.box_type for box in self.boxes]})'
    )

  def boxes_of_type(self, box_type: str) -> List[Box]:
    ''' The modifier boxes of type `box_type`.
    '''
    return [box for box in self.boxes if box.box_type == box_type]

  def box_of_type(self, box_type: str) -> Optional[Box]:
    ''' The last modifier box of type `box_type`, or `None`.
    '''
    boxes = self.boxes_of_type(box_type)
    return boxes[-1] if boxes else None

  @property
  def styles(self) -> List[StyleRecord]:
    ''' All the style records in the sample.
    '''
    return [
        style for box in self.boxes_of_type('styl')
        for style in box.styles or ()
    ]

  @classmethod
  def from_bytes(cls, data: bytes) -> "TextSample":
    ''' Decode a text sample from `data`.
        Raises `TextSampleDecodeError` on truncated or inconsistent data.
    '''
    if len(data) < 2:
      raise TextSampleDecodeError(f'sample too short: {len(data)} bytes')
    bfr = CornuCopyBuffer.from_bytes(data)
    try:
      return cls.parse(bfr)
    except EOFError as e:
      raise TextSampleDecodeError(f'truncated text sample: {e}') from e

  @classmethod
  def parse(cls, bfr: CornuCopyBuffer) -> "TextSample":
    ''' Parse a text sample from `bfr`.
    '''
    text_length = UInt16BE.parse_value(bfr)
    text_bs = bfr.take(text_length)
    if text_bs.startswith(UTF16_BOM):
      text = text_bs[2:].decode('utf_16_be', errors='replace')
    else:
      text = text_bs.decode('utf-8', errors='replace')
    self = cls(text)
    while not bfr.at_eof():
      box = cls.parse_modifier(bfr)
      if box.box_type in MODIFIER_PARSERS:
        self.boxes.append(box)
      else:
        debug("text sample: keep unknown modifier box %r", box.box_type)
        self.others.append(box)
    return self

  @staticmethod
  def parse_modifier(bfr: CornuCopyBuffer) -> Box:
    ''' Parse a single modifier box from `bfr`.
    '''
    size = UInt32BE.parse_value(bfr)
    box_type = fourcc(bfr.take(4))
    with Pfx(box_type):
      if size < 8:
        raise TextSampleDecodeError(f'box size {size} < 8')
      body = bfr.take(size - 8)
      parser = MODIFIER_PARSERS.get(box_type)
      if parser is None:
        return Box(box_type, size, data=body)
      body_bfr = CornuCopyBuffer.from_bytes(body)
      fields = parser(body_bfr)
      if not body_bfr.at_eof():
        debug("%d unparsed bytes in %s box", len(body) - body_bfr.offset, box_type)
      return Box(box_type, size, **fields)
