#!/usr/bin/env python3
#
# The in memory box tree consumed by the trace renderers.
#

''' The box tree data model consumed by the trace renderers.

    Boxes are produced by some external parser;
    this module only describes their shape:
    a 4 character type code, a declared size,
    named fields, owned child boxes and
    "other" boxes preserved verbatim from the parse.

    A box whose `size` is `0` is a synthetic placeholder,
    as made by the schema enumerator;
    the renderers emit template values for such boxes.
'''

from typing import Iterable, List, Optional

from icontract import require

from .escape import fourcc

# box types which carry a version and flags
FULL_BOX_TYPES = frozenset(
    (
        'abst', 'adaf', 'adkm', 'aeib', 'afra', 'afrt', 'ahdr', 'akey',
        'aprm', 'asrt', 'bxml', 'chpl', 'co64', 'colr', 'cprt', 'crhd',
        'cslg', 'ctts', 'data', 'dimC', 'dref', 'elng', 'elst', 'esds',
        'grpi', 'hdlr', 'hmhd', 'iKMS', 'iSFM', 'iinf', 'iloc', 'infe',
        'iods', 'ipma', 'ipro', 'iref', 'irot', 'ispe', 'kind', 'leva',
        'mdhd', 'mehd', 'meta', 'mfhd', 'mfro', 'mvhd', 'nmhd', 'odaf',
        'odhd', 'odkm', 'odrb', 'odtt', 'ohdr', 'pdin', 'pitm', 'pixi',
        'prft', 'pssh', 'rloc', 'saio', 'saiz', 'sbgp', 'schm', 'sdhd',
        'sdtp', 'senc', 'sgpd', 'sidx', 'smhd', 'ssix', 'stco', 'stdp',
        'sthd', 'stri', 'stsc', 'stsd', 'stsf', 'stsh', 'stss', 'stsz',
        'stts', 'stz2', 'subs', 'tenc', 'tfdt', 'tfhd', 'tfra', 'tkhd',
        'trep', 'trex', 'trgt', 'trun', 'tsel', 'txtc', 'url ', 'urn ',
        'vmhd', 'xml ',
    )
)

class BoxTraceError(Exception):
  ''' Base class for box trace errors.
  '''

class UnregisteredBoxTypeError(BoxTraceError, LookupError):
  ''' A box whose type code has no registered renderer.
  '''

  def __init__(self, box_type):
    super().__init__(f'box type {box_type!r} not registered')
    self.box_type = box_type

class InvalidStructureError(BoxTraceError):
  ''' A box whose fields or children are inconsistent.
      Raised by a renderer before it writes anything,
      `Trace.dump_box` reports these inline as a warning comment.
  '''

class InvalidTrackParameterError(BoxTraceError, ValueError):
  ''' A track unsuitable for the requested conversion.
  '''

class TextSampleDecodeError(BoxTraceError, ValueError):
  ''' A timed text sample which could not be decoded.
  '''

class Box:
  ''' A box node.

      Parameters:
      * `box_type`: the 4 character type code;
        `bytes` and `int` codes are converted with `fourcc()`
      * `size`: the declared size of the box, `0` for a placeholder
      * `boxes`: optional iterable of owned child boxes
      * `other_boxes`: optional iterable of extra boxes
        preserved from the parse but not otherwise understood
      Other keyword arguments are set as fields of the box.

      Fields which were never set read as `None`.

      The following virtual attributes are also defined:
      * *TYPE*: the sole child box of type *TYPE*
        (an uppercased box type name, with `_` for space)
      * *TYPE*`s`: a list of the child boxes of type *TYPE*
      * *TYPE*`0`: the sole child box of type *TYPE*
        or `None` if there is none
  '''

  def __init__(
      self,
      box_type,
      size=0,
      *,
      boxes: Optional[Iterable["Box"]] = None,
      other_boxes: Optional[Iterable["Box"]] = None,
      **fields,
  ):
    self.box_type = fourcc(box_type)
    self.size = size
    self.boxes = list(boxes) if boxes else []
    self.other_boxes = list(other_boxes) if other_boxes else []
    for field_name, value in fields.items():
      setattr(self, field_name, value)

  def __str__(self):
    return f'{self.__class__.__name__}({self.box_type!r},size={self.size})'

  __repr__ = __str__

  def __getattr__(self, attr):
    if attr.startswith('_'):
      raise AttributeError(f'{self.__class__.__name__}.{attr}')
    # .TYPE - the sole child box of type 'type'
    if len(attr) == 4 and attr.isupper():
      box, = getattr(self, f'{attr}s')
      return box
    # .TYPEs - all the child boxes of type 'type'
    # .TYPE0 - the sole child box of type 'type' or None
    if len(attr) == 5 and attr.endswith(('s', '0')):
      attr4 = attr[:4]
      if attr4.isupper():
        box_type = attr4.lower().replace('_', ' ')
        boxes = [box for box in self.boxes if box.box_type == box_type]
        if attr.endswith('s'):
          return boxes
        if len(boxes) == 0:
          return None
        box, = boxes
        return box
    # an unset field
    return None

  def __iter__(self):
    yield from self.boxes

  @property
  def is_placeholder(self) -> bool:
    ''' Whether this is a synthetic placeholder box, with a `size` of `0`.
    '''
    return not self.size

  def children_of_type(self, box_type: str) -> List["Box"]:
    ''' Return the child boxes whose type is `box_type`.
    '''
    return [box for box in self.boxes if box.box_type == box_type]

class FullBox(Box):
  ''' A box with an 8 bit `version` and a 24 bit `flags` field.
  '''

  def __init__(self, box_type, size=0, *, version=0, flags=0, **box_kw):
    super().__init__(box_type, size, **box_kw)
    self.version = version
    self.flags = flags

  def __str__(self):
    return (
        f'{self.__class__.__name__}({self.box_type!r},size={self.size},'
        f'version={self.version},flags=0x{self.flags:x})'
    )

  __repr__ = __str__

@require(lambda box_type: len(fourcc(box_type)) == 4)
def new_box(box_type, size=0, **box_kw) -> Box:
  ''' Factory returning a new `FullBox` for full box types
      and a `Box` for other types.
  '''
  box_type = fourcc(box_type)
  if box_type in FULL_BOX_TYPES:
    return FullBox(box_type, size, **box_kw)
  return Box(box_type, size, **box_kw)
