#!/usr/bin/env python3
#
# The XML trace writer and the recursive box renderer.
#

''' The XML trace writer, the recursive box renderer
    and the document driver which renders a whole box tree.

    A renderer is a function `renderer(box, T)`
    where `box` is a `Box` and `T` is a `Trace`.
    Renderers open their element with `T.start()`,
    write their fields and children,
    and close with `T.done()` which also renders
    the box's `other_boxes`.
'''

from typing import Iterable, List, Mapping, Optional, Tuple, Union

from cs.logutils import error, warning
from cs.pfx import Pfx
from cs.threads import ThreadState

from .boxes import (
    Box,
    FullBox,
    InvalidStructureError,
    UnregisteredBoxTypeError,
)
from .escape import data_uri, fmt_hex, format_uuid, fourcc, xml_escape_text
from .registry import lookup

XML_PROLOG = '<?xml version="1.0" encoding="UTF-8"?>'
TRACE_COMMENT = '<!--MP4Box dump trace-->'
ISOBMFF_NAMESPACE = 'urn:mpeg:isobmff:schema:file:2016'

# the box types acceptable at the top level of a file
TOP_LEVEL_BOX_TYPES = (
    'ftyp', 'moov', 'mdat', 'free', 'meta', 'skip', 'moof', 'styp', 'sidx',
    'ssix', 'pcrb', 'afra', 'abst', 'mfra', 'prft', 'uuid'
)

# sizes above this are reported as LargeSize
MAX_SIZE32 = 0xFFFFFFFF

# per thread dump options:
# esd_dumper: a callable(esd,T) to render elementary stream descriptors
# max_samples: the maximum number of per entry elements for a table box
DUMP_MODE = ThreadState(esd_dumper=None, max_samples=None)

Attributes = Union[Mapping[str, object], Iterable[Tuple[str, object]], None]

def attr_str(value) -> str:
  ''' Format an attribute value as XML attribute content.
  '''
  if value is None:
    return ''
  if isinstance(value, bool):
    return 'yes' if value else 'no'
  if isinstance(value, int):
    return str(value)
  if isinstance(value, float):
    return f'{value:g}'
  if isinstance(value, (bytes, bytearray, memoryview)):
    return data_uri(bytes(value))
  if isinstance(value, (list, tuple)):
    return ' '.join(attr_str(v) for v in value)
  return xml_escape_text(str(value))

def attrs_str(attrs: Attributes) -> str:
  ''' Format `attrs`, a mapping or an iterable of `(name,value)` pairs,
      as a string of ` name="value"` clauses.
  '''
  if not attrs:
    return ''
  if isinstance(attrs, Mapping):
    attrs = attrs.items()
  return ''.join(f' {name}="{attr_str(value)}"' for name, value in attrs)

def comment_safe(text: str) -> str:
  ''' Return `text` safe for inclusion in an XML comment.
  '''
  while '--' in text:
    text = text.replace('--', '- -')
  return text.rstrip('-')

class Trace:
  ''' A forward only XML trace writer with the box rendering machinery.

      Parameters:
      * `f`: the output text stream
      * `esd_dumper`: optional callable `(esd,T)` to render
        elementary stream descriptors, default from `DUMP_MODE.esd_dumper`
      * `max_samples`: optional limit on per entry child elements,
        default from `DUMP_MODE.max_samples`
  '''

  def __init__(self, f, *, esd_dumper=None, max_samples=None):
    self.f = f
    self.esd_dumper = esd_dumper or DUMP_MODE.esd_dumper
    self.max_samples = (
        DUMP_MODE.max_samples if max_samples is None else max_samples
    )

  def write(self, s: str):
    ''' Write the raw string `s`.
    '''
    self.f.write(s)

  def comment(self, text: str):
    ''' Write an XML comment line.
    '''
    self.write(f'<!-- {comment_safe(text)} -->\n')

  def error(self, msg: str, *a):
    ''' Log an error and write it as an `ERROR` comment.
    '''
    if a:
      msg = msg % a
    error("%s", msg)
    self.write(f'<!--ERROR: {comment_safe(msg)}-->\n')

  def warning(self, msg: str, *a):
    ''' Log a structural anomaly and write it as a `WARNING` comment.
    '''
    if a:
      msg = msg % a
    warning("%s", msg)
    self.write(f'<!--WARNING: {comment_safe(msg)}-->\n')

  def header_attrs(self, box: Box, display_type=None) -> List[Tuple[str, object]]:
    ''' Return the common header attributes for `box`:
        the size, the type or extended type
        and for full boxes the version and flags.
    '''
    attrs = []
    size = box.size or 0
    if size > MAX_SIZE32:
      attrs.append(('LargeSize', size))
    else:
      attrs.append(('Size', size))
    if box.box_type == 'uuid' and display_type is None:
      uuid = box.uuid
      attrs.append(('UUID', None if uuid is None else format_uuid(uuid)))
    else:
      attrs.append(
          ('Type', fourcc(box.box_type if display_type is None else display_type))
      )
    if isinstance(box, FullBox):
      attrs.append(('Version', box.version))
      attrs.append(('Flags', fmt_hex(box.flags)))
    return attrs

  def start(
      self,
      box: Box,
      name: str,
      attrs: Attributes = None,
      *,
      display_type=None,
      close=False,
  ):
    ''' Open the element `name` for `box`
        with the header attributes followed by `attrs`.
        If `close` is true, write an empty element instead.
    '''
    self.write(
        f'<{name}{attrs_str(self.header_attrs(box, display_type))}'
        f'{attrs_str(attrs)}{"/" if close else ""}>\n'
    )

  def done(self, box: Box, name: Optional[str]):
    ''' Finish the element for `box`:
        render its `other_boxes` and close the element `name`.
        No closing tag is written if `name` is `None`.
    '''
    self.dump_boxes(box.other_boxes)
    if name:
      self.end(name)

  def element(self, name: str, attrs: Attributes = None, *, close=True):
    ''' Write a plain element `name` with attributes `attrs`,
        empty if `close` is true (the default) otherwise just the start tag.
    '''
    self.write(f'<{name}{attrs_str(attrs)}{"/" if close else ""}>\n')

  def end(self, name: str):
    ''' Write the closing tag for `name`.
    '''
    self.write(f'</{name}>\n')

  def text_element(self, name: str, text: str, attrs: Attributes = None):
    ''' Write an element `name` containing escaped `text`.
    '''
    self.write(f'<{name}{attrs_str(attrs)}>{xml_escape_text(text)}</{name}>\n')

  def entries(self, entries) -> Iterable:
    ''' Iterate over `entries` honouring `max_samples`,
        writing a comment about any entries which were not yielded.
    '''
    entries = list(entries or ())
    max_samples = self.max_samples
    for i, entry in enumerate(entries):
      if max_samples is not None and i >= max_samples:
        self.comment(f'{len(entries) - i} further entries not shown')
        break
      yield entry

  def dump_box(self, box: Optional[Box], expected_type=None):
    ''' Render `box`.

        If `box` is `None`, write a NULL box comment
        naming `expected_type` if supplied.
        Raises `UnregisteredBoxTypeError` if there is no renderer for `box`,
        after writing an error comment.
        An `InvalidStructureError` from the renderer
        is written as a warning comment in place of the box.
    '''
    if box is None:
      if expected_type:
        self.write(
            '<!--ERROR: NULL Box Found, expecting'
            f' {comment_safe(fourcc(expected_type))} -->\n'
        )
      else:
        self.write('<!--ERROR: NULL Box Found-->\n')
      return
    with Pfx(box.box_type):
      try:
        row = lookup(box.box_type)
      except UnregisteredBoxTypeError as e:
        self.error('Box type "%s" not registered', box.box_type)
        raise
      try:
        row.renderer(box, self)
      except InvalidStructureError as e:
        self.warning("%s", e)

  def dump_boxes(self, boxes: Iterable[Box]) -> List[UnregisteredBoxTypeError]:
    ''' Render each box in `boxes` in order.
        A box which cannot be rendered does not stop the others.
        Return a list of the failures.
    '''
    failures = []
    for box in boxes or ():
      try:
        self.dump_box(box)
      except UnregisteredBoxTypeError as e:
        failures.append(e)
    return failures

  def dump_children(self, box: Box, required=()):
    ''' Render the child boxes of `box` in order.
        For a real box, write a NULL box comment for each type in `required`
        which has no child of that type.
    '''
    self.dump_boxes(box.boxes)
    if box.size:
      for box_type in required:
        if not box.children_of_type(box_type):
          self.dump_box(None, box_type)

  def dump_slots(self, box: Box, slots, required=()):
    ''' Render the child boxes of `box` grouped by type in the order of `slots`,
        then any children of other types in their original order.
        For a real box, write a NULL box comment
        for each type in `required` which has no child of that type.
    '''
    for box_type in slots:
      children = box.children_of_type(box_type)
      if children:
        self.dump_boxes(children)
      elif box_type in required and box.size:
        self.dump_box(None, box_type)
    self.dump_boxes(
        [child for child in box.boxes if child.box_type not in slots]
    )

  def dump_descriptor(self, desc, name='ES_Descriptor'):
    ''' Render an MPEG-4 descriptor
        via the `esd_dumper` hook if there is one,
        otherwise as an element `name` holding the raw descriptor
        as a data URI.
    '''
    if self.esd_dumper is not None:
      self.esd_dumper(desc, self)
    elif isinstance(desc, (bytes, bytearray, memoryview)):
      self.element(name, {'data': bytes(desc)})
    else:
      self.element(name, {'desc': str(desc)})

def render(box: Optional[Box], f, expected_type=None, **trace_kw) -> bool:
  ''' Render `box` to the text stream `f`.
      Return `True` on success, `False` if the box type is not registered.
  '''
  T = Trace(f, **trace_kw)
  try:
    T.dump_box(box, expected_type)
  except UnregisteredBoxTypeError:
    return False
  return True

def start_document(T: Trace, name: Optional[str]):
  ''' Write the XML prolog and open the `IsoMediaFile` root element.
  '''
  T.write(f'{XML_PROLOG}\n{TRACE_COMMENT}\n')
  T.element(
      'IsoMediaFile', {
          'xmlns': ISOBMFF_NAMESPACE,
          'Name': name,
      },
      close=False
  )

def end_document(T: Trace):
  ''' Close the root element.
  '''
  T.end('IsoMediaFile')

def dump_file(boxes: Iterable[Box], f, name=None, **trace_kw):
  ''' Render the top level `boxes` of a file named `name` to `f`
      as a complete XML document.
      Return a list of the boxes which could not be rendered
      as `UnregisteredBoxTypeError`s.
  '''
  T = Trace(f, **trace_kw)
  start_document(T, name)
  failures = []
  with Pfx("dump_file %s", name or '-'):
    for box in boxes:
      if box is None:
        T.dump_box(None)
        continue
      if box.box_type not in TOP_LEVEL_BOX_TYPES:
        T.write(
            '<!--ERROR: Invalid Top-level Box Found'
            f' ("{comment_safe(box.box_type)}")-->\n'
        )
      failures.extend(T.dump_boxes((box,)))
  end_document(T)
  return failures
