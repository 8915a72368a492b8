#!/usr/bin/env python3
#
# Enumerate the supported box types as placeholder boxes.
#

''' The schema enumerator: render a placeholder box for every
    registry row, documenting every supported box type
    without consulting a real file.
'''

from typing import Iterable, Tuple

from cs.pfx import Pfx

from .boxes import Box, new_box
from .registry import BOX_REGISTRY, RegistryRow
from .trace import Trace, end_document, start_document

SCHEMA_NAME = 'ISOBMFF supported boxes'

# the field naming the kind of a box with an alternate code
KIND_FIELDS = {
    'REFT': 'reference_type',
    'REFI': 'reference_type',
    'sgpd': 'grouping_type',
    'trgt': 'group_type',
}

def placeholder_box(row: RegistryRow) -> Box:
  ''' Return a placeholder box for the registry `row`.
  '''
  box = new_box(row.box_type)
  if row.alt_type:
    setattr(box, KIND_FIELDS[row.box_type], row.alt_type)
  if row.max_version:
    box.version = row.max_version
  if row.flags:
    box.flags = row.flags
  return box

def supported_boxes() -> Iterable[Tuple[RegistryRow, Box]]:
  ''' Yield `(row,box)` for each registry row
      where `box` is a placeholder box for the row.
  '''
  for row in BOX_REGISTRY:
    yield row, placeholder_box(row)

def dump_schema(f, name=None, **trace_kw) -> int:
  ''' Write the schema document to `f`:
      a placeholder box for every registry row in registry order.
      Return the number of rows rendered.
  '''
  T = Trace(f, **trace_kw)
  start_document(T, name or SCHEMA_NAME)
  count = 0
  for index, (row, box) in enumerate(supported_boxes()):
    with Pfx("row %d %r", index, row.box_type):
      T.dump_box(box)
    count += 1
  end_document(T)
  return count

def dump_supported_box(index: int, f, **trace_kw):
  ''' Render the placeholder box for registry row `index` to `f`.
      Raises `IndexError` if there is no such row.
  '''
  if index < 0:
    raise IndexError(f'negative registry index {index}')
  row = BOX_REGISTRY[index]
  Trace(f, **trace_kw).dump_box(placeholder_box(row))
