#!/usr/bin/env python3
#
# Escaping and primitive value codecs for box traces.
#

''' Escaping and primitive formatting for the XML box traces:
    hex dumps, data URIs, XML entity escaping,
    timestamp formatting and the fixed point conversions
    used throughout ISO14496 boxes.
'''

from typing import Optional, Union

DATA_URI_PREFIX = 'data:application/octet-string,'

# the five XML special characters and their entities
XML_ENTITIES = {
    "'": '&apos;',
    '"': '&quot;',
    '&': '&amp;',
    '>': '&gt;',
    '<': '&lt;',
}
XML_ENTITIES_BS = {
    ord(c): entity.encode('ascii')
    for c, entity in XML_ENTITIES.items()
}
_XML_ESCAPE_TABLE = str.maketrans(XML_ENTITIES)

def hex_dump(data: bytes) -> str:
  ''' Return `data` as 2 uppercase hex digits per byte, no separators.

      Example:

          >>> hex_dump(b'\\x01\\xab')
          '01AB'
  '''
  return bytes(data).hex().upper()

def hex_data(data: bytes) -> str:
  ''' Return `data` as `0x` followed by its `hex_dump`.
  '''
  return '0x' + hex_dump(data)

def data_uri(data: bytes) -> str:
  ''' Return `data` as an `application/octet-string` data URI.

      Example:

          >>> data_uri(b'AB')
          'data:application/octet-string,4142'
  '''
  return DATA_URI_PREFIX + hex_dump(data)

def xml_escape_text(data: Union[bytes, str]) -> Union[bytes, str]:
  ''' Escape the five XML special characters in `data`.

      `bytes` are escaped byte by byte and returned as `bytes`;
      other bytes, including non-ASCII bytes, pass through unchanged.
      `str` is escaped character by character and returned as `str`.

      Example:

          >>> xml_escape_text('a<b & "c"')
          'a&lt;b &amp; &quot;c&quot;'
          >>> xml_escape_text(b"it's")
          b'it&apos;s'
  '''
  if isinstance(data, str):
    return data.translate(_XML_ESCAPE_TABLE)
  escaped = bytearray()
  for b in data:
    entity = XML_ENTITIES_BS.get(b)
    if entity is None:
      escaped.append(b)
    else:
      escaped.extend(entity)
  return bytes(escaped)

def format_duration(ticks: int, timescale: int, sep='.') -> str:
  ''' Format `ticks` at `timescale` ticks per second as `HH:MM:SS.mmm`.
      The tick count is converted to whole milliseconds first, truncating.

      Example:

          >>> format_duration(0, 1000)
          '00:00:00.000'
          >>> format_duration(90061001, 1000)
          '25:01:01.001'
  '''
  ms = ticks * 1000 // timescale
  h = ms // 3600000
  m = ms // 60000 - h * 60
  s = ms // 1000 - h * 3600 - m * 60
  ms = ms - h * 3600000 - m * 60000 - s * 1000
  return f'{h:02d}:{m:02d}:{s:02d}{sep}{ms:03d}'

def format_srt_duration(ticks: int, timescale: int) -> str:
  ''' Format `ticks` in the SubRip style `HH:MM:SS,mmm`.
  '''
  return format_duration(ticks, timescale, sep=',')

def format_uuid(uuid_bs: bytes) -> str:
  ''' Format a 16 byte extended type as `{XXXXXXXX-XXXXXXXX-XXXXXXXX-XXXXXXXX}`.
  '''
  uuid_bs = bytes(uuid_bs)
  if len(uuid_bs) != 16:
    raise ValueError(f'expected 16 bytes, got {len(uuid_bs)}: {uuid_bs!r}')
  return '{' + '-'.join(
      hex_dump(uuid_bs[offset:offset + 4]) for offset in range(0, 16, 4)
  ) + '}'

def fourcc(code: Union[int, bytes, str, None]) -> str:
  ''' Return the display form of a 4 character code.
      An `int` is unpacked big endian, `bytes` are decoded as Latin-1.
  '''
  if code is None:
    return ''
  if isinstance(code, int):
    code = code.to_bytes(4, 'big')
  if isinstance(code, (bytes, bytearray)):
    code = bytes(code).decode('iso8859-1')
  return code

def fixed_16_16(value: Optional[int]) -> Optional[float]:
  ''' Convert a 16.16 fixed point value to `float`, `None` passes through.
  '''
  return None if value is None else value / 65536.0

def fixed_8_8(value: Optional[int]) -> Optional[float]:
  ''' Convert an 8.8 fixed point value to `float`, `None` passes through.
  '''
  return None if value is None else value / 256.0

def fmt_float(value: Optional[float], precision=2) -> str:
  ''' Format `value` with `precision` decimal places, empty for `None`.
  '''
  if value is None:
    return ''
  return f'{value:.{precision}f}'

def fmt_hex(value: Optional[int], width=0) -> str:
  ''' Format `value` as `0x` uppercase hex, empty for `None`.
  '''
  if value is None:
    return ''
  return f'0x{value:0{width}X}'

def fmt_x(value: Optional[int]) -> str:
  ''' Format `value` as bare lowercase hex, empty for `None`.
  '''
  if value is None:
    return ''
  return f'{value:x}'

def fmt_4cc_list(codes, sep=' ') -> str:
  ''' Format a sequence of 4 character codes joined by `sep`.
  '''
  return sep.join(fourcc(code) for code in codes or ())
