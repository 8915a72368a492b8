#!/usr/bin/env python3
#
# Export text tracks as TTXT, SRT or SVG.
#

''' Conversion of 3GPP timed text and QuickTime text tracks
    into the TTXT timed text markup, SRT subtitles
    or an SVG Tiny overlay with its NHML sample index.

    Each converter takes the `trak` box of the track
    and a `SampleSource` supplying the track samples.
    The track is checked before any output is written:
    its handler must be `text` or `subt`
    and its first sample description must be `tx3g` or `text`,
    otherwise `InvalidTrackParameterError` is raised.

    A sample which cannot be decoded is logged and skipped.
'''

from abc import ABC, abstractmethod
from collections import namedtuple
from typing import Iterable, List, Optional

from cs.logutils import warning
from cs.pfx import Pfx

from .boxes import InvalidTrackParameterError, TextSampleDecodeError
from .escape import format_duration, format_srt_duration, fourcc, xml_escape_text
from .render_text import STYLE_BOLD, STYLE_ITALIC, STYLE_UNDERLINED, rgb16, rgba8, style_names
from .textsample import TextSample

# handler types of text tracks
TEXT_HANDLER_TYPES = ('text', 'subt')

# sample description types which can be converted
TEXT_DESCRIPTION_TYPES = ('tx3g', 'text')

# display flags
DISPLAY_SCROLL_IN = 0x00000020
DISPLAY_SCROLL_OUT = 0x00000040
DISPLAY_SCROLL_DIRECTION = 0x00000180
DISPLAY_CONTINUOUS_KARAOKE = 0x00000800
DISPLAY_VERTICAL_TEXT = 0x00020000
DISPLAY_FILL_TEXT_REGION = 0x00040000

SCROLL_MODES = {0: 'Credits', 1: 'Marquee', 2: 'Down', 3: 'Right'}

# line separators in sample text
LINE_BREAKS = "\n\r\x85\u2028\u2029"

STYLE_MASK = STYLE_BOLD | STYLE_ITALIC | STYLE_UNDERLINED

# colour names for SRT font tags, keyed by RGB value
COLOR_NAMES = {
    0x000000: 'black',
    0xFFFFFF: 'white',
    0xFF0000: 'red',
    0x00FF00: 'lime',
    0x0000FF: 'blue',
    0xFFFF00: 'yellow',
    0x00FFFF: 'cyan',
    0xFF00FF: 'magenta',
    0x808080: 'gray',
    0xC0C0C0: 'silver',
    0x800000: 'maroon',
    0x008000: 'green',
    0x000080: 'navy',
    0x808000: 'olive',
    0x800080: 'purple',
    0x008080: 'teal',
}

Sample = namedtuple('Sample', 'dts data description_index')

class SampleSource(ABC):
  ''' Abstract access to the samples of a track.

      Subclasses implement `sample_count`, `sample(index)`
      and `media_duration`.
  '''

  @property
  @abstractmethod
  def sample_count(self) -> int:
    ''' The number of samples.
    '''
    raise NotImplementedError

  @abstractmethod
  def sample(self, index: int) -> Sample:
    ''' Return the `Sample` numbered `index`, counting from `1`.
    '''
    raise NotImplementedError

  @property
  @abstractmethod
  def media_duration(self) -> Optional[int]:
    ''' The media duration in timescale units,
        or `None` to use the track's media header.
    '''
    raise NotImplementedError

  def __iter__(self):
    for index in range(1, self.sample_count + 1):
      yield self.sample(index)

class ListSampleSource(SampleSource):
  ''' A `SampleSource` backed by a list of `Sample`s.
  '''

  def __init__(self, samples: Iterable[Sample], media_duration=None):
    self.samples = [
        sample if isinstance(sample, Sample) else Sample(*sample)
        for sample in samples
    ]
    self._media_duration = media_duration

  @property
  def sample_count(self):
    return len(self.samples)

  def sample(self, index):
    if index < 1:
      raise IndexError(f'sample index {index} < 1')
    return self.samples[index - 1]

  @property
  def media_duration(self):
    return self._media_duration

class TextTrack:
  ''' The parts of a text track's box tree used by the converters.
  '''

  def __init__(self, trak):
    self.trak = trak
    mdia = trak.MDIA0
    minf = mdia and mdia.MINF0
    stbl = minf and minf.STBL0
    stsd = stbl and stbl.STSD0
    self.tkhd = trak.TKHD0
    self.mdhd = mdia and mdia.MDHD0
    self.hdlr = mdia and mdia.HDLR0
    self.descriptions = list(stsd.boxes) if stsd else []

  def check(self):
    ''' Check that this is a convertible text track.
        Raises `InvalidTrackParameterError` if not.
    '''
    if self.hdlr is None:
      raise InvalidTrackParameterError('no handler reference in track')
    handler_type = fourcc(self.hdlr.handler_type)
    if handler_type not in TEXT_HANDLER_TYPES:
      raise InvalidTrackParameterError(
          f'handler type {handler_type!r} is not one of {TEXT_HANDLER_TYPES!r}'
      )
    if not self.descriptions:
      raise InvalidTrackParameterError('no sample descriptions in track')
    description_type = self.descriptions[0].box_type
    if description_type not in TEXT_DESCRIPTION_TYPES:
      raise InvalidTrackParameterError(
          f'sample description {description_type!r} is not one of'
          f' {TEXT_DESCRIPTION_TYPES!r}'
      )
    if self.mdhd is None or not self.mdhd.timescale:
      raise InvalidTrackParameterError('no media timescale')

  @property
  def timescale(self) -> int:
    return self.mdhd.timescale

  @property
  def width(self) -> int:
    return (self.tkhd and self.tkhd.width or 0) >> 16

  @property
  def height(self) -> int:
    return (self.tkhd and self.tkhd.height or 0) >> 16

  def description(self, description_index):
    ''' The sample description numbered `description_index`
        counting from `1`, or the first description.
    '''
    if description_index and 0 < description_index <= len(self.descriptions):
      return self.descriptions[description_index - 1]
    return self.descriptions[0]

def text_track(trak) -> TextTrack:
  ''' Return a checked `TextTrack` for `trak`.
  '''
  track = TextTrack(trak)
  track.check()
  return track

def media_duration(track: TextTrack, samples: SampleSource) -> int:
  duration = samples.media_duration
  if duration is None:
    duration = track.mdhd.duration or 0
  return duration

def timed_samples(samples: SampleSource, duration: int):
  ''' Yield `(index,sample,end)` for each sample
      where `end` is the next sample's decode time
      or `duration` for the last sample,
      but never earlier than the sample's own decode time.
  '''
  count = samples.sample_count
  for index in range(1, count + 1):
    sample = samples.sample(index)
    if index < count:
      end = samples.sample(index + 1).dts
    else:
      end = duration
    yield index, sample, max(end, sample.dts)

def decode_sample(index: int, sample: Sample) -> Optional[TextSample]:
  ''' Decode `sample`, returning `None` if it cannot be decoded.
  '''
  with Pfx("sample %d", index):
    try:
      return TextSample.from_bytes(sample.data)
    except TextSampleDecodeError as e:
      warning("skipping undecodable sample: %s", e)
      return None

def shifted(offset: int, shifts: List[int]) -> int:
  ''' Adjust the character `offset` for the CRLF pairs
      written as single line breaks:
      each pair before `offset` removes one position.
  '''
  return offset - sum(1 for shift in shifts if offset > shift)

def char_offsets(start, end, shifts):
  ''' The `fromChar` and `toChar` attributes for a character range.
  '''
  start = shifted(start, shifts)
  end = shifted(end, shifts)
  if start or end:
    return [('fromChar', start), ('toChar', end)]
  return []

def ttxt_attrs(attrs) -> str:
  ''' Format TTXT attributes.
  '''
  return ''.join(
      f' {name}="{xml_escape_text(str(value))}"' for name, value in attrs
  )

def ttxt_text(text: str):
  ''' Return `(markup,shifts)` for the sample `text`:
      the escaped text with line breaks normalised to newlines
      and the offsets of the CRLF pairs collapsed to a single newline.
  '''
  out = []
  shifts = []
  i = 0
  while i < len(text):
    c = text[i]
    if c in LINE_BREAKS:
      out.append('\n')
      if c == '\r' and text[i + 1:i + 2] == '\n':
        shifts.append(i)
        i += 1
    elif c == "'":
      out.append('&apos;')
    elif c == '"':
      out.append('&quot;')
    elif c == '&':
      out.append('&amp;')
    elif c == '>':
      out.append('&gt;')
    elif c == '<':
      out.append('&lt;')
    elif ord(c) < 128:
      out.append(c)
    else:
      out.append(f'&#{ord(c)};')
    i += 1
  return ''.join(out), shifts

def text_box_line(record) -> str:
  return (
      f'<TextBox top="{record.top}" left="{record.left}"'
      f' bottom="{record.bottom}" right="{record.right}"/>\n'
  )

def style_line(record, shifts) -> str:
  attrs = []
  if record.start_char or record.end_char:
    attrs.extend(char_offsets(record.start_char, record.end_char, shifts))
  attrs.extend(
      [
          ('styles', style_names(record.style_flags)),
          ('fontID', record.font_id),
          ('fontSize', record.font_size),
          ('color', rgba8(record.text_color)),
      ]
  )
  return f'<Style{ttxt_attrs(attrs)}/>\n'

class DefaultTextBox:
  ''' A text box covering the whole track.
  '''

  def __init__(self, width, height):
    self.top = 0
    self.left = 0
    self.bottom = height
    self.right = width

def default_text_box(description, track: TextTrack):
  ''' The description's default text box,
      or the whole track if it is empty.
  '''
  record = description.default_box
  if (record is None or record.bottom == record.top
      or record.right == record.left):
    return DefaultTextBox(track.width, track.height)
  return record

def justification(value, names) -> str:
  ''' The name of a justification: `1` centred, `-1` right or bottom.
  '''
  if value == 1:
    return 'center'
  if value == -1:
    return names[1]
  return names[0]

def scroll_name(display_flags) -> str:
  if display_flags & DISPLAY_SCROLL_IN:
    if display_flags & DISPLAY_SCROLL_OUT:
      return 'InOut'
    return 'In'
  if display_flags & DISPLAY_SCROLL_OUT:
    return 'Out'
  return 'None'

def ttxt_description(f, description, track: TextTrack):
  ''' Write a `TextSampleDescription` element.
  '''
  display_flags = description.display_flags or 0
  if description.box_type == 'tx3g':
    attrs = [
        (
            'horizontalJustification',
            justification(description.horizontal_justification, ('left', 'right'))
        ),
        (
            'verticalJustification',
            justification(description.vertical_justification, ('top', 'bottom'))
        ),
        ('backColor', rgba8(description.background_color)),
        ('verticalText', 'yes' if display_flags & DISPLAY_VERTICAL_TEXT else 'no'),
        (
            'fillTextRegion',
            'yes' if display_flags & DISPLAY_FILL_TEXT_REGION else 'no'
        ),
        (
            'continuousKaraoke',
            'yes' if display_flags & DISPLAY_CONTINUOUS_KARAOKE else 'no'
        ),
    ]
    scroll = scroll_name(display_flags)
    attrs.append(('scroll', scroll))
    if scroll != 'None':
      mode = (display_flags & DISPLAY_SCROLL_DIRECTION) >> 7
      attrs.append(('scrollMode', SCROLL_MODES.get(mode, 'Unknown')))
    f.write(f'<TextSampleDescription{ttxt_attrs(attrs)}>\n')
    f.write('<FontTable>\n')
    ftab = description.FTAB0
    if ftab is not None:
      for font in ftab.fonts or ():
        f.write(
            f'<FontTableEntry fontName="{font.font_name or ""}"'
            f' fontID="{font.font_id}"/>\n'
        )
    f.write('</FontTable>\n')
    f.write(text_box_line(default_text_box(description, track)))
    if description.default_style is not None:
      f.write(style_line(description.default_style, ()))
  else:
    attrs = [
        (
            'horizontalJustification',
            justification(description.text_justification, ('left', 'right'))
        ),
        ('backColor', rgb16(description.background_color)),
        ('scroll', scroll_name(display_flags)),
    ]
    f.write(f'<TextSampleDescription{ttxt_attrs(attrs)}>\n')
    f.write(text_box_line(default_text_box(description, track)))
  f.write('</TextSampleDescription>\n')

def ttxt_overlays(f, text_sample: TextSample, shifts, timescale):
  ''' Write the overlay elements of a sample.
  '''
  tbox = text_sample.box_of_type('tbox')
  if tbox is not None and tbox.box_record is not None:
    f.write(text_box_line(tbox.box_record))
  for style in text_sample.styles:
    f.write(style_line(style, shifts))
  for box in text_sample.boxes:
    box_type = box.box_type
    if box_type == 'hlit':
      attrs = char_offsets(box.start_char, box.end_char, shifts)
      f.write(f'<Highlight{ttxt_attrs(attrs)}/>\n')
    elif box_type == 'href':
      attrs = char_offsets(box.start_char, box.end_char, shifts)
      attrs.append(('URL', box.url or ''))
      attrs.append(('URLToolTip', box.url_hint or ''))
      f.write(f'<HyperLink{ttxt_attrs(attrs)}/>\n')
    elif box_type == 'blnk':
      attrs = char_offsets(box.start_char, box.end_char, shifts)
      f.write(f'<Blinking{ttxt_attrs(attrs)}/>\n')
    elif box_type == 'krok':
      f.write(
          f'<Karaoke startTime="{(box.highlight_start_time or 0) / timescale:g}">\n'
      )
      for record in box.records or ():
        attrs = char_offsets(record.start_char, record.end_char, shifts)
        attrs.append(
            ('endTime', f'{record.highlight_end_time / timescale:g}')
        )
        f.write(f'<KaraokeRange{ttxt_attrs(attrs)}/>\n')
      f.write('</Karaoke>\n')

def dump_ttxt(trak, samples: SampleSource, f):
  ''' Write the text track `trak` to `f` as a TTXT document.
  '''
  track = text_track(trak)
  timescale = track.timescale
  duration = media_duration(track, samples)
  tkhd = track.tkhd
  matrix = list(tkhd and tkhd.matrix or (0,) * 9)
  f.write('<?xml version="1.0" encoding="UTF-8" ?>\n')
  f.write('<!-- GPAC 3GPP Text Stream -->\n')
  f.write('<TextStream version="1.1">\n')
  header_attrs = [
      ('width', track.width),
      ('height', track.height),
      ('layer', tkhd and tkhd.layer or 0),
      ('translation_x', matrix[6] >> 16),
      ('translation_y', matrix[7] >> 16),
  ]
  f.write(f'<TextStreamHeader{ttxt_attrs(header_attrs)}>\n')
  for description in track.descriptions:
    ttxt_description(f, description, track)
  f.write('</TextStreamHeader>\n')
  nb_descriptions = len(track.descriptions)
  last_dts = 0
  for index, sample, _ in timed_samples(samples, duration):
    text_sample = decode_sample(index, sample)
    if text_sample is None:
      continue
    attrs = [('sampleTime', format_duration(sample.dts, timescale))]
    if nb_descriptions > 1:
      attrs.append(('sampleDescriptionIndex', sample.description_index))
    hclr = text_sample.box_of_type('hclr')
    if hclr is not None:
      attrs.append(('highlightColor', rgba8(hclr.highlight_color)))
    dlay = text_sample.box_of_type('dlay')
    if dlay is not None:
      attrs.append(('scrollDelay', f'{(dlay.scroll_delay or 0) / timescale:g}'))
    twrp = text_sample.box_of_type('twrp')
    if twrp is not None:
      attrs.append(('wrap', 'Automatic' if twrp.wrap_flag == 1 else 'None'))
    attrs.append(('xml:space', 'preserve'))
    f.write(f'<TextSample{ttxt_attrs(attrs)}>')
    shifts = []
    if text_sample.text:
      last_dts = sample.dts
      markup, shifts = ttxt_text(text_sample.text)
      f.write(markup)
    else:
      last_dts = duration
    ttxt_overlays(f, text_sample, shifts, timescale)
    f.write('</TextSample>\n')
  if last_dts < duration:
    f.write(
        f'<TextSample sampleTime="{format_duration(duration, timescale)}"'
        ' text="" />\n'
    )
  f.write('</TextStream>\n')

def color_name(color: int) -> str:
  ''' The name of an ARGB colour for an SRT font tag,
      or `#rrggbb` if it has no name.
  '''
  rgb = color & 0xFFFFFF
  return COLOR_NAMES.get(rgb, f'#{rgb:06x}')

def default_style_of(description):
  ''' Return `(style_flags,text_color)` of a description's default style.
  '''
  style = description.default_style
  if style is None:
    return 0, None
  return style.style_flags or 0, style.text_color

def srt_style_tags(styles, new_styles) -> str:
  ''' The tags moving from `styles` to `new_styles`:
      `<b>`, `<i>`, `<u>` open in that order and close in reverse.
  '''
  tags = []
  if new_styles & STYLE_BOLD and not styles & STYLE_BOLD:
    tags.append('<b>')
  if new_styles & STYLE_ITALIC and not styles & STYLE_ITALIC:
    tags.append('<i>')
  if new_styles & STYLE_UNDERLINED and not styles & STYLE_UNDERLINED:
    tags.append('<u>')
  if styles & STYLE_UNDERLINED and not new_styles & STYLE_UNDERLINED:
    tags.append('</u>')
  if styles & STYLE_ITALIC and not new_styles & STYLE_ITALIC:
    tags.append('</i>')
  if styles & STYLE_BOLD and not new_styles & STYLE_BOLD:
    tags.append('</b>')
  return ''.join(tags)

def srt_text(text_sample: TextSample, description) -> str:
  ''' The SRT markup for a decoded sample.
  '''
  default_flags, default_color = default_style_of(description)
  style_records = text_sample.styles
  out = []
  styles = 0
  new_styles = default_flags
  color = new_color = default_color
  text = text_sample.text
  char_num = 0
  j = 0
  while j < len(text):
    if style_records:
      new_styles = default_flags
      new_color = default_color
      for record in style_records:
        if record.start_char > char_num or record.end_char < char_num + 1:
          continue
        if record.style_flags & STYLE_MASK:
          new_styles = record.style_flags
          new_color = record.text_color
          break
    if new_styles != styles:
      out.append(srt_style_tags(styles, new_styles))
      styles = new_styles
    if new_color != color:
      if color != default_color:
        out.append('</font>')
      if new_color != default_color:
        out.append(f'<font color="{color_name(new_color)}">')
      color = new_color
    c = text[j]
    if c in '\r\n':
      if c == '\r' and text[j + 1:j + 2] == '\n':
        j += 1
      out.append('\n')
    else:
      out.append(c)
    char_num += 1
    j += 1
  out.append(srt_style_tags(styles, 0))
  if color != default_color:
    out.append('</font>')
  return ''.join(out)

def dump_srt(trak, samples: SampleSource, f):
  ''' Write the text track `trak` to `f` as SRT subtitles.
      Empty samples are skipped.
  '''
  track = text_track(trak)
  timescale = track.timescale
  duration = media_duration(track, samples)
  counter = 0
  for index, sample, end in timed_samples(samples, duration):
    if len(sample.data) == 2:
      continue
    text_sample = decode_sample(index, sample)
    if text_sample is None:
      continue
    counter += 1
    f.write(f'{counter}\n')
    f.write(
        f'{format_srt_duration(sample.dts, timescale)} -->'
        f' {format_srt_duration(end, timescale)}\n'
    )
    if text_sample.text:
      description = track.description(sample.description_index)
      f.write(srt_text(text_sample, description))
    f.write('\n\n')

def dump_svg(trak, samples: SampleSource, f, nhml_f, base_media_file='file.svg'):
  ''' Write the text track `trak` to `f` as an SVG Tiny 1.2 overlay
      and its NHML sample index to `nhml_f`.
  '''
  track = text_track(trak)
  timescale = track.timescale
  duration = media_duration(track, samples)
  width = track.width
  height = track.height
  f.write('<?xml version="1.0" encoding="UTF-8"?>\n')
  f.write(
      '<svg version="1.2" baseProfile="tiny"'
      ' xmlns="http://www.w3.org/2000/svg"'
      ' xmlns:xlink="http://www.w3.org/1999/xlink"'
      f' width="{width}" height="{height}" fill="black">\n'
  )
  f.write(
      f'<g transform="translate({width // 2}, {height // 2})"'
      ' text-anchor="middle">\n'
  )
  starts = []
  for index, sample, end in timed_samples(samples, duration):
    if len(sample.data) == 2:
      continue
    text_sample = decode_sample(index, sample)
    if text_sample is None or not text_sample.text:
      continue
    starts.append(sample.dts)
    frame = len(starts)
    markup, _ = ttxt_text(text_sample.text)
    f.write(f' <text id="text_{frame}" display="none">{markup}\n')
    f.write(
        '  <set attributeName="display" to="inline"'
        f' begin="{sample.dts / timescale:g}" end="{end / timescale:g}"/>\n'
    )
    f.write(f'  <discard begin="{end / timescale:g}"/>\n')
    f.write(' </text>\n')
    f.write('\n')
  f.write('</g>\n')
  f.write('</svg>\n')
  nhml_f.write('<?xml version="1.0" encoding="UTF-8"?>\n')
  nhml_f.write(
      '<NHNTStream streamType="3" objectTypeIndication="10"'
      f' timeScale="{timescale}" baseMediaFile="{base_media_file}"'
      ' inRootOD="yes">\n'
  )
  nhml_f.write(
      '<NHNTSample isRAP="yes" DTS="0" xmlFrom="doc.start"'
      ' xmlTo="text_1.start"/>\n'
  )
  for i, start in enumerate(starts):
    frame = i + 1
    xml_to = 'doc.end' if frame == len(starts) else f'text_{frame + 1}.start'
    nhml_f.write(
        f'<NHNTSample isRAP="no" DTS="{float(start):f}"'
        f' xmlFrom="text_{frame}.start" xmlTo="{xml_to}"/>\n'
    )
  nhml_f.write('</NHNTStream>\n')

def dump_svg_file(trak, samples: SampleSource, svg_path: str):
  ''' Write the SVG overlay to `svg_path`
      and its NHML index to `svg_path`+`.nhml`.
  '''
  # check the track before creating any files
  text_track(trak)
  with open(svg_path, 'w', encoding='utf-8') as f:
    with open(svg_path + '.nhml', 'w', encoding='utf-8') as nhml_f:
      dump_svg(trak, samples, f, nhml_f, base_media_file=svg_path)
