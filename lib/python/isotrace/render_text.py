#!/usr/bin/env python3
#
# Renderers for the 3GPP timed text and QuickTime text boxes.
#

''' Trace renderers for the 3GPP timed text sample entry,
    the QuickTime text sample entry, the font table
    and the text sample modifier boxes.

    The box and style records are any objects
    with the fields of `isotrace.textsample.BoxRecord`
    and `isotrace.textsample.StyleRecord`.
'''

# style record flags
STYLE_BOLD = 0x01
STYLE_ITALIC = 0x02
STYLE_UNDERLINED = 0x04

def rgba8(color) -> str:
  ''' Format a packed ARGB colour as `"r g b a"` in hex.
  '''
  if color is None:
    return ''
  return '%x %x %x %x' % (
      (color >> 16) & 0xFF, (color >> 8) & 0xFF, color & 0xFF,
      (color >> 24) & 0xFF
  )

def rgb16(color) -> str:
  ''' Format a QuickTime `(red,green,blue)` 16 bit colour as `"r g b"` in hex.
  '''
  if color is None:
    return ''
  return '%x %x %x' % tuple(color)

def style_names(style_flags) -> str:
  ''' The style flags as space separated names, or `Normal`.
  '''
  if not style_flags:
    return 'Normal'
  names = []
  if style_flags & STYLE_BOLD:
    names.append('Bold')
  if style_flags & STYLE_ITALIC:
    names.append('Italic')
  if style_flags & STYLE_UNDERLINED:
    names.append('Underlined')
  return ' '.join(names)

def box_record(T, record, name='BoxRecord'):
  ''' Write a text box record.
  '''
  if record is None:
    T.element(name, {'top': '', 'left': '', 'bottom': '', 'right': ''})
    return
  T.element(
      name, {
          'top': record.top,
          'left': record.left,
          'bottom': record.bottom,
          'right': record.right,
      }
  )

def style_record(T, record):
  ''' Write a style record.
  '''
  if record is None:
    T.element(
        'StyleRecord', {
            'startChar': '',
            'endChar': '',
            'fontID': '',
            'styles': 'Normal|Bold|Italic|Underlined',
            'fontSize': '',
            'textColor': '',
        }
    )
    return
  T.element(
      'StyleRecord', {
          'startChar': record.start_char,
          'endChar': record.end_char,
          'fontID': record.font_id,
          'styles': style_names(record.style_flags),
          'fontSize': record.font_size,
          'textColor': rgba8(record.text_color),
      }
  )

def render_tx3g(box, T):
  ''' The 3GPP timed text sample entry - 3GPP TS 26.245 section 5.16.
  '''
  T.start(
      box, 'Tx3gSampleEntryBox', {
          'dataReferenceIndex': box.data_reference_index,
          'displayFlags': f'{box.display_flags or 0:x}',
          'horizontal-justification': box.horizontal_justification,
          'vertical-justification': box.vertical_justification,
          'backgroundColor': rgba8(box.background_color),
      }
  )
  T.element('DefaultBox', close=False)
  box_record(T, box.default_box)
  T.end('DefaultBox')
  T.element('DefaultStyle', close=False)
  style_record(T, box.default_style)
  T.end('DefaultStyle')
  T.dump_slots(box, ('ftab',), required=('ftab',))
  T.done(box, 'Tx3gSampleEntryBox')

def render_text(box, T):
  ''' The QuickTime text sample entry.
  '''
  attrs = [
      ('dataReferenceIndex', box.data_reference_index),
      ('displayFlags', f'{box.display_flags or 0:x}'),
      ('textJustification', box.text_justification),
  ]
  if box.text_name:
    attrs.append(('textName', box.text_name))
  attrs.append(('background-color', rgb16(box.background_color)))
  attrs.append(('foreground-color', rgb16(box.foreground_color)))
  T.start(box, 'TextSampleEntryBox', attrs)
  T.element('DefaultBox', close=False)
  box_record(T, box.default_box)
  T.end('DefaultBox')
  T.done(box, 'TextSampleEntryBox')

def render_ftab(box, T):
  T.start(box, 'FontTableBox')
  for font in T.entries(box.fonts):
    T.element(
        'FontRecord', {
            'ID': font.font_id,
            'name': 'NULL' if font.font_name is None else font.font_name,
        }
    )
  if not box.size:
    T.element('FontRecord', {'ID': '', 'name': ''})
  T.done(box, 'FontTableBox')

def render_styl(box, T):
  T.start(box, 'TextStyleBox')
  for record in T.entries(box.styles):
    style_record(T, record)
  if not box.size:
    style_record(T, None)
  T.done(box, 'TextStyleBox')

def render_hlit(box, T):
  T.start(
      box, 'TextHighlightBox', {
          'startcharoffset': box.start_char,
          'endcharoffset': box.end_char,
      }
  )
  T.done(box, 'TextHighlightBox')

def render_hclr(box, T):
  T.start(
      box, 'TextHighlightColorBox',
      {'highlight_color': rgba8(box.highlight_color)}
  )
  T.done(box, 'TextHighlightColorBox')

def render_krok(box, T):
  ''' Karaoke box, highlight times in the track timescale.
  '''
  T.start(
      box, 'TextKaraokeBox', {'highlight_starttime': box.highlight_start_time}
  )
  for record in T.entries(box.records):
    T.element(
        'KaraokeRecord', {
            'highlight_endtime': record.highlight_end_time,
            'start_charoffset': record.start_char,
            'end_charoffset': record.end_char,
        }
    )
  if not box.size:
    T.element(
        'KaraokeRecord', {
            'highlight_endtime': '',
            'start_charoffset': '',
            'end_charoffset': '',
        }
    )
  T.done(box, 'TextKaraokeBox')

def render_dlay(box, T):
  T.start(box, 'TextScrollDelayBox', {'scroll_delay': box.scroll_delay})
  T.done(box, 'TextScrollDelayBox')

def render_href(box, T):
  T.start(
      box, 'TextHyperTextBox', {
          'startcharoffset': box.start_char,
          'endcharoffset': box.end_char,
          'URL': 'NULL' if box.url is None else box.url,
          'altString': 'NULL' if box.url_hint is None else box.url_hint,
      }
  )
  T.done(box, 'TextHyperTextBox')

def render_tbox(box, T):
  T.start(box, 'TextBoxBox')
  box_record(T, box.box_record)
  T.done(box, 'TextBoxBox')

def render_blnk(box, T):
  T.start(
      box, 'TextBlinkBox', {
          'start_charoffset': box.start_char,
          'end_charoffset': box.end_char,
      }
  )
  T.done(box, 'TextBlinkBox')

def wrap_name(wrap_flag) -> str:
  if not wrap_flag:
    return 'No Wrap'
  if wrap_flag > 1:
    return 'Reserved'
  return 'Automatic'

def render_twrp(box, T):
  T.start(box, 'TextWrapBox', {'wrap_flag': wrap_name(box.wrap_flag)})
  T.done(box, 'TextWrapBox')
