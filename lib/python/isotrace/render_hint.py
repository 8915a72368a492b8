#!/usr/bin/env python3
#
# Renderers for the RTP hint track boxes.
#

''' Trace renderers for the RTP hint sample entry,
    the hint track information boxes
    and the hint statistics boxes.
'''

from .escape import fourcc

def render_ghnt(box, T):
  ''' A hint sample entry, such as the RTP hint sample entry `rtp `.
      The hint data table entries are its child boxes.
  '''
  T.start(
      box, 'GenericHintSampleEntryBox', {
          'EntrySubType': fourcc(box.box_type),
          'DataReferenceIndex': box.data_reference_index,
          'HintTrackVersion': box.hint_track_version,
          'LastCompatibleVersion': box.last_compatible_version,
          'MaxPacketSize': box.max_packet_size,
      }
  )
  T.dump_children(box)
  T.done(box, 'GenericHintSampleEntryBox')

def sdp_comment(T, sdp_text):
  if sdp_text:
    T.comment(f'sdp text: {sdp_text}')

def render_hnti(box, T):
  ''' Hint track information.
      An `rtp ` child here is the RTP movie information box
      holding the session SDP text, not a sample entry.
  '''
  T.start(box, 'HintTrackInfoBox')
  for child in box.boxes:
    if child.box_type == 'rtp ':
      T.element(
          'RTPInfoBox', {'subType': fourcc(child.sub_type or 'sdp ')},
          close=False
      )
      sdp_comment(T, child.sdp_text)
      T.end('RTPInfoBox')
    else:
      T.dump_boxes((child,))
  T.done(box, 'HintTrackInfoBox')

def render_sdp(box, T):
  T.start(box, 'SDPBox')
  sdp_comment(T, box.sdp_text)
  T.done(box, 'SDPBox')

def render_rtpo(box, T):
  T.start(box, 'RTPTimeOffsetBox', {'PacketTimeOffset': box.time_offset})
  T.done(box, 'RTPTimeOffsetBox')

def render_hinf(box, T):
  T.start(box, 'HintInfoBox')
  T.dump_children(box)
  T.done(box, 'HintInfoBox')

def render_name(box, T):
  T.start(box, 'NameBox', {'Name': box.string})
  T.done(box, 'NameBox')

def render_rely(box, T):
  T.start(
      box, 'RelyTransmissionBox', {
          'Prefered': box.preferred,
          'required': box.required,
      }
  )
  T.done(box, 'RelyTransmissionBox')

def render_tims(box, T):
  T.start(box, 'RTPTimeScaleBox', {'TimeScale': box.timescale})
  T.done(box, 'RTPTimeScaleBox')

def render_tsro(box, T):
  T.start(box, 'TimeStampOffsetBox', {'TimeStampOffset': box.time_offset})
  T.done(box, 'TimeStampOffsetBox')

def render_snro(box, T):
  T.start(box, 'PacketSequenceOffsetBox', {'SeqNumOffset': box.seq_offset})
  T.done(box, 'PacketSequenceOffsetBox')

# hint statistics boxes: box type -> (element name, attribute name, field name)
HINT_STATISTICS = {
    'trpy': ('LargeTotalRTPBytesBox', 'RTPBytesSent', 'byte_count'),
    'totl': ('TotalRTPBytesBox', 'RTPBytesSent', 'byte_count'),
    'nump': ('LargeTotalPacketBox', 'PacketsSent', 'packet_count'),
    'npck': ('TotalPacketBox', 'packetsSent', 'packet_count'),
    'tpyl': ('LargeTotalMediaBytesBox', 'BytesSent', 'byte_count'),
    'tpay': ('TotalMediaBytesBox', 'BytesSent', 'byte_count'),
    'dmed': ('BytesFromMediaTrackBox', 'BytesSent', 'byte_count'),
    'dimm': ('ImmediateDataBytesBox', 'BytesSent', 'byte_count'),
    'drep': ('RepeatedDataBytesBox', 'RepeatedBytes', 'byte_count'),
    'tmin': ('MinTransmissionTimeBox', 'MinimumTransmitTime', 'min_time'),
    'tmax': ('MaxTransmissionTimeBox', 'MaximumTransmitTime', 'max_time'),
    'pmax': ('MaxPacketSizeBox', 'MaximumSize', 'max_size'),
    'dmax': ('MaxPacketDurationBox', 'MaximumDuration', 'max_duration'),
}

def render_hint_statistic(box, T):
  ''' A single valued hint statistics box from `HINT_STATISTICS`.
  '''
  name, attr, field_name = HINT_STATISTICS[box.box_type]
  T.start(box, name, {attr: getattr(box, field_name)})
  T.done(box, name)

def render_maxr(box, T):
  T.start(
      box, 'MaxDataRateBox', {
          'MaxDataRate': box.max_data_rate,
          'Granularity': box.granularity,
      }
  )
  T.done(box, 'MaxDataRateBox')

def render_payt(box, T):
  T.start(
      box, 'PayloadTypeBox', {
          'PayloadID': box.payload_code,
          'PayloadString': box.payload_string,
      }
  )
  T.done(box, 'PayloadTypeBox')
