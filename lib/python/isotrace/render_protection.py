#!/usr/bin/env python3
#
# Renderers for the content protection boxes.
#

''' Trace renderers for the content protection boxes:
    the protection scheme boxes, common encryption,
    the PIFF extension boxes, OMA DRM, Adobe access,
    and the track selection and sub track boxes.
'''

from collections import namedtuple

from .escape import data_uri, fmt_hex, fmt_4cc_list, fourcc, hex_data

# per sample encryption information from 'senc' and PIFF 'psec' boxes
SampleEncryptionInfo = namedtuple('SampleEncryptionInfo', 'iv subsamples')
SubSampleEncryption = namedtuple(
    'SubSampleEncryption', 'clear_bytes encrypted_bytes'
)

def render_sinf(box, T):
  ''' Protection scheme information box - ISO14496 section 8.12.1.
  '''
  T.start(box, 'ProtectionInfoBox')
  T.dump_slots(
      box, ('frma', 'schm', 'schi'), required=('frma', 'schm', 'schi')
  )
  T.done(box, 'ProtectionInfoBox')

def render_frma(box, T):
  T.start(box, 'OriginalFormatBox', {'data_format': fourcc(box.data_format)})
  T.done(box, 'OriginalFormatBox')

def render_schm(box, T):
  attrs = [
      ('scheme_type', fourcc(box.scheme_type)),
      ('scheme_version', box.scheme_version),
  ]
  if box.scheme_uri:
    attrs.append(('scheme_uri', box.scheme_uri))
  T.start(box, 'SchemeTypeBox', attrs)
  T.done(box, 'SchemeTypeBox')

def render_schi(box, T):
  T.start(box, 'SchemeInformationBox')
  T.dump_slots(box, ('iKMS', 'iSFM', 'odkm', 'tenc', 'adkm'))
  T.done(box, 'SchemeInformationBox')

def render_ikms(box, T):
  T.start(box, 'KMSBox', {'kms_URI': box.uri})
  T.done(box, 'KMSBox')

def render_isfm(box, T):
  ''' The ISMA sample format box, also the OMA access unit format box.
  '''
  name = 'ISMASampleFormat' if box.box_type == 'iSFM' else 'OMADRMAUFormatBox'
  T.start(
      box, name, {
          'selective_encryption': box.selective_encryption,
          'key_indicator_length': box.key_indicator_length,
          'IV_length': box.iv_length,
      }
  )
  T.done(box, name)

def render_pssh(box, T):
  ''' Protection system specific header box - ISO23001-7 section 8.1.
  '''
  T.start(
      box, 'ProtectionSystemHeaderBox',
      {'SystemID': hex_data(box.system_id or b'')}
  )
  for kid in T.entries(box.kids):
    T.element('PSSHKey', {'KID': hex_data(kid)})
  if box.private_data:
    T.element(
        'PSSHData', {
            'size': len(box.private_data),
            'value': hex_data(box.private_data),
        }
    )
  if not box.size:
    T.element('PSSHKey', {'KID': ''})
    T.element('PSSHData', {'size': '', 'value': ''})
  T.done(box, 'ProtectionSystemHeaderBox')

def render_tenc(box, T):
  ''' Track encryption box - ISO23001-7 section 8.2.
      A track without a per sample IV size uses a constant IV.
  '''
  attrs = [('isEncrypted', box.is_protected)]
  if box.per_sample_iv_size:
    attrs.append(('IV_size', box.per_sample_iv_size))
  else:
    attrs.append(('constant_IV_size', box.constant_iv_size))
    attrs.append(('constant_IV', hex_data(box.constant_iv or b'')))
  attrs.append(('KID', hex_data(box.kid or b'')))
  if box.version:
    attrs.append(('crypt_byte_block', box.crypt_byte_block))
    attrs.append(('skip_byte_block', box.skip_byte_block))
  T.start(box, 'TrackEncryptionBox', attrs)
  T.done(box, 'TrackEncryptionBox')

def piff_attrs(box):
  ''' The version and flags of a PIFF extension box,
      which is a full box inside a 'uuid' box.
  '''
  return [('Version', box.version or 0), ('Flags', fmt_hex(box.flags or 0))]

def render_piff_pssh(box, T):
  T.start(
      box, 'PIFFProtectionSystemHeaderBox', piff_attrs(box) + [
          ('SystemID', hex_data(box.system_id or b'')),
          ('PrivateData', hex_data(box.private_data or b'')),
      ]
  )
  T.done(box, 'PIFFProtectionSystemHeaderBox')

def render_piff_tenc(box, T):
  T.start(
      box, 'PIFFTrackEncryptionBox', piff_attrs(box) + [
          ('AlgorithmID', box.algorithm_id),
          ('IV_size', box.iv_size),
          ('KID', hex_data(box.kid or b'')),
      ]
  )
  T.done(box, 'PIFFTrackEncryptionBox')

def _render_sample_encryption(
    T, samples, entry_name, subentry_name, with_subsamples, number_samples
):
  for i, sample in enumerate(T.entries(samples)):
    attrs = []
    if number_samples:
      attrs.append(('sampleCount', i + 1))
    attrs.append(('IV', hex_data(sample.iv or b'')))
    subsamples = list(sample.subsamples or ())
    if not with_subsamples:
      T.element(entry_name, attrs)
      continue
    attrs.append(('SubsampleCount', len(subsamples)))
    T.element(entry_name, attrs, close=False)
    for subsample in subsamples:
      T.element(
          subentry_name, {
              'NumClearBytes': subsample.clear_bytes,
              'NumEncryptedBytes': subsample.encrypted_bytes,
          }
      )
    T.end(entry_name)

def _sample_encryption_exemplar(T, entry_name, subentry_name, number_samples):
  attrs = [('IV', ''), ('SubsampleCount', '')]
  if number_samples:
    attrs.insert(0, ('sampleCount', ''))
  T.element(entry_name, attrs, close=False)
  T.element(subentry_name, {'NumClearBytes': '', 'NumEncryptedBytes': ''})
  T.end(entry_name)

def render_piff_psec(box, T):
  ''' PIFF sample encryption box.
      Flag `1` carries overriding track encryption parameters,
      flag `2` carries subsample information.
      Samples with no IV are not shown.
  '''
  samples = [sample for sample in box.samples or () if sample.iv]
  flags = box.flags or 0
  attrs = piff_attrs(box) + [('sampleCount', len(box.samples or ()))]
  if flags & 1:
    attrs.extend(
        (
            ('AlgorithmID', box.algorithm_id),
            ('IV_size', box.iv_size),
            ('KID', data_uri(box.kid or b'')),
        )
    )
  T.start(box, 'PIFFSampleEncryptionBox', attrs)
  _render_sample_encryption(
      T, samples, 'PIFFSampleEncryptionEntry', 'PIFFSubSampleEncryptionEntry',
      bool(flags & 2), False
  )
  if not box.size:
    _sample_encryption_exemplar(
        T, 'PIFFSampleEncryptionEntry', 'PIFFSubSampleEncryptionEntry', False
    )
  T.done(box, 'PIFFSampleEncryptionBox')

def render_senc(box, T):
  ''' Sample encryption box - ISO23001-7 section 7.2.
  '''
  samples = list(box.samples or ())
  T.start(box, 'SampleEncryptionBox', {'sampleCount': len(samples)})
  _render_sample_encryption(
      T, samples, 'SampleEncryptionEntry', 'SubSampleEncryptionEntry',
      bool((box.flags or 0) & 2), True
  )
  if not box.size:
    _sample_encryption_exemplar(
        T, 'SampleEncryptionEntry', 'SubSampleEncryptionEntry', True
    )
  T.done(box, 'SampleEncryptionBox')

def textual_headers(headers):
  ''' Return the OMA textual headers as a space separated string.
      `headers` may be the raw NUL separated bytes or a list of strings.
  '''
  if headers is None:
    return None
  if isinstance(headers, (bytes, bytearray)):
    headers = [
        header.decode('utf-8', errors='replace')
        for header in bytes(headers).split(b'\0')
    ]
  return ' '.join(headers)

def render_ohdr(box, T):
  ''' OMA DRM common headers box.
  '''
  attrs = [
      ('EncryptionMethod', box.encryption_method),
      ('PaddingScheme', box.padding_scheme),
      ('PlaintextLength', box.plaintext_length),
  ]
  if box.rights_issuer_url:
    attrs.append(('RightsIssuerURL', box.rights_issuer_url))
  if box.content_id:
    attrs.append(('ContentID', box.content_id))
  if box.textual_headers:
    attrs.append(('TextualHeaders', textual_headers(box.textual_headers)))
  T.start(box, 'OMADRMCommonHeaderBox', attrs)
  T.done(box, 'OMADRMCommonHeaderBox')

def render_grpi(box, T):
  T.start(
      box, 'OMADRMGroupIDBox', {
          'GroupID': box.group_id,
          'EncryptionMethod': box.encryption_method,
          'GroupKey': data_uri(box.group_key) if box.group_key else '',
      }
  )
  T.done(box, 'OMADRMGroupIDBox')

def render_mdri(box, T):
  T.start(box, 'OMADRMMutableInformationBox')
  T.dump_children(box)
  T.done(box, 'OMADRMMutableInformationBox')

def render_odtt(box, T):
  T.start(
      box, 'OMADRMTransactionTrackingBox',
      {'TransactionID': data_uri(box.transaction_id or b'')}
  )
  T.done(box, 'OMADRMTransactionTrackingBox')

def render_odrb(box, T):
  T.start(
      box, 'OMADRMRightsObjectBox',
      {'OMARightsObject': data_uri(box.rights_object or b'')}
  )
  T.done(box, 'OMADRMRightsObjectBox')

def render_odkm(box, T):
  T.start(box, 'OMADRMKMSBox')
  T.dump_slots(box, ('ohdr', 'odaf'))
  T.done(box, 'OMADRMKMSBox')

def render_adkm(box, T):
  T.start(box, 'AdobeDRMKeyManagementSystemBox')
  T.dump_slots(box, ('ahdr', 'adaf'))
  T.done(box, 'AdobeDRMKeyManagementSystemBox')

def render_ahdr(box, T):
  T.start(box, 'AdobeDRMHeaderBox')
  T.dump_slots(box, ('aprm',))
  T.done(box, 'AdobeDRMHeaderBox')

def render_aprm(box, T):
  T.start(box, 'AdobeStdEncryptionParamsBox')
  T.dump_slots(box, ('aeib', 'akey'))
  T.done(box, 'AdobeStdEncryptionParamsBox')

def render_aeib(box, T):
  T.start(
      box, 'AdobeEncryptionInfoBox', {
          'EncryptionAlgorithm': box.encryption_algorithm,
          'KeyLength': box.key_length,
      }
  )
  T.done(box, 'AdobeEncryptionInfoBox')

def render_akey(box, T):
  T.start(box, 'AdobeKeyInfoBox')
  T.dump_slots(box, ('flxs',))
  T.done(box, 'AdobeKeyInfoBox')

def render_flxs(box, T):
  T.start(box, 'AdobeFlashAccessParamsBox')
  if box.metadata:
    T.element('FmrmsV2Metadata', {'metadata': box.metadata})
  T.done(box, 'AdobeFlashAccessParamsBox')

def render_adaf(box, T):
  T.start(
      box, 'AdobeDRMAUFormatBox', {
          'SelectiveEncryption': 1 if box.selective_encryption else 0,
          'IV_length': box.iv_length,
      }
  )
  T.done(box, 'AdobeDRMAUFormatBox')

def render_tsel(box, T):
  ''' Track selection box - ISO14496 section 8.10.3.
  '''
  T.start(
      box, 'TrackSelectionBox', {
          'switchGroup': box.switch_group,
          'criteria': fmt_4cc_list(box.attribute_list, ';'),
      }
  )
  T.done(box, 'TrackSelectionBox')

def render_strk(box, T):
  T.start(box, 'SubTrackBox')
  T.dump_slots(box, ('stri',))
  T.done(box, 'SubTrackBox')

def render_stri(box, T):
  T.start(
      box, 'SubTrackInformationBox', {
          'switch_group': box.switch_group,
          'alternate_group': box.alternate_group,
          'sub_track_id': box.sub_track_id,
          'attribute_list':
          ''.join(f'{fourcc(code)} ' for code in box.attribute_list or ()),
      }
  )
  T.done(box, 'SubTrackInformationBox')
