#!/usr/bin/env python3
#
# The box type registry.
#

''' The registry of box types, mapping each 4 character type code
    to its renderer, in declaration order.

    Several rows may share a type code:
    the track and item reference rows (`REFT`, `REFI`),
    the sample group description rows (`sgpd`)
    and the auxiliary information rows (`saiz`, `saio`)
    differ in the alternate code, version or flags they exercise.
    `lookup()` uses the first row for a code,
    the schema enumerator uses every row.
'''

from collections import namedtuple
from typing import Tuple

from typeguard import typechecked

from .boxes import UnregisteredBoxTypeError
from .render_fragments import (
    render_abst,
    render_afra,
    render_afrt,
    render_asrt,
    render_leva,
    render_mehd,
    render_mfhd,
    render_mfra,
    render_mfro,
    render_moof,
    render_mvex,
    render_pcrb,
    render_prft,
    render_sidx,
    render_ssix,
    render_tfdt,
    render_tfhd,
    render_tfra,
    render_traf,
    render_trep,
    render_trex,
    render_trun,
)
from .render_hint import (
    render_ghnt,
    render_hinf,
    render_hint_statistic,
    render_hnti,
    render_maxr,
    render_name,
    render_payt,
    render_rely,
    render_rtpo,
    render_sdp,
    render_snro,
    render_tims,
    render_tsro,
)
from .render_meta import (
    render_apple_tag,
    render_bxml,
    render_colr,
    render_grpl,
    render_iinf,
    render_iloc,
    render_ilst,
    render_infe,
    render_ipco,
    render_ipma,
    render_iprp,
    render_ipro,
    render_iref,
    render_ireftype,
    render_irot,
    render_ispe,
    render_meta,
    render_pitm,
    render_pixi,
    render_rloc,
    render_xml,
)
from .render_movie import (
    render_boxstring,
    render_chpl,
    render_cprt,
    render_dinf,
    render_dref,
    render_edts,
    render_elng,
    render_elst,
    render_free,
    render_ftyp,
    render_hdlr,
    render_hmhd,
    render_iods,
    render_kind,
    render_mdat,
    render_mdhd,
    render_mdia,
    render_minf,
    render_moov,
    render_mvhd,
    render_nmhd,
    render_pdin,
    render_reftype,
    render_rvcc,
    render_smhd,
    render_tkhd,
    render_trak,
    render_tref,
    render_trgr,
    render_trgt,
    render_udta,
    render_unknown,
    render_url,
    render_urn,
    render_uuid,
    render_vmhd,
    render_void,
    render_vtcu,
    render_vtte,
)
from .render_protection import (
    render_adaf,
    render_adkm,
    render_aeib,
    render_ahdr,
    render_akey,
    render_aprm,
    render_flxs,
    render_frma,
    render_grpi,
    render_ikms,
    render_isfm,
    render_mdri,
    render_odkm,
    render_odrb,
    render_odtt,
    render_ohdr,
    render_pssh,
    render_schi,
    render_schm,
    render_senc,
    render_sinf,
    render_stri,
    render_strk,
    render_tenc,
    render_tsel,
)
from .render_sampleentry import (
    render_ac3,
    render_avcc,
    render_btrt,
    render_dac3,
    render_dimc,
    render_dims,
    render_dist,
    render_esds,
    render_gnra,
    render_gnrm,
    render_gnrv,
    render_gppa,
    render_gppc,
    render_gppv,
    render_hvcc,
    render_lsr1,
    render_lsrc,
    render_m4ds,
    render_metx,
    render_mp4a,
    render_mp4s,
    render_mp4v,
    render_pasp,
    render_txtc,
    render_wvtt,
)
from .render_sampletable import (
    render_co64,
    render_cslg,
    render_ctts,
    render_padb,
    render_saio,
    render_saiz,
    render_sbgp,
    render_sdtp,
    render_sgpd,
    render_stbl,
    render_stco,
    render_stdp,
    render_stsc,
    render_stsd,
    render_stsf,
    render_stsh,
    render_stss,
    render_stsz,
    render_stts,
    render_subs,
)
from .render_text import (
    render_blnk,
    render_dlay,
    render_ftab,
    render_hclr,
    render_hlit,
    render_href,
    render_krok,
    render_styl,
    render_tbox,
    render_text,
    render_twrp,
    render_tx3g,
)

RegistryRow = namedtuple(
    'RegistryRow', 'box_type alt_type renderer max_version flags'
)

def _box(box_type, renderer, max_version=0, flags=0):
  ''' A row for a plain or full box.
  '''
  return RegistryRow(box_type, None, renderer, max_version, flags)

def _kind(box_type, renderer, alt_type, max_version=0):
  ''' A row for a box whose kind is named by an alternate code.
  '''
  return RegistryRow(box_type, alt_type, renderer, max_version, 0)

# track reference kinds
TRACK_REFERENCE_TYPES = (
    'mpod', 'dpnd', 'sync', 'ipir', 'cdsc', 'hint', 'chap', 'sbas', 'scal',
    'tbas', 'sabt', 'oref', 'font', 'hind', 'vdep', 'vplx', 'subt'
)

# item reference kinds
ITEM_REFERENCE_TYPES = ('tbas', 'iloc')

# sample group description kinds with specific entry formats
SAMPLE_GROUP_TYPES = ('roll', 'seig', 'oinf', 'linf', 'trif', 'nalm')

# iTunes tags
APPLE_TAG_TYPES = (
    '\xa9nam', '\xa9cmt', '\xa9day', '\xa9ART', '\xa9trk', '\xa9alb', '\xa9com',
    '\xa9wrt', '\xa9too', '\xa9cpy', '\xa9des', '\xa9gen', '\xa9grp', 'gnre',
    'disk', 'trkn', 'tmpo', 'cpil', 'covr', '----'
)

# track fragment header and run flags exercised by the schema
TFHD_SCHEMA_FLAGS = 0x000001 | 0x000002 | 0x000008 | 0x000010 | 0x000020 | 0x010000 | 0x020000
TRUN_SCHEMA_FLAGS = 0x000001 | 0x000004 | 0x000100 | 0x000200 | 0x000400 | 0x000800

BOX_REGISTRY = (
    (_box('UNKN', render_unknown),) +
    tuple(_kind('REFT', render_reftype, ref) for ref in TRACK_REFERENCE_TYPES)
    + tuple(_kind('REFI', render_ireftype, ref) for ref in ITEM_REFERENCE_TYPES)
    + (
        _box('free', render_free),
        _box('skip', render_free),
        _box('mdat', render_mdat),
        _box('moov', render_moov),
        _box('mvhd', render_mvhd, 1),
        _box('mdhd', render_mdhd, 1),
        _box('vmhd', render_vmhd),
        _box('smhd', render_smhd),
        _box('hmhd', render_hmhd),
        # the same box is used for all MPEG-4 systems streams
        _box('odhd', render_nmhd),
        _box('crhd', render_nmhd),
        _box('sdhd', render_nmhd),
        _box('nmhd', render_nmhd),
        _box('sthd', render_nmhd),
        _box('stbl', render_stbl),
        _box('dinf', render_dinf),
        _box('url ', render_url),
        _box('urn ', render_urn),
        _box('cprt', render_cprt, 1),
        _box('kind', render_kind),
        _box('hdlr', render_hdlr),
        _box('iods', render_iods),
        _box('trak', render_trak),
        _box('mp4s', render_mp4s),
        _box('mp4v', render_mp4v),
        _box('mp4a', render_mp4a),
        _box('gnrm', render_gnrm),
        _box('gnrv', render_gnrv),
        _box('gnra', render_gnra),
        _box('edts', render_edts),
        _box('udta', render_udta),
        _box('dref', render_dref),
        _box('stsd', render_stsd),
        _box('stts', render_stts),
        _box('ctts', render_ctts, 1),
        _box('cslg', render_cslg, 1),
        _box('stsh', render_stsh),
        _box('elst', render_elst, 1),
        _box('stsc', render_stsc),
        _box('stz2', render_stsz),
        _box('stsz', render_stsz),
        _box('stco', render_stco),
        _box('stss', render_stss),
        _box('stdp', render_stdp),
        _box('sdtp', render_sdtp),
        _box('co64', render_co64),
        _box('esds', render_esds),
        _box('minf', render_minf),
        _box('tkhd', render_tkhd, 1),
        _box('tref', render_tref),
        _box('mdia', render_mdia),
        _box('mfra', render_mfra),
        _box('mfro', render_mfro),
        _box('tfra', render_tfra, 1),
        _box('elng', render_elng),
        _box('chpl', render_chpl),
        _box('pdin', render_pdin),
        _box('sbgp', render_sbgp, 1),
        _box('sgpd', render_sgpd, 2),
    ) + tuple(_kind('sgpd', render_sgpd, group) for group in SAMPLE_GROUP_TYPES)
    + (
        _box('saiz', render_saiz),
        _box('saiz', render_saiz, flags=1),
        _box('saio', render_saio),
        _box('saio', render_saio, flags=1),
        _box('rtp ', render_ghnt),
        _box('rtpo', render_rtpo),
        _box('hnti', render_hnti),
        _box('sdp ', render_sdp),
        _box('hinf', render_hinf),
        _box('rely', render_rely),
        _box('tims', render_tims),
        _box('tsro', render_tsro),
        _box('snro', render_snro),
        _box('trpy', render_hint_statistic),
        _box('nump', render_hint_statistic),
        _box('totl', render_hint_statistic),
        _box('npck', render_hint_statistic),
        _box('tpyl', render_hint_statistic),
        _box('tpay', render_hint_statistic),
        _box('maxr', render_maxr),
        _box('dmed', render_hint_statistic),
        _box('dimm', render_hint_statistic),
        _box('drep', render_hint_statistic),
        _box('tmin', render_hint_statistic),
        _box('tmax', render_hint_statistic),
        _box('pmax', render_hint_statistic),
        _box('dmax', render_hint_statistic),
        _box('payt', render_payt),
        _box('name', render_name),
        _box('ftyp', render_ftyp),
        _box('styp', render_ftyp),
        _box('padb', render_padb),
        _box('mvex', render_mvex),
        _box('mehd', render_mehd, 1),
        _box('trex', render_trex),
        _box('trep', render_trep),
        _box('moof', render_moof),
        _box('mfhd', render_mfhd),
        _box('traf', render_traf),
        # fragment headers and runs are exercised with all their fields
        _box('tfhd', render_tfhd, flags=TFHD_SCHEMA_FLAGS),
        _box('trun', render_trun, flags=TRUN_SCHEMA_FLAGS),
        _box('tfdt', render_tfdt, 1),
        _box('subs', render_subs, 1),
        _box('rvcc', render_rvcc),
        _box('trgr', render_trgr),
        _kind('trgt', render_trgt, 'msrc'),
        _box('void', render_void),
        _box('stsf', render_stsf),
        _box('samr', render_gppa),
        _box('sawb', render_gppa),
        _box('sqcp', render_gppa),
        _box('sevc', render_gppa),
        _box('ssmv', render_gppa),
        _box('s263', render_gppv),
        _box('damr', render_gppc),
        _box('devc', render_gppc),
        _box('dqcp', render_gppc),
        _box('dsmv', render_gppc),
        _box('d263', render_gppc),
        _box('avcC', render_avcc),
        _box('svcC', render_avcc),
        _box('hvcC', render_hvcc),
        _box('lhvC', render_hvcc),
        _box('btrt', render_btrt),
        _box('m4ds', render_m4ds),
        _box('avc1', render_mp4v),
        _box('avc2', render_mp4v),
        _box('avc3', render_mp4v),
        _box('avc4', render_mp4v),
        _box('svc1', render_mp4v),
        _box('hvc1', render_mp4v),
        _box('hev1', render_mp4v),
        _box('hvc2', render_mp4v),
        _box('hev2', render_mp4v),
        _box('lhv1', render_mp4v),
        _box('lhe1', render_mp4v),
        _box('hvt1', render_mp4v),
        _box('pasp', render_pasp),
        _box('ftab', render_ftab),
        _box('tx3g', render_tx3g),
        _box('text', render_text),
        _box('styl', render_styl),
        _box('hlit', render_hlit),
        _box('hclr', render_hclr),
        _box('krok', render_krok),
        _box('dlay', render_dlay),
        _box('href', render_href),
        _box('tbox', render_tbox),
        _box('blnk', render_blnk),
        _box('twrp', render_twrp),
        _box('pssh', render_pssh),
        _box('tenc', render_tenc),
        # ISMA encryption and authentication
        _box('iKMS', render_ikms),
        _box('iSFM', render_isfm),
        # MPEG-21 extensions
        _box('meta', render_meta),
        _box('xml ', render_xml),
        _box('bxml', render_bxml),
        _box('iloc', render_iloc, 2),
        _box('pitm', render_pitm, 1),
        _box('ipro', render_ipro),
        _box('infe', render_infe, 1),
        _box('infe', render_infe, 2),
        _box('iinf', render_iinf, 1),
        _box('iref', render_iref, 1),
        _box('sinf', render_sinf),
        _box('frma', render_frma),
        _box('schm', render_schm, flags=1),
        _box('schi', render_schi),
        _box('enca', render_mp4a),
        _box('encv', render_mp4v),
        _box('encs', render_mp4s),
        _box('prft', render_prft, 1),
    ) + tuple(_box(tag, render_apple_tag) for tag in APPLE_TAG_TYPES) + (
        # Adobe HTTP dynamic streaming
        _box('abst', render_abst),
        _box('afra', render_afra),
        _box('asrt', render_asrt),
        _box('afrt', render_afrt),
        _box('ilst', render_ilst),
        # OMA DRM
        _box('ohdr', render_ohdr),
        _box('grpi', render_grpi),
        _box('mdri', render_mdri),
        _box('odtt', render_odtt),
        _box('odrb', render_odrb),
        _box('odkm', render_odkm),
        _box('odaf', render_isfm),
        _box('tsel', render_tsel),
        _box('strk', render_strk),
        _box('stri', render_stri),
        _box('metx', render_metx),
        _box('mett', render_metx),
        _box('dims', render_dims),
        _box('dimC', render_dimc),
        _box('diST', render_dist),
        _box('ac-3', render_ac3),
        _box('dac3', render_dac3),
        _box('lsr1', render_lsr1),
        _box('lsrC', render_lsrc),
        _box('sidx', render_sidx, 1),
        _box('ssix', render_ssix),
        _box('leva', render_leva),
        _box('pcrb', render_pcrb),
        _box('senc', render_senc),
        _box('uuid', render_uuid),
        _box('stxt', render_metx),
        _box('txtc', render_txtc),
        # WebVTT
        _box('vttC', render_boxstring),
        _box('ctim', render_boxstring),
        _box('iden', render_boxstring),
        _box('sttg', render_boxstring),
        _box('payl', render_boxstring),
        _box('vttA', render_boxstring),
        _box('vtcu', render_vtcu),
        _box('vtte', render_vtte),
        _box('wvtt', render_wvtt),
        _box('stpp', render_metx),
        _box('sbtt', render_metx),
        # Adobe access protection
        _box('adkm', render_adkm),
        _box('ahdr', render_ahdr),
        _box('adaf', render_adaf),
        _box('aprm', render_aprm),
        _box('aeib', render_aeib),
        _box('akey', render_akey),
        _box('flxs', render_flxs),
        # image file format
        _box('ispe', render_ispe),
        _box('colr', render_colr),
        _box('pixi', render_pixi),
        _box('rloc', render_rloc),
        _box('irot', render_irot),
        _box('ipco', render_ipco),
        _box('iprp', render_iprp),
        _box('ipma', render_ipma),
        _box('grpl', render_grpl),
    )
)

# the first row for each box type
_ROWS_BY_TYPE = {}
for _row in BOX_REGISTRY:
  _ROWS_BY_TYPE.setdefault(_row.box_type, _row)
del _row

@typechecked
def lookup(box_type: str) -> RegistryRow:
  ''' Return the first registry row for `box_type`.
      Raises `UnregisteredBoxTypeError` if there is none.
  '''
  row = _ROWS_BY_TYPE.get(box_type)
  if row is None:
    raise UnregisteredBoxTypeError(box_type)
  return row

@typechecked
def rows_for(box_type: str) -> Tuple[RegistryRow, ...]:
  ''' Return all the registry rows for `box_type` in registry order.
  '''
  return tuple(row for row in BOX_REGISTRY if row.box_type == box_type)

def is_registered(box_type: str) -> bool:
  ''' Test whether `box_type` has a renderer.
  '''
  return box_type in _ROWS_BY_TYPE
