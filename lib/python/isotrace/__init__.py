#!/usr/bin/env python3

''' XML trace dumps of ISO base media file format box trees,
    a schema enumerator documenting every supported box type,
    and TTXT, SRT and SVG export of timed text tracks.

    The box trees come from an external parser as `isotrace.boxes.Box` nodes.
    `isotrace.trace.dump_file` writes the trace document for a file's
    top level boxes; `isotrace.schema.dump_schema` writes the
    placeholder document for every registered box type.
'''

__version__ = '20261018'

DISTINFO = {
    'keywords': ["python3"],
    'classifiers': [
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Topic :: Multimedia :: Video",
    ],
    'install_requires': [
        'cs.binary',
        'cs.buffer',
        'cs.cmdutils',
        'cs.lex',
        'cs.logutils',
        'cs.pfx',
        'cs.threads',
        'icontract',
        'typeguard',
    ],
    'entry_points': {
        'console_scripts': [
            'isotrace = isotrace.__main__:main',
        ],
    },
}
