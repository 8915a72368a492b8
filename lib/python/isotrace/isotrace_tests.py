#!/usr/bin/env python3

''' All the isotrace unit tests, and tests of the command line.
'''

from contextlib import redirect_stdout
from io import StringIO
import os.path
import sys
from tempfile import TemporaryDirectory
import unittest

from cs.logutils import setup_logging

from .__main__ import main
from .boxes_tests import TestBox, TestNewBox
from .escape_tests import TestEscape
from .registry import BOX_REGISTRY
from .registry_tests import TestRegistry
from .schema_tests import TestSchema
from .subtitles_tests import TestHelpers, TestSRT, TestSVG, TestTTXT, TestTrackCheck
from .textsample_tests import TestTextSample
from .trace_tests import TestDumpFile, TestRender, TestRenderers, TestTraceWriter

class TestCommand(unittest.TestCase):
  ''' Test the `isotrace` command.
  '''

  def test_types(self):
    out = StringIO()
    with redirect_stdout(out):
      xit = main(['isotrace', 'types'])
    self.assertEqual(xit, 0)
    lines = out.getvalue().splitlines()
    self.assertEqual(len(lines), len(BOX_REGISTRY) + 1)
    self.assertIn('render_moov', out.getvalue())

  def test_schema(self):
    with TemporaryDirectory() as tmpdir:
      path = os.path.join(tmpdir, 'schema.xml')
      self.assertEqual(main(['isotrace', 'schema', path]), 0)
      with open(path, encoding='utf-8') as f:
        self.assertTrue(f.read().startswith('<?xml'))

def selftest(argv, **kw):
  ''' Run the unit tests.
  '''
  setup_logging(__file__)
  sys.argv = argv
  unittest.main(__name__, defaultTest=None, argv=argv, failfast=True, **kw)

if __name__ == '__main__':
  selftest(sys.argv)
