#!/usr/bin/env python3
#
# Command line access to the box trace schema.
#

''' The isotrace command line.
'''

from getopt import GetoptError
import sys

from cs.cmdutils import BaseCommand
from cs.lex import printt
from cs.pfx import Pfx

from .escape import fmt_hex, fourcc
from .registry import BOX_REGISTRY
from .schema import dump_schema

def main(argv=None):
  ''' Command line mode.
  '''
  return IsoTraceCommand(argv).run()

class IsoTraceCommand(BaseCommand):
  ''' Command line access to the supported box types and their schema.
  '''

  GETOPT_SPEC = ''

  def cmd_schema(self, argv):
    ''' Usage: {cmd} [output]
          Write the schema document, a placeholder trace
          of every supported box type, to output or the standard output.
    '''
    output = argv.pop(0) if argv else '-'
    if argv:
      raise GetoptError(f'extra arguments: {argv!r}')
    if output == '-':
      dump_schema(sys.stdout)
    else:
      with Pfx(output):
        with open(output, 'w', encoding='utf-8') as f:
          dump_schema(f)
    return 0

  def cmd_types(self, argv):
    ''' Usage: {cmd}
          List the registered box types in registry order.
    '''
    if argv:
      raise GetoptError(f'extra arguments: {argv!r}')
    printt(
        ['Type', 'Kind', 'Renderer', 'Version', 'Flags'],
        *(
            [
                repr(row.box_type),
                fourcc(row.alt_type),
                row.renderer.__name__,
                row.max_version,
                fmt_hex(row.flags),
            ] for row in BOX_REGISTRY
        ),
    )
    return 0

  def cmd_test(self, argv):
    ''' Usage: {cmd} [testnames...]
          Run self tests.
    '''
    from . import isotrace_tests  # pylint: disable=import-outside-toplevel
    isotrace_tests.selftest([self.options.cmd] + argv)

if __name__ == '__main__':
  sys.exit(main(sys.argv))
