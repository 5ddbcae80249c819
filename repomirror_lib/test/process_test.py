#!/usr/bin/env python3
# (Be in -*- python -*- mode.)
#
# ====================================================================
# Copyright (c) 2000-2009 CollabNet.  All rights reserved.
#
# This software is licensed as described in the file COPYING, which
# you should have received as part of this distribution.  The terms
# are also available at http://subversion.tigris.org/license-1.html.
# If newer versions of this license are posted there, you may use a
# newer version instead, at your option.
#
# This software consists of voluntary contributions made by many
# individuals.  For exact contribution history, see the revision
# history and logs, available at http://cvs2svn.tigris.org/.
# ====================================================================


"""Unit tests of the CommandRunner.

The commands run are small Python scripts, so that the tests only
depend on the interpreter running them."""

import sys
import os
import unittest

SRCPATH = os.path.normpath(os.path.join(os.path.dirname(__file__), '..', '..'))
sys.path.insert(0, SRCPATH)

from repomirror_lib.common import CommandError
from repomirror_lib.common import FatalError
from repomirror_lib.process import CommandRunner
from repomirror_lib.process import check_command_runs


def python_args(script):
  return ['-c', script]


class CommandRunnerTestCase(unittest.TestCase):
  def setUp(self):
    self.runner = CommandRunner()

  def test_output(self):
    result = self.runner.run(
        sys.executable,
        python_args(
            'import sys; sys.stdout.write("out\\n"); sys.stderr.write("err\\n")'
            ),
        )
    self.assertEqual(result.stdout, 'out\n')
    self.assertEqual(result.stderr, 'err\n')
    self.assertEqual(result.exit_status, 0)

  def test_undecodable_output(self):
    result = self.runner.run(
        sys.executable,
        python_args(
            'import sys; sys.stdout.buffer.write(b"\\xffabc"); '
            'sys.stderr.buffer.write(b"caf\\xe9\\n")'
            ),
        )
    self.assertEqual(result.stdout, '\udcffabc')
    self.assertEqual(result.stderr, 'caf\udce9\n')
    # The original bytes can be recovered:
    self.assertEqual(
        result.stdout.encode('utf-8', 'surrogateescape'), b'\xffabc'
        )

  def test_utf8_output(self):
    result = self.runner.run(
        sys.executable,
        python_args('import sys; sys.stdout.buffer.write(b"\\xc3\\xa9")'),
        )
    self.assertEqual(result.stdout, '\xe9')

  def test_failure(self):
    try:
      self.runner.run(
          sys.executable,
          python_args(
              'import sys; sys.stderr.buffer.write(b"bad \\xff\\n"); '
              'sys.exit(3)'
              ),
          )
    except CommandError as e:
      self.assertEqual(e.exit_status, 3)
      self.assertEqual(e.error_output, 'bad \udcff\n')
    else:
      self.fail('CommandError not raised')

  def test_cwd(self):
    result = self.runner.run(
        sys.executable,
        python_args('import os, sys; sys.stdout.write(os.getcwd())'),
        cwd=os.path.dirname(SRCPATH),
        )
    self.assertEqual(
        os.path.realpath(result.stdout),
        os.path.realpath(os.path.dirname(SRCPATH)),
        )

  def test_missing_command(self):
    self.assertRaises(
        FatalError,
        self.runner.run, 'repomirror-no-such-command', [],
        )

  def test_check_command_runs(self):
    self.assertTrue(
        check_command_runs(self.runner, sys.executable, ['-c', 'pass'])
        )
    self.assertFalse(
        check_command_runs(
            self.runner, sys.executable, ['-c', 'import sys; sys.exit(1)']
            )
        )
    self.assertFalse(
        check_command_runs(self.runner, 'repomirror-no-such-command')
        )


if __name__ == '__main__':
  unittest.main()
