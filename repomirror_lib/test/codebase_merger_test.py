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


"""Unit tests of the CodebaseMerger.

Most tests use a stand-in for merge(1) that only handles the trivial
cases (one side unchanged) and reports a conflict otherwise, so that
they do not depend on RCS being installed.  The last test case runs
the real merge(1) if it is available."""

import sys
import os
import shutil
import tempfile
import unittest

SRCPATH = os.path.normpath(os.path.join(os.path.dirname(__file__), '..', '..'))
sys.path.insert(0, SRCPATH)

from repomirror_lib import config
from repomirror_lib.common import CommandError
from repomirror_lib.common import MergeError
from repomirror_lib.context import Context
from repomirror_lib.process import CommandResult
from repomirror_lib.process import CommandRunner
from repomirror_lib.process import check_command_runs
from repomirror_lib.codebase import Codebase
from repomirror_lib.codebase import write_codebase
from repomirror_lib.codebase_merger import merge_codebases


def read_file(filename):
  f = open(filename, 'rb')
  try:
    return f.read()
  finally:
    f.close()


class FakeMergeRunner(object):
  """Emulate 'merge MERGED ORIG MOD' for the cases that need no diff3."""

  def __init__(self, exit_status=None):
    # If set, every merge fails with this status:
    self.exit_status = exit_status
    self.calls = []

  def run(self, command, args, cwd=None):
    self.calls.append((command, list(args), cwd,))
    if self.exit_status is not None:
      raise CommandError(command, self.exit_status, 'merge failed')
    (merged_file, orig_file, mod_file) = args
    merged = read_file(merged_file)
    orig = read_file(orig_file)
    mod = read_file(mod_file)
    if mod == orig or merged == mod:
      pass
    elif merged == orig:
      f = open(merged_file, 'wb')
      f.write(mod)
      f.close()
    else:
      f = open(merged_file, 'wb')
      f.write(b'<<<<<<<\n' + merged + b'=======\n' + mod + b'>>>>>>>\n')
      f.close()
      raise CommandError(command, config.MERGE_CONFLICT_EXIT_STATUS, '')
    return CommandResult('', '', 0)


class CodebaseMergerTestCaseBase(unittest.TestCase):
  def setUp(self):
    self.tmpdir = tempfile.mkdtemp(prefix='codebase_merger_test_')
    self.addCleanup(shutil.rmtree, self.tmpdir)
    self.runner = self.make_runner()
    self.context = Context(os.path.join(self.tmpdir, 'tmp'), self.runner)

  def make_runner(self):
    return FakeMergeRunner()

  def make_codebase(self, name, files, project_space='public'):
    path = os.path.join(self.tmpdir, name)
    os.makedirs(path)
    write_codebase(path, files)
    return Codebase(path, project_space, name)

  def merge(self, orig_files, mod_files, dest_files):
    return merge_codebases(
        self.context,
        self.make_codebase('orig', orig_files),
        self.make_codebase('mod', mod_files),
        self.make_codebase('dest', dest_files, 'internal'),
        )

  def merged_contents(self, result, filename):
    return read_file(result.merged_codebase.get_file(filename))


class CodebaseMergerTestCase(CodebaseMergerTestCaseBase):
  def test_project_space(self):
    result = self.merge({}, {'a' : 'x\n'}, {})
    self.assertEqual(result.merged_codebase.project_space, 'internal')

  def test_unchanged(self):
    result = self.merge({'a' : 'x\n'}, {'a' : 'x\n'}, {'a' : 'x\n'})
    self.assertEqual(result.merged_codebase.relative_filenames(), set(['a']))
    self.assertEqual(result.merged_files, set(['a']))
    self.assertEqual(result.failed_files, set())

  def test_new_in_modified(self):
    result = self.merge({}, {'dir/new' : 'new\n'}, {'a' : 'x\n'})
    self.assertEqual(
        result.merged_codebase.relative_filenames(), set(['a', 'dir/new'])
        )
    self.assertEqual(self.merged_contents(result, 'dir/new'), b'new\n')
    # Copied without running merge:
    self.assertEqual(result.merged_files, set(['a', 'dir/new']))
    self.assertEqual(result.failed_files, set())
    self.assertEqual(self.runner.calls, [])

  def test_only_in_destination(self):
    result = self.merge({}, {}, {'secret' : 's\n'})
    self.assertEqual(self.merged_contents(result, 'secret'), b's\n')
    self.assertEqual(result.merged_files, set(['secret']))
    self.assertEqual(result.failed_files, set())

  def test_every_file_accounted_for(self):
    result = self.merge({}, {'new' : 'n\n'}, {'secret' : 's\n'})
    self.assertEqual(
        result.merged_codebase.relative_filenames(), set(['new', 'secret'])
        )
    self.assertEqual(result.merged_files, set(['new', 'secret']))
    self.assertEqual(result.failed_files, set())

  def test_deleted_in_modified(self):
    result = self.merge({'a' : 'x\n'}, {}, {'a' : 'x\n'})
    self.assertEqual(result.merged_codebase.relative_filenames(), set())
    self.assertEqual(self.runner.calls, [])

  def test_deleted_on_both_sides(self):
    result = self.merge({'f' : '1'}, {}, {})
    self.assertEqual(result.merged_codebase.relative_filenames(), set())
    self.assertEqual(result.merged_files, set())
    self.assertEqual(result.failed_files, set())

  def test_unchanged_in_modified_keeps_destination(self):
    result = self.merge({'f' : '1'}, {'f' : '1'}, {'f' : '2'})
    self.assertEqual(self.merged_contents(result, 'f'), b'2')
    self.assertEqual(result.merged_files, set(['f']))
    self.assertEqual(result.failed_files, set())

  def test_deleted_in_destination(self):
    result = self.merge({'a' : 'x\n'}, {'a' : 'x\n'}, {})
    self.assertEqual(result.merged_codebase.relative_filenames(), set())
    self.assertEqual(result.failed_files, set())

  def test_edited_but_deleted_in_destination(self):
    result = self.merge({'a' : 'x\n'}, {'a' : 'y\n'}, {})
    self.assertEqual(result.failed_files, set(['a']))
    self.assertEqual(self.runner.calls[0][1][0],
                     os.path.abspath(result.merged_codebase.get_file('a')))

  def test_edited_in_modified(self):
    result = self.merge(
        {'a' : 'x\n', 'b' : 'b\n'},
        {'a' : 'y\n', 'b' : 'b\n'},
        {'a' : 'x\n', 'b' : 'b\n'},
        )
    self.assertEqual(self.merged_contents(result, 'a'), b'y\n')
    self.assertEqual(result.merged_files, set(['a', 'b']))
    self.assertEqual(result.failed_files, set())

  def test_edited_on_both_sides(self):
    result = self.merge({'a' : 'x\n'}, {'a' : 'y\n'}, {'a' : 'z\n'})
    self.assertEqual(result.failed_files, set(['a']))
    self.assertEqual(result.merged_files, set())
    self.assertTrue(b'<<<<<<<' in self.merged_contents(result, 'a'))

  def test_added_on_both_sides(self):
    result = self.merge({}, {'a' : 'y\n'}, {'a' : 'y\n'})
    (command, args, cwd) = self.runner.calls[0]
    self.assertEqual(args[1], os.path.abspath(os.devnull))
    self.assertEqual(result.merged_files, set(['a']))

  def test_merge_in_merged_codebase(self):
    result = self.merge({'a' : 'x\n'}, {'a' : 'y\n'}, {'a' : 'x\n'})
    (command, args, cwd) = self.runner.calls[0]
    self.assertEqual(command, config.MERGE_EXECUTABLE)
    self.assertEqual(cwd, result.merged_codebase.path)

  def test_inputs_untouched(self):
    self.merge({'a' : 'x\n'}, {'a' : 'y\n'}, {'a' : 'z\n'})
    self.assertEqual(read_file(os.path.join(self.tmpdir, 'dest', 'a')), b'z\n')
    self.assertEqual(read_file(os.path.join(self.tmpdir, 'mod', 'a')), b'y\n')


class MergeFailureTestCase(CodebaseMergerTestCaseBase):
  def make_runner(self):
    return FakeMergeRunner(exit_status=2)

  def test_unexpected_status(self):
    self.assertRaises(
        MergeError,
        self.merge, {'a' : 'x\n'}, {'a' : 'y\n'}, {'a' : 'z\n'},
        )


class RealMergeTestCase(CodebaseMergerTestCaseBase):
  def make_runner(self):
    return CommandRunner()

  def setUp(self):
    CodebaseMergerTestCaseBase.setUp(self)
    if not check_command_runs(self.runner, config.MERGE_EXECUTABLE, ['-V']):
      self.skipTest('merge(1) is not installed')

  def test_clean_merge(self):
    result = self.merge(
        {'a' : '1\n2\n3\n4\n5\n6\n'},
        {'a' : '1\n2\n3\n4\n5\nsix\n'},
        {'a' : 'one\n2\n3\n4\n5\n6\n'},
        )
    self.assertEqual(result.failed_files, set())
    self.assertEqual(
        self.merged_contents(result, 'a'), b'one\n2\n3\n4\n5\nsix\n'
        )

  def test_unchanged_in_modified_keeps_destination(self):
    result = self.merge({'f' : '1\n'}, {'f' : '1\n'}, {'f' : '2\n'})
    self.assertEqual(self.merged_contents(result, 'f'), b'2\n')
    self.assertEqual(result.merged_files, set(['f']))
    self.assertEqual(result.failed_files, set())

  def test_conflict(self):
    result = self.merge({'a' : '1\n'}, {'a' : '2\n'}, {'a' : '3\n'})
    self.assertEqual(result.failed_files, set(['a']))


if __name__ == '__main__':
  unittest.main()
