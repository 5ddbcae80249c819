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


"""Compare codebases file by file.

This is not a patch generator: it only determines which files differ
between two codebases, and how (existence, contents, or executable
bit)."""


import os
import filecmp

from repomirror_lib.codebase import is_executable


class FileDifference(object):
  """The ways in which one file differs between two codebases.

  EXISTENCE is 1 if the file exists only in the first codebase, 2 if
  only in the second, and 0 if in both.  CONTENTS and EXECUTABILITY
  are true iff the file exists in both and its contents or executable
  bit differ."""

  __slots__ = ['relative_filename', 'existence', 'contents', 'executability']

  def __init__(self, relative_filename, existence, contents, executability):
    self.relative_filename = relative_filename
    self.existence = existence
    self.contents = contents
    self.executability = executability

  def is_different(self):
    return bool(self.existence or self.contents or self.executability)

  def __str__(self):
    if self.existence == 1:
      return '%s: only in first codebase' % (self.relative_filename,)
    elif self.existence == 2:
      return '%s: only in second codebase' % (self.relative_filename,)
    reasons = []
    if self.contents:
      reasons.append('contents differ')
    if self.executability:
      reasons.append('executable bit differs')
    return '%s: %s' % (self.relative_filename, ', '.join(reasons),)


def diff_files(relative_filename, file1, file2):
  """Return the FileDifference between FILE1 and FILE2.

  Either file may be missing."""

  exists1 = os.path.exists(file1)
  exists2 = os.path.exists(file2)
  if exists1 and not exists2:
    return FileDifference(relative_filename, 1, False, False)
  elif exists2 and not exists1:
    return FileDifference(relative_filename, 2, False, False)
  elif not exists1 and not exists2:
    return FileDifference(relative_filename, 0, False, False)

  return FileDifference(
      relative_filename, 0,
      not filecmp.cmp(file1, file2, shallow=False),
      is_executable(file1) != is_executable(file2),
      )


def are_files_different(file1, file2):
  return diff_files(os.path.basename(file1), file1, file2).is_different()


class CodebaseDifference(object):
  """The differences between CODEBASE1 and CODEBASE2.

  FILE_DIFFERENCES is a list of FileDifferences, sorted by filename,
  containing only the files that actually differ."""

  def __init__(self, codebase1, codebase2, file_differences):
    self.codebase1 = codebase1
    self.codebase2 = codebase2
    self.file_differences = file_differences

  def are_different(self):
    return bool(self.file_differences)

  def __str__(self):
    if not self.file_differences:
      return 'No differences between %s and %s' % (
          self.codebase1, self.codebase2,
          )
    return '\n'.join(
        ['Differences between %s and %s:' % (self.codebase1, self.codebase2,)]
        + ['  %s' % (d,) for d in self.file_differences]
        )


def diff_codebases(codebase1, codebase2):
  """Return the CodebaseDifference between CODEBASE1 and CODEBASE2."""

  filenames = codebase1.relative_filenames() | codebase2.relative_filenames()
  differences = []
  for filename in sorted(filenames):
    d = diff_files(
        filename, codebase1.get_file(filename), codebase2.get_file(filename)
        )
    if d.is_different():
      differences.append(d)
  return CodebaseDifference(codebase1, codebase2, differences)


def are_different(codebase1, codebase2):
  return diff_codebases(codebase1, codebase2).are_different()
