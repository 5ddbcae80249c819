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


"""This module contains the CodebaseMerger class.

merge(1) incorporates all changes that lead from file2 to file3 into
file1:

    merge file1 file2 file3

The CodebaseMerger does the same for whole codebases: ORIGINAL plays
the role of file2, MODIFIED of file3 and DESTINATION of file1.  The
changes leading from ORIGINAL to MODIFIED are merged into a copy of
DESTINATION, file by file.

For example, if internal(74) is equivalent to public(142), merging
with ORIGINAL=public(142), MODIFIED=public(143) and
DESTINATION=internal(74) yields an internal codebase that contains
the public change 142->143 but keeps the internal-only content of
internal(74)."""


import os

from repomirror_lib import config
from repomirror_lib.common import CommandError
from repomirror_lib.common import InternalError
from repomirror_lib.common import MergeError
from repomirror_lib.log import logger
from repomirror_lib.codebase import Codebase
from repomirror_lib.codebase import copy_file
from repomirror_lib.codebase_differ import are_files_different


class MergeResult(object):
  """The outcome of a CodebaseMerger.merge().

  MERGED_CODEBASE is the resulting Codebase.  MERGED_FILES and
  FAILED_FILES are sets of relative filenames: those merged cleanly,
  and those left with conflict markers that have to be resolved by
  hand.  Every file of MODIFIED or DESTINATION that is not dropped is
  in exactly one of the two sets; files new on one side only count as
  merged."""

  def __init__(self, merged_codebase):
    self.merged_codebase = merged_codebase
    self.merged_files = set()
    self.failed_files = set()

  def report(self):
    """Log the outcome of the merge."""

    logger.normal(
        'Merged codebase generated at: %s' % (self.merged_codebase.path,)
        )
    if not self.failed_files:
      logger.normal(
          '%d files merged successfully. No merge conflicts.'
          % (len(self.merged_files),))
    else:
      logger.normal(
          '%d files merged successfully.\n'
          '%d files have merge conflicts. '
          'Edit the following files to resolve conflicts:\n%s'
          % (len(self.merged_files), len(self.failed_files),
             '\n'.join([
                 '  %s' % (self.merged_codebase.get_file(filename),)
                 for filename in sorted(self.failed_files)
                 ]),))


class CodebaseMerger(object):
  """Merge the changes ORIGINAL->MODIFIED into a copy of DESTINATION."""

  def __init__(self, context, original, modified, destination):
    self.context = context
    self.original = original
    self.modified = modified
    self.destination = destination

  def merge(self):
    """Perform the merge and return a MergeResult.

    The merged codebase is created in a fresh temporary directory and
    has DESTINATION's project space."""

    merged_dir = self.context.get_temporary_directory('merged_codebase_')
    result = MergeResult(
        Codebase(
            merged_dir, self.destination.project_space,
            'merge(%s, %s, %s)'
            % (self.original, self.modified, self.destination,),
            )
        )

    filenames = (
        self.destination.relative_filenames()
        | self.modified.relative_filenames()
        )
    for filename in sorted(filenames):
      self._generate_merged_file(result, filename)

    result.report()
    return result

  def _copy_to_merged_codebase(self, result, filename, src):
    merged_file = result.merged_codebase.get_file(filename)
    copy_file(src, merged_file)
    return merged_file

  def _generate_merged_file(self, result, filename):
    """Create FILENAME in RESULT's codebase, as the three inputs dictate.

    Files deleted on one side and unchanged on the other are not
    created at all."""

    orig_file = self.original.get_file(filename)
    orig_exists = os.path.exists(orig_file)
    mod_file = self.modified.get_file(filename)
    mod_exists = os.path.exists(mod_file)
    dest_file = self.destination.get_file(filename)
    dest_exists = os.path.exists(dest_file)

    if not dest_exists and not mod_exists:
      raise InternalError(
          '%s exists in neither %s nor %s'
          % (filename, self.destination, self.modified,))

    elif orig_exists and mod_exists and not dest_exists:
      if are_files_different(orig_file, mod_file):
        # Edited in MODIFIED but deleted in DESTINATION.  Merging
        # against an empty file surfaces this as a conflict.
        dest_file = os.devnull
      else:
        # The deletion in DESTINATION wins.
        return

    elif orig_exists and not mod_exists and dest_exists:
      # The deletion in MODIFIED wins.
      return

    elif not orig_exists and not (mod_exists and dest_exists):
      # New on one side only.
      if mod_exists:
        self._copy_to_merged_codebase(result, filename, mod_file)
      else:
        self._copy_to_merged_codebase(result, filename, dest_file)
      result.merged_files.add(filename)
      return

    elif not orig_exists and mod_exists and dest_exists:
      # Added independently on both sides; a conflict is likely.
      orig_file = os.devnull

    if dest_file == os.devnull:
      merged_file = result.merged_codebase.get_file(filename)
      parent = os.path.dirname(merged_file)
      if not os.path.isdir(parent):
        os.makedirs(parent)
      open(merged_file, 'w').close()
      # Keep the executable bit of the side that still has the file.
      os.chmod(merged_file, os.stat(mod_file).st_mode & 0o777)
    else:
      merged_file = self._copy_to_merged_codebase(result, filename, dest_file)

    try:
      self.context.command_runner.run(
          config.MERGE_EXECUTABLE,
          [
              os.path.abspath(merged_file),
              os.path.abspath(orig_file),
              os.path.abspath(mod_file),
              ],
          cwd=result.merged_codebase.path,
          )
    except CommandError as e:
      if e.exit_status == config.MERGE_CONFLICT_EXIT_STATUS:
        result.failed_files.add(filename)
      else:
        raise MergeError(
            'Merge returned with unexpected status %s when trying to run '
            '"merge %s %s %s": %s'
            % (e.exit_status, merged_file, orig_file, mod_file,
               e.error_output.rstrip(),))
    else:
      result.merged_files.add(filename)


def merge_codebases(context, original, modified, destination):
  """Merge ORIGINAL->MODIFIED into DESTINATION and return a MergeResult."""

  return CodebaseMerger(context, original, modified, destination).merge()
