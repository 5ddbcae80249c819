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


import os
import errno

from repomirror_lib.common import FatalError
from repomirror_lib.run_options import RunOptions


def main(progname, cmd_args):
  """Perform the directive named in CMD_ARGS; return its exit status."""

  run_options = RunOptions(progname, cmd_args)
  context = run_options.get_context()

  # Make sure the tmp directory exists.  Note that we don't check if
  # it's empty -- we want to be able to use, for example, "." to hold
  # tempfiles.
  if not os.path.exists(context.tmpdir):
    erase_tmpdir = True
  else:
    erase_tmpdir = False
  context.ensure_tmpdir()

  # But do lock the tmpdir, to avoid process clash.
  lock_dir = os.path.join(context.tmpdir, 'repomirror.lock')
  try:
    os.mkdir(lock_dir)
  except OSError as e:
    if e.errno == errno.EACCES:
      raise FatalError("Permission denied:"
                       + " No write access to directory '%s'." % context.tmpdir)
    if e.errno == errno.EEXIST:
      raise FatalError(
          "repomirror is using directory '%s' for temporary files, but\n"
          "  subdirectory '%s' exists, indicating that another\n"
          "  repomirror process is currently using '%s' as its temporary\n"
          "  workspace.  If you are certain that is not the case,\n"
          "  then remove the '%s' subdirectory."
          % (context.tmpdir, lock_dir, context.tmpdir, lock_dir,))
    raise

  try:
    return run_options.directive.perform(run_options, context)
  finally:
    try:
      os.rmdir(lock_dir)
    except OSError:
      pass

    if erase_tmpdir:
      # Only succeeds if no codebases or working copies were left
      # behind, which the user may still need.
      try:
        os.rmdir(context.tmpdir)
      except OSError:
        pass
