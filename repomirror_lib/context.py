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

"""Store the context (temporary space, command runner) for a repomirror run."""


import os
import tempfile

from repomirror_lib import config
from repomirror_lib.common import FatalError
from repomirror_lib.process import CommandRunner


class Context(object):
  """Session state for one run of repomirror.

  A Context is created once by the driver and handed explicitly to the
  objects that need it (codebase mergers, editors, repository
  adapters).  Tests create their own, typically with a fake command
  runner and a throwaway temporary directory."""

  def __init__(self, tmpdir=None, command_runner=None):
    if tmpdir is None:
      tmpdir = config.DEFAULT_TMPDIR
    self.tmpdir = tmpdir
    if command_runner is None:
      command_runner = CommandRunner()
    self.command_runner = command_runner

  def ensure_tmpdir(self):
    """Create the temporary directory root if it does not exist yet."""

    if not os.path.exists(self.tmpdir):
      os.makedirs(self.tmpdir)
    elif not os.path.isdir(self.tmpdir):
      raise FatalError(
          "repomirror tried to use '%s' for temporary files, but that path\n"
          "  exists and is not a directory.  Please make it be a directory,\n"
          "  or specify some other directory for temporary files."
          % (self.tmpdir,))

  def get_temporary_directory(self, prefix):
    """Return the path of a new, empty directory under the tmpdir."""

    self.ensure_tmpdir()
    return tempfile.mkdtemp(prefix=prefix, dir=self.tmpdir)
