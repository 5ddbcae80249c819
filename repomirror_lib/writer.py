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


"""Writers put codebases into repositories.

A Writer owns a working copy of a repository, positioned at some
revision.  put_codebase() makes the working copy hold exactly the
files of a given codebase and, if metadata is supplied, commits the
change.  The result is a DraftRevision: the location of the working
copy and, if a commit was made, the Revision it produced."""


import os

from repomirror_lib.common import InternalError
from repomirror_lib.log import logger
from repomirror_lib.codebase import Codebase
from repomirror_lib.codebase import copy_file
from repomirror_lib.codebase import find_files


class DraftRevision(object):
  """The outcome of Writer.put_codebase().

  LOCATION is the working copy holding the change.  REVISION is the
  Revision committed there, or None if nothing was committed."""

  def __init__(self, location, revision=None):
    self.location = location
    self.revision = revision

  def __repr__(self):
    return 'DraftRevision(%r, %r)' % (self.location, self.revision,)


class Writer(object):
  """Write codebases into a working copy rooted at ROOT.

  Subclasses implement the version-control operations: add_file(),
  modify_file(), remove_file(), has_pending_changes() and
  commit_changes()."""

  def __init__(self, repository_name, project_space, root):
    self.repository_name = repository_name
    self.project_space = project_space
    self.root = root

  def get_codebase(self):
    """Return the current contents of the working copy as a Codebase."""

    return Codebase(
        self.root, self.project_space,
        '%s(localroot=%s)' % (self.repository_name, self.root,),
        )

  def _get_files(self):
    return find_files(self.root)

  def add_file(self, relative_filename):
    raise NotImplementedError()

  def modify_file(self, relative_filename):
    raise NotImplementedError()

  def remove_file(self, relative_filename):
    raise NotImplementedError()

  def has_pending_changes(self):
    raise NotImplementedError()

  def commit_changes(self, metadata):
    """Commit the pending changes with METADATA; return the new Revision."""

    raise NotImplementedError()

  def _put_file(self, relative_filename, codebase):
    src = codebase.get_file(relative_filename)
    dest = os.path.join(self.root, *relative_filename.split('/'))
    src_exists = os.path.exists(src)
    dest_exists = os.path.exists(dest)

    if not src_exists and not dest_exists:
      raise InternalError(
          '%s exists neither in %s nor in %s'
          % (relative_filename, codebase, self.root,))

    if not src_exists:
      self.remove_file(relative_filename)
      return

    copy_file(src, dest)
    if dest_exists:
      self.modify_file(relative_filename)
    else:
      self.add_file(relative_filename)

  def put_codebase(self, codebase, metadata=None):
    """Make the working copy hold exactly the files of CODEBASE.

    If METADATA is not None and anything changed, commit the change
    with METADATA.  Return a DraftRevision."""

    codebase.check_project_space(self.project_space)

    filenames = codebase.relative_filenames() | self._get_files()
    for filename in sorted(filenames):
      self._put_file(filename, codebase)

    revision = None
    if metadata is not None and self.has_pending_changes():
      revision = self.commit_changes(metadata)
      logger.normal(
          'Converted draft revision to writer at %s' % (self.root,)
          )
    return DraftRevision(self.root, revision)

  def print_push_message(self):
    """Tell the user what to do with the changes in the working copy."""

    logger.quiet('=====')
    logger.quiet('Changes have been written to %s' % (self.root,))
    logger.quiet('=====')
