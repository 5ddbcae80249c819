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


"""This module contains the Codebase class and helpers for codebases.

A codebase is a directory tree holding the files of a project as of
one revision, in one project space.  Codebases are created in
temporary directories and are treated as read-only once created;
editing a codebase produces a new one."""


import os
import re
import shutil
import stat

from repomirror_lib import config
from repomirror_lib.common import FatalError


class Codebase(object):
  """A directory tree of files in a particular project space.

  PATH is the root directory of the codebase.  PROJECT_SPACE names the
  shape of the codebase (e.g., 'internal' or 'public').  EXPRESSION is
  a string describing how the codebase was made; it is used only for
  display."""

  def __init__(self, path, project_space, expression=None):
    self.path = path
    self.project_space = project_space
    if expression is None:
      expression = path
    self.expression = expression

  def get_file(self, relative_filename):
    """Return the filesystem path of RELATIVE_FILENAME in this codebase."""

    return os.path.join(self.path, *relative_filename.split('/'))

  def relative_filenames(self):
    """Return the set of '/'-separated relative paths of all files.

    Version-control metadata directories are skipped."""

    return find_files(self.path)

  def check_project_space(self, project_space):
    if self.project_space != project_space:
      raise FatalError(
          'Expected project space "%s", but codebase %s is in project '
          'space "%s"' % (project_space, self, self.project_space,))

  def copy_with_project_space(self, project_space):
    """Return a Codebase for the same directory in PROJECT_SPACE."""

    return Codebase(self.path, project_space, self.expression)

  def copy_with_expression(self, expression):
    return Codebase(self.path, self.project_space, expression)

  def __eq__(self, other):
    return isinstance(other, Codebase) and self.path == other.path

  def __ne__(self, other):
    return not self == other

  def __hash__(self):
    return hash(self.path)

  def __str__(self):
    return self.expression

  def __repr__(self):
    return 'Codebase(%r, %r, %r)' % (
        self.path, self.project_space, self.expression,
        )


def find_files(root):
  """Return the set of relative paths of the files under ROOT.

  Paths use '/' as separator.  Directories named in
  config.VCS_METADATA_DIRS are not descended into."""

  retval = set()
  for (dirpath, dirnames, filenames) in os.walk(root):
    dirnames[:] = [
        dirname
        for dirname in dirnames
        if dirname not in config.VCS_METADATA_DIRS
        ]
    rel_dir = os.path.relpath(dirpath, root)
    for filename in filenames:
      if rel_dir == os.curdir:
        retval.add(filename)
      else:
        retval.add('/'.join(rel_dir.split(os.sep) + [filename]))
  return retval


def is_executable(filename):
  return bool(os.stat(filename).st_mode & stat.S_IXUSR)


def copy_file(src, dest):
  """Copy file SRC to DEST, creating parent directories as needed.

  The file's permission bits are copied, too."""

  parent = os.path.dirname(dest)
  if parent and not os.path.isdir(parent):
    os.makedirs(parent)
  shutil.copy2(src, dest)


def copy_codebase_files(codebase, dest_root):
  """Copy all files of CODEBASE into directory DEST_ROOT."""

  for filename in codebase.relative_filenames():
    copy_file(
        codebase.get_file(filename),
        os.path.join(dest_root, *filename.split('/')),
        )


def write_codebase(root, files):
  """Write the files in FILES into directory ROOT.

  FILES is a map {relative_path : contents}; contents are strings or
  bytes."""

  for (filename, contents) in files.items():
    path = os.path.join(root, *filename.split('/'))
    parent = os.path.dirname(path)
    if not os.path.isdir(parent):
      os.makedirs(parent)
    if isinstance(contents, bytes):
      f = open(path, 'wb')
    else:
      f = open(path, 'w')
    try:
      f.write(contents)
    finally:
      f.close()


def remove_ignored_files(root, ignore_file_res):
  """Delete the files under ROOT whose relative path matches IGNORE_FILE_RES.

  IGNORE_FILE_RES is a list of regular expressions, searched for in
  the '/'-separated relative path of each file."""

  regexps = [re.compile(s) for s in ignore_file_res]
  if not regexps:
    return
  for filename in find_files(root):
    if any(regexp.search(filename) for regexp in regexps):
      os.remove(os.path.join(root, *filename.split('/')))
