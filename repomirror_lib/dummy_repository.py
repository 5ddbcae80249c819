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


"""Support for dummy repositories, which live entirely in memory.

A dummy repository is a list of commits, each with its metadata and
the complete contents of its files.  It is useful for trying out a
project configuration without touching real repositories, and for
testing.  In a project configuration it looks like this:

    "internal": {
      "type": "dummy",
      "project_space": "internal",
      "commits": [
        {"id": "1", "author": "a <a@example.com>", "description": "one",
         "files": {"README": "hello\\n"}},
        {"id": "2", "parents": ["1"], "files": {"README": "hello!\\n"}}
      ]
    }

A commit without 'parents' has the previous commit as its only parent
(the first commit has none).  The head is the last commit."""


import os
from datetime import datetime
from datetime import timezone

from repomirror_lib.common import FatalError
from repomirror_lib.common import InvalidProjectError
from repomirror_lib.revision import Revision
from repomirror_lib.revision import RevisionMetadata
from repomirror_lib.revision_history import RevisionHistory
from repomirror_lib.codebase import Codebase
from repomirror_lib.codebase import find_files
from repomirror_lib.codebase import write_codebase
from repomirror_lib.codebase import remove_ignored_files
from repomirror_lib.writer import Writer
from repomirror_lib.repository_type import RepositoryType


class DummyCommit(object):
  """One commit of a dummy repository.

  PARENT_IDS is a list of rev ids; FILES maps relative filenames to
  contents."""

  def __init__(
        self, rev_id, author=None, date=None, description='',
        parent_ids=(), files=None,
        ):
    self.rev_id = str(rev_id)
    self.author = author
    if date is None:
      date = datetime.fromtimestamp(0, timezone.utc)
    self.date = date
    self.description = description
    self.parent_ids = [str(parent_id) for parent_id in parent_ids]
    if files is None:
      files = {}
    self.files = dict(files)


class DummyRepositoryData(object):
  """The commits of one dummy repository, shared by its adapters."""

  def __init__(self, repository_name, commits=()):
    self.repository_name = repository_name
    self._commits = {}
    self._order = []
    self.head_ids = []
    for commit in commits:
      self.add_commit(commit)

  def add_commit(self, commit):
    """Add COMMIT, which becomes the only head."""

    if commit.rev_id in self._commits:
      raise FatalError(
          'Dummy repository %s already has a commit %s'
          % (self.repository_name, commit.rev_id,))
    self._commits[commit.rev_id] = commit
    self._order.append(commit.rev_id)
    self.head_ids = [commit.rev_id]

  def get_commit(self, rev_id):
    """Return the DummyCommit REV_ID, or None if there is none."""

    return self._commits.get(str(rev_id))

  def __len__(self):
    return len(self._order)

  def make_revision(self, rev_id):
    return Revision(rev_id, self.repository_name)

  @staticmethod
  def from_config(repository_name, commit_configs):
    if not isinstance(commit_configs, list):
      raise InvalidProjectError(
          'commits of dummy repository %s must be a list' % (repository_name,)
          )
    data = DummyRepositoryData(repository_name)
    previous_id = None
    for d in commit_configs:
      if not isinstance(d, dict) or 'id' not in d:
        raise InvalidProjectError(
            'Every commit of dummy repository %s needs an id'
            % (repository_name,))
      if 'parents' in d:
        parent_ids = d['parents']
      elif previous_id is not None:
        parent_ids = [previous_id]
      else:
        parent_ids = []
      date = d.get('date')
      if date is not None:
        try:
          date = datetime.fromisoformat(date)
        except ValueError:
          raise InvalidProjectError(
              'Invalid date %r in dummy repository %s'
              % (date, repository_name,))
      data.add_commit(
          DummyCommit(
              d['id'], d.get('author'), date, d.get('description', ''),
              parent_ids, d.get('files', {}),
              )
          )
      previous_id = str(d['id'])
    return data


class DummyRevisionHistory(RevisionHistory):
  def __init__(self, data, search_type, max_revisions=None):
    RevisionHistory.__init__(
        self, data.repository_name, search_type, max_revisions
        )
    self.data = data

  def find_highest_revision(self, rev_id):
    if not rev_id:
      if not self.data.head_ids:
        raise FatalError(
            'Dummy repository %s has no commits' % (self.repository_name,)
            )
      return self.data.make_revision(self.data.head_ids[-1])
    if self.data.get_commit(rev_id) is None:
      raise FatalError(
          'Dummy repository %s has no revision %s'
          % (self.repository_name, rev_id,))
    return self.data.make_revision(rev_id)

  def find_head_revisions(self):
    if not self.data.head_ids:
      raise FatalError(
          'Dummy repository %s has no commits' % (self.repository_name,)
          )
    return [self.data.make_revision(rev_id) for rev_id in self.data.head_ids]

  def get_metadata(self, revision):
    if revision.repository_name != self.repository_name:
      return None
    commit = self.data.get_commit(revision.rev_id)
    if commit is None:
      return None
    return RevisionMetadata(
        commit.rev_id, commit.author, commit.date, commit.description,
        [self.data.make_revision(parent_id) for parent_id in commit.parent_ids],
        )


class DummyCodebaseCreator(object):
  """Write out the files of dummy commits as Codebases."""

  def __init__(self, context, data, history, repository_config):
    self.context = context
    self.data = data
    self.history = history
    self.config = repository_config

  def create(self, rev_id=None):
    revision = self.history.find_highest_revision(rev_id)
    commit = self.data.get_commit(revision.rev_id)
    path = self.context.get_temporary_directory(
        'dummy_%s_%s_' % (self.data.repository_name, revision.rev_id,)
        )
    write_codebase(path, commit.files)
    remove_ignored_files(path, self.config.ignore_file_res)
    return Codebase(
        path, self.config.project_space,
        '%s(revision=%s)' % (self.data.repository_name, revision.rev_id,),
        )


class DummyWriter(Writer):
  """A Writer that commits into a DummyRepositoryData.

  The working copy is a temporary directory holding the files of
  PARENT_ID.  Each commit reads the files back and records them as a
  new commit whose parent is the previous one."""

  def __init__(self, context, data, repository_config, parent_id):
    root = context.get_temporary_directory(
        'dummy_writer_%s_' % (data.repository_name,)
        )
    Writer.__init__(
        self, data.repository_name, repository_config.project_space, root
        )
    self.data = data
    self.parent_id = parent_id
    self._dirty = False
    # The DraftRevisions produced, in order:
    self.drafts = []
    if parent_id is not None:
      write_codebase(root, data.get_commit(parent_id).files)

  def add_file(self, relative_filename):
    self._dirty = True

  def modify_file(self, relative_filename):
    self._dirty = True

  def remove_file(self, relative_filename):
    os.remove(os.path.join(self.root, *relative_filename.split('/')))
    self._dirty = True

  def _read_files(self):
    files = {}
    for filename in find_files(self.root):
      f = open(os.path.join(self.root, *filename.split('/')), 'rb')
      try:
        files[filename] = f.read()
      finally:
        f.close()
    return files

  def has_pending_changes(self):
    if not self._dirty:
      return False
    if self.parent_id is None:
      return True
    old_files = dict(
        (filename, _as_bytes(contents))
        for (filename, contents)
        in self.data.get_commit(self.parent_id).files.items()
        )
    return self._read_files() != old_files

  def commit_changes(self, metadata):
    rev_id = 'migrated_%d' % (len(self.data) + 1,)
    parent_ids = []
    if self.parent_id is not None:
      parent_ids.append(self.parent_id)
    self.data.add_commit(
        DummyCommit(
            rev_id, metadata.author, metadata.date, metadata.description,
            parent_ids, self._read_files(),
            )
        )
    self.parent_id = rev_id
    self._dirty = False
    return self.data.make_revision(rev_id)

  def put_codebase(self, codebase, metadata=None):
    draft = Writer.put_codebase(self, codebase, metadata)
    self.drafts.append(draft)
    return draft


def _as_bytes(contents):
  if isinstance(contents, bytes):
    return contents
  return contents.encode('utf-8')


class DummyWriterCreator(object):
  def __init__(self, context, data, history, repository_config):
    self.context = context
    self.data = data
    self.history = history
    self.config = repository_config

  def create(self, rev_id=None):
    if not rev_id and not self.data.head_ids:
      # An empty repository; the first commit will have no parent.
      return DummyWriter(self.context, self.data, self.config, None)
    revision = self.history.find_highest_revision(rev_id)
    return DummyWriter(self.context, self.data, self.config, revision.rev_id)


def create_dummy_repository(name, repository_config, context, data=None):
  """Return the RepositoryType for the dummy repository NAME.

  If DATA (a DummyRepositoryData) is not given, the commits are read
  from REPOSITORY_CONFIG's 'commits' option."""

  if data is None:
    data = DummyRepositoryData.from_config(
        name, repository_config.options.get('commits', [])
        )
  history = DummyRevisionHistory(
      data, repository_config.get_search_type(),
      repository_config.max_revisions,
      )
  return RepositoryType(
      name, repository_config, history,
      DummyCodebaseCreator(context, data, history, repository_config),
      DummyWriterCreator(context, data, history, repository_config),
      )
