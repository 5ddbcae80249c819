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


"""Support for git repositories.

All access to a git repository goes through a local clone.  The clone
used for reading history and archiving revisions is made once, by an
explicit call to GitClonedRepository.ensure_cloned(); writers get
fresh clones of their own."""


import os
import re
import tarfile
from datetime import datetime

from repomirror_lib import config
from repomirror_lib.common import FatalError
from repomirror_lib.common import InternalError
from repomirror_lib.common import CommandError
from repomirror_lib.common import InvalidProjectError
from repomirror_lib.log import logger
from repomirror_lib.revision import Revision
from repomirror_lib.revision import RevisionMetadata
from repomirror_lib.revision_history import RevisionHistory
from repomirror_lib.codebase import Codebase
from repomirror_lib.codebase import remove_ignored_files
from repomirror_lib.writer import Writer
from repomirror_lib.repository_type import RepositoryType


# The prefix of branches created for writing migrated changes when the
# writer's revision is not the head of the configured branch:
MIGRATIONS_BRANCH_PREFIX = 'repomirror_writing_branch_from_'

# Like ISO 8601, but with a space instead of 'T' (git's '%ai'):
GIT_DATE_FORMAT = '%Y-%m-%d %H:%M:%S %z'


class GitClonedRepository(object):
  """A local clone of a git repository.

  The clone is not made until ensure_cloned() is called; the other
  methods require that it has been."""

  def __init__(self, context, repository_name, repository_config, url=None):
    self.context = context
    self.repository_name = repository_name
    self.config = repository_config
    if url is None:
      url = repository_config.url
    self.url = url
    self._path = None
    # The revision the working copy is at; 'HEAD' right after cloning:
    self.rev_id = None

  def is_cloned(self):
    return self._path is not None

  def ensure_cloned(self):
    """Clone the repository, unless that has already been done.

    Return the path of the clone."""

    if self._path is not None:
      return self._path

    if self.config.branch:
      prefix = 'git_clone_%s_%s_' % (self.repository_name, self.config.branch,)
    else:
      prefix = 'git_clone_%s_' % (self.repository_name,)
    path = self.context.get_temporary_directory(prefix)

    args = ['clone', '--quiet']
    if self.config.branch:
      args.extend(['--branch', self.config.branch])
    args.extend([self.url, path])
    logger.verbose('Cloning %s into %s' % (self.url, path,))
    try:
      self.context.command_runner.run(config.GIT_EXECUTABLE, args)
    except CommandError as e:
      raise FatalError(
          'Could not clone from git repository at %s:\n%s'
          % (self.url, e.error_output.rstrip(),))

    self._path = path
    self.rev_id = 'HEAD'
    return path

  @property
  def path(self):
    if self._path is None:
      raise InternalError(
          'Git repository %s has not been cloned' % (self.repository_name,)
          )
    return self._path

  def run_git(self, *args):
    """Run git with ARGS in the clone and return its standard output."""

    return self.context.command_runner.run(
        config.GIT_EXECUTABLE, list(args), cwd=self.path
        ).stdout

  def update_to_revision(self, rev_id):
    """Move the working copy to REV_ID.

    If REV_ID is not the head of the cloned branch, a new branch is
    created from it, so that commits do not land on top of later
    history."""

    if self.rev_id != 'HEAD':
      raise InternalError(
          'Clone %s was already updated to %s' % (self.path, self.rev_id,)
          )
    head_hash = self.run_git('rev-parse', 'HEAD').strip()
    if head_hash != rev_id:
      self.run_git(
          'checkout', '--quiet', rev_id, '-b', MIGRATIONS_BRANCH_PREFIX + rev_id
          )
    self.rev_id = rev_id

  def archive_at_revision(self, rev_id):
    """Export the files of REV_ID into a new directory; return its path."""

    if not rev_id:
      rev_id = 'HEAD'
    archive_dir = self.context.get_temporary_directory(
        'git_archive_%s_%s_' % (self.repository_name, rev_id,)
        )
    tarball_dir = self.context.get_temporary_directory(
        'git_tarball_%s_%s_' % (self.repository_name, rev_id,)
        )
    tarball = os.path.join(tarball_dir, 'archive.tar')
    self.run_git('archive', '--format=tar', '--output=' + tarball, rev_id)

    f = tarfile.open(tarball)
    try:
      f.extractall(archive_dir, filter='data')
    finally:
      f.close()
    os.remove(tarball)
    os.rmdir(tarball_dir)
    return archive_dir


def parse_git_log(log, repository_name):
  """Parse one entry of 'git log' output into RevisionMetadata.

  The entry must have been produced with the format
  config.GIT_LOG_DELIMITER.join(['%H', '%an', '%ai', '%P', '%B']).
  Return None if LOG is empty."""

  if not log.strip():
    return None
  # At most five fields, so that a delimiter in the commit message
  # does not confuse us:
  fields = log.split(config.GIT_LOG_DELIMITER, 4)
  if len(fields) != 5:
    raise FatalError('Cannot parse git log output: %r' % (log,))
  (rev_id, author, date, parents, description) = fields
  return RevisionMetadata(
      rev_id.strip(),
      author,
      datetime.strptime(date.strip(), GIT_DATE_FORMAT),
      description.rstrip('\n'),
      [Revision(parent, repository_name) for parent in parents.split()],
      )


class GitRevisionHistory(RevisionHistory):
  """The history of a git repository, read from its head clone."""

  def __init__(self, clone, search_type, max_revisions=None):
    RevisionHistory.__init__(
        self, clone.repository_name, search_type, max_revisions
        )
    self.clone = clone

  def find_highest_revision(self, rev_id):
    if not rev_id:
      rev_id = 'HEAD'
    self.clone.ensure_cloned()
    try:
      hash_id = self.clone.run_git(
          'log', '--max-count=1', '--format=%H', rev_id, '--'
          ).strip()
    except CommandError as e:
      raise FatalError(
          'Failed git log run for revision %s of %s: %s'
          % (rev_id, self.repository_name, e.error_output.rstrip(),))
    return Revision(hash_id, self.repository_name)

  def get_metadata(self, revision):
    if revision.repository_name != self.repository_name:
      raise InternalError(
          'Could not get metadata: revision %s is in repository %s instead '
          'of %s'
          % (revision.rev_id, revision.repository_name, self.repository_name,))
    self.clone.ensure_cloned()
    log_format = config.GIT_LOG_DELIMITER.join(['%H', '%an', '%ai', '%P', '%B'])
    log = self.clone.run_git(
        'log', '--max-count=1', '--format=' + log_format, '--ignore-missing',
        revision.rev_id,
        )
    return parse_git_log(log, self.repository_name)


class GitCodebaseCreator(object):
  """Create Codebases from revisions of a git repository."""

  def __init__(self, clone, history, repository_config):
    self.clone = clone
    self.history = history
    self.config = repository_config

  def create(self, rev_id=None):
    revision = self.history.find_highest_revision(rev_id)
    self.clone.ensure_cloned()
    archive_dir = self.clone.archive_at_revision(revision.rev_id)
    remove_ignored_files(archive_dir, self.config.ignore_file_res)
    return Codebase(
        archive_dir, self.config.project_space,
        '%s(revision=%s)' % (self.clone.repository_name, revision.rev_id,),
        )


class GitWriter(Writer):
  """Write codebases into a clone of a git repository."""

  def __init__(self, clone):
    Writer.__init__(
        self, clone.repository_name, clone.config.project_space, clone.path
        )
    self.clone = clone

  def _get_files(self):
    files = Writer._get_files(self)
    regexps = [re.compile(s) for s in self.clone.config.ignore_file_res]
    return set(
        filename
        for filename in files
        if not any(regexp.search(filename) for regexp in regexps)
        )

  def add_file(self, relative_filename):
    self.clone.run_git('add', '-f', relative_filename)

  def modify_file(self, relative_filename):
    self.clone.run_git('add', '-f', relative_filename)

  def remove_file(self, relative_filename):
    self.clone.run_git('rm', '--quiet', relative_filename)

  def has_pending_changes(self):
    return bool(self.clone.run_git('status', '--short').strip())

  def commit_changes(self, metadata):
    args = ['commit', '--quiet', '--all', '--message', metadata.description]
    if metadata.date is not None:
      args.extend(['--date', metadata.date.isoformat()])
    if metadata.author and re.match(r'.*<.*>', metadata.author):
      args.extend(['--author', metadata.author])
    self.clone.run_git(*args)
    return Revision(
        self.clone.run_git('rev-parse', 'HEAD').strip(),
        self.clone.repository_name,
        )

  def print_push_message(self):
    original_branch = self.clone.config.branch or 'master'
    branch = self.clone.run_git('rev-parse', '--abbrev-ref', 'HEAD').strip()

    logger.quiet('=====')
    logger.quiet('Changes have been committed to a clone at %s' % (self.root,))
    if branch.startswith(MIGRATIONS_BRANCH_PREFIX):
      logger.quiet(
          'Changes are on a new branch. Rebase or merge these changes back\n'
          'onto the desired branch before pushing. For example:\n'
          '$ git rebase %s\n'
          '$ git checkout %s\n'
          '$ git merge --ff-only %s\n'
          '$ git push'
          % (original_branch, original_branch, branch,))
    else:
      logger.quiet(
          "Changes are on branch '%s' and are ready to push." % (branch,)
          )
    logger.quiet('=====')


class GitWriterCreator(object):
  """Create GitWriters, each on a fresh clone."""

  def __init__(self, context, repository_name, repository_config, history):
    self.context = context
    self.repository_name = repository_name
    self.config = repository_config
    self.history = history

  def create(self, rev_id=None):
    # Make sure that the revision exists:
    revision = self.history.find_highest_revision(rev_id)
    clone = GitClonedRepository(
        self.context, self.repository_name, self.config
        )
    clone.ensure_cloned()
    clone.update_to_revision(revision.rev_id)
    return GitWriter(clone)


def create_git_repository(name, repository_config, context):
  """Return the RepositoryType for the git repository NAME."""

  if not repository_config.url:
    raise InvalidProjectError('Missing url in git repository %s' % (name,))
  head_clone = GitClonedRepository(context, name, repository_config)
  history = GitRevisionHistory(
      head_clone, repository_config.get_search_type(),
      repository_config.max_revisions,
      )
  return RepositoryType(
      name, repository_config, history,
      GitCodebaseCreator(head_clone, history, repository_config),
      GitWriterCreator(context, name, repository_config, history),
      )
