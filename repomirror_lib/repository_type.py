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


"""This module contains the RepositoryConfig and RepositoryType classes."""


from repomirror_lib import config
from repomirror_lib.common import InvalidProjectError
from repomirror_lib.revision_history import SearchType


class RepositoryConfig(object):
  """The configuration of one repository of a project.

  KIND is the kind of repository ('git', 'dummy').  URL is where a
  repository is cloned from.  PROJECT_SPACE is the shape of the
  repository's codebases.  BRANCH is the branch to follow (None means
  the repository's default).  If BRANCHED_HISTORY is true, the
  repository's history is searched along all parents of merge commits,
  not only along the first.  IGNORE_FILE_RES is a list of regular
  expressions for files that are never part of a codebase.  OPTIONS
  holds any further, kind-specific settings."""

  def __init__(
        self, kind, url=None, project_space=config.DEFAULT_PROJECT_SPACE,
        branch=None, branched_history=False, ignore_file_res=(),
        max_revisions=None, options=None,
        ):
    self.kind = kind
    self.url = url
    self.project_space = project_space
    self.branch = branch
    self.branched_history = branched_history
    self.ignore_file_res = list(ignore_file_res)
    self.max_revisions = max_revisions
    if options is None:
      options = {}
    self.options = options

  def get_search_type(self):
    if self.branched_history:
      return SearchType.BRANCHED
    else:
      return SearchType.LINEAR

  @staticmethod
  def from_dict(name, d):
    """Return a RepositoryConfig built from the dict D.

    Raise InvalidProjectError if D is not a valid configuration for the
    repository called NAME."""

    if not isinstance(d, dict):
      raise InvalidProjectError(
          'Configuration of repository %s must be an object' % (name,)
          )
    d = dict(d)
    kind = d.pop('type', None)
    if not kind:
      raise InvalidProjectError('Missing type in repository %s' % (name,))
    max_revisions = d.pop('max_revisions', None)
    if max_revisions is not None and not isinstance(max_revisions, int):
      raise InvalidProjectError(
          'max_revisions of repository %s must be an integer' % (name,)
          )
    return RepositoryConfig(
        kind,
        url=d.pop('url', None),
        project_space=d.pop('project_space', config.DEFAULT_PROJECT_SPACE),
        branch=d.pop('branch', None),
        branched_history=bool(d.pop('branched_history', False)),
        ignore_file_res=d.pop('ignore_file_res', []),
        max_revisions=max_revisions,
        options=d,
        )


class RepositoryType(object):
  """Everything repomirror can do with one configured repository.

  NAME is the repository's name in the project.  HISTORY is its
  RevisionHistory, CODEBASE_CREATOR makes Codebases of its revisions,
  and WRITER_CREATOR makes Writers that commit to it.  All of them are
  created once, when the project is loaded."""

  def __init__(
        self, name, repository_config, history, codebase_creator,
        writer_creator,
        ):
    self.name = name
    self.config = repository_config
    self.history = history
    self.codebase_creator = codebase_creator
    self.writer_creator = writer_creator

  @property
  def kind(self):
    return self.config.kind

  @property
  def project_space(self):
    return self.config.project_space

  def __repr__(self):
    return 'RepositoryType(%r, %r)' % (self.name, self.config.kind,)
