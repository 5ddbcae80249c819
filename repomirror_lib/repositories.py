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


"""Create RepositoryTypes from repository configurations.

The kind of each repository is looked up once, when the project is
loaded, in a registry of factories."""


from repomirror_lib.common import InvalidProjectError
from repomirror_lib.repository_type import RepositoryConfig
from repomirror_lib.git_repository import create_git_repository
from repomirror_lib.dummy_repository import create_dummy_repository


# A map {kind : factory}, where factory(name, repository_config,
# context) returns a RepositoryType:
_repository_factories = {
    'git' : create_git_repository,
    'dummy' : create_dummy_repository,
    }


def get_repository_kinds():
  return sorted(_repository_factories)


def create_repository(name, repository_config, context):
  """Return the RepositoryType for repository NAME.

  REPOSITORY_CONFIG may be a RepositoryConfig or the dict it is read
  from.  Raise InvalidProjectError for an unknown kind."""

  if not isinstance(repository_config, RepositoryConfig):
    repository_config = RepositoryConfig.from_dict(name, repository_config)
  try:
    factory = _repository_factories[repository_config.kind]
  except KeyError:
    raise InvalidProjectError(
        'Invalid repository type "%s" for repository %s; known types: %s'
        % (repository_config.kind, name,
           ', '.join(get_repository_kinds()),))
  return factory(name, repository_config, context)
