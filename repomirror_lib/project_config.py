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


"""Project configuration: reading it, and the objects built from it.

A project is configured in a JSON file like this:

    {
      "name": "foo",
      "database_uri": "/path/to/db.json",
      "repositories": {
        "internal": {"type": "git", "url": "...",
                     "project_space": "internal"},
        "public": {"type": "git", "url": "..."}
      },
      "editors": {
        "scrub": {"type": "scrubber", "ignore_files_re": "(^|/)secret/"},
        "rename": {"type": "renamer", "mappings": {"internal/": "public/"}}
      },
      "translators": [
        {"from_project_space": "internal", "to_project_space": "public",
         "steps": [{"name": "scrub_step", "editor": "scrub"},
                   {"name": "rename_step", "editor": "rename"}]},
        {"from_project_space": "public", "to_project_space": "internal",
         "inverse": true}
      ],
      "migrations": [
        {"name": "publish", "from_repository": "internal",
         "to_repository": "public", "separate_revisions": true}
      ]
    }

A ProjectConfig holds the parsed file.  A ProjectContext holds what is
built from it: the RepositoryTypes, the translation pipelines, and the
migration configurations.  Each is built once."""


from repomirror_lib.common import InvalidProjectError
from repomirror_lib.common import UnknownRepositoryError
from repomirror_lib.common import UnknownMigrationError
from repomirror_lib.serializer import JSONSerializer
from repomirror_lib.repository_type import RepositoryConfig
from repomirror_lib.repositories import create_repository
from repomirror_lib.editors import make_editor
from repomirror_lib.editors import make_inverse_editor
from repomirror_lib.translation import TranslationStep
from repomirror_lib.translation import InverseTranslationStep
from repomirror_lib.translation import ForwardTranslationPipeline
from repomirror_lib.translation import InverseTranslationPipeline
from repomirror_lib.migration import MigrationConfig
from repomirror_lib.metadata_scrubber import DEFAULT_LOG_FORMAT
from repomirror_lib.metadata_scrubber import MetadataScrubberConfig
from repomirror_lib.metadata_scrubber import AuthorScrubberConfig


class StepConfig(object):
  """One step of a translator: a NAME and the config of its editor."""

  def __init__(self, name, editor_config):
    self.name = name
    self.editor_config = editor_config


class TranslatorConfig(object):
  """The configuration of a translator between two project spaces.

  An inverse translator has no STEPS of its own: it undoes the steps
  of the translator in the opposite direction."""

  def __init__(self, from_project_space, to_project_space, steps, inverse):
    self.from_project_space = from_project_space
    self.to_project_space = to_project_space
    self.steps = steps
    self.inverse = inverse


def _require(d, key, what):
  value = d.get(key)
  if value is None or value == '':
    raise InvalidProjectError('Missing %s in %s' % (key, what,))
  return value


def _parse_step(d, editors):
  if not isinstance(d, dict):
    raise InvalidProjectError('Translator steps must be objects')
  name = _require(d, 'name', 'translator step')
  editor = _require(d, 'editor', 'translator step %s' % (name,))
  if isinstance(editor, dict):
    editor_config = editor
  else:
    try:
      editor_config = editors[editor]
    except KeyError:
      raise InvalidProjectError(
          'Translator step %s refers to unknown editor %s' % (name, editor,)
          )
  return StepConfig(name, editor_config)


def _parse_translator(d, editors):
  if not isinstance(d, dict):
    raise InvalidProjectError('Translators must be objects')
  from_space = _require(d, 'from_project_space', 'translator')
  to_space = _require(d, 'to_project_space', 'translator')
  inverse = bool(d.get('inverse', False))
  steps = [_parse_step(step, editors) for step in d.get('steps', [])]
  if inverse and steps:
    raise InvalidProjectError(
        'Inverse translator %s -> %s must not have steps'
        % (from_space, to_space,))
  if not inverse and not steps:
    raise InvalidProjectError(
        'Translator %s -> %s has no steps' % (from_space, to_space,)
        )
  return TranslatorConfig(from_space, to_space, steps, inverse)


def _parse_metadata_scrubber_config(d):
  if d is None:
    return None
  if not isinstance(d, dict):
    raise InvalidProjectError('metadata_scrubber_config must be an object')
  return MetadataScrubberConfig(
      d.get('usernames_to_scrub', []),
      d.get('sensitive_res', []),
      d.get('log_format', DEFAULT_LOG_FORMAT),
      bool(d.get('restore_original_author', False)),
      )


def _parse_scrubber_config(d):
  if d is None:
    return None
  if not isinstance(d, dict):
    raise InvalidProjectError('scrubber_config must be an object')
  return AuthorScrubberConfig(
      d.get('usernames_to_scrub', []),
      d.get('usernames_to_publish', []),
      bool(d.get('scrub_unknown_users', False)),
      bool(d.get('scrub_authors', True)),
      )


def _parse_migration(d):
  if not isinstance(d, dict):
    raise InvalidProjectError('Migrations must be objects')
  name = _require(d, 'name', 'migration')
  return MigrationConfig(
      name,
      _require(d, 'from_repository', 'migration %s' % (name,)),
      _require(d, 'to_repository', 'migration %s' % (name,)),
      bool(d.get('separate_revisions', False)),
      _parse_metadata_scrubber_config(d.get('metadata_scrubber_config')),
      _parse_scrubber_config(d.get('scrubber_config')),
      )


class ProjectConfig(object):
  """The parsed contents of a project configuration file."""

  def __init__(
        self, name, database_uri, repositories, editors, translators,
        migrations,
        ):
    self.name = name
    self.database_uri = database_uri
    # A map {name : RepositoryConfig}:
    self.repositories = repositories
    # A map {name : editor config dict}:
    self.editors = editors
    # A list of TranslatorConfigs:
    self.translators = translators
    # A list of MigrationConfigs:
    self.migrations = migrations

  def get_repository_config(self, name):
    try:
      return self.repositories[name]
    except KeyError:
      raise UnknownRepositoryError(name, self.repositories.keys())

  def validate(self):
    """Check cross-references; raise InvalidProjectError if any is bad."""

    if not self.repositories:
      raise InvalidProjectError('Project %s has no repositories' % (self.name,))

    for migration in self.migrations:
      for repository_name in [
            migration.from_repository, migration.to_repository,
            ]:
        if repository_name not in self.repositories:
          raise InvalidProjectError(
              'Migration %s refers to unknown repository %s'
              % (migration.name, repository_name,))
      if migration.from_repository == migration.to_repository:
        raise InvalidProjectError(
            'Migration %s migrates repository %s into itself'
            % (migration.name, migration.from_repository,))

    names = [migration.name for migration in self.migrations]
    for name in names:
      if names.count(name) > 1:
        raise InvalidProjectError('Duplicate migration name %s' % (name,))

    paths = set()
    for translator in self.translators:
      path = (translator.from_project_space, translator.to_project_space,)
      if path in paths:
        raise InvalidProjectError(
            'Duplicate translator %s -> %s' % path
            )
      paths.add(path)

  @staticmethod
  def from_data(data):
    if not isinstance(data, dict):
      raise InvalidProjectError('Project configuration must be an object')

    name = _require(data, 'name', 'project configuration')

    repository_dicts = data.get('repositories') or {}
    if not isinstance(repository_dicts, dict):
      raise InvalidProjectError('repositories must be an object')
    repositories = {}
    for (repository_name, d) in repository_dicts.items():
      repositories[repository_name] = RepositoryConfig.from_dict(
          repository_name, d
          )

    editors = data.get('editors') or {}
    if not isinstance(editors, dict):
      raise InvalidProjectError('editors must be an object')

    translators = [
        _parse_translator(d, editors) for d in data.get('translators') or []
        ]
    migrations = [_parse_migration(d) for d in data.get('migrations') or []]

    project_config = ProjectConfig(
        name, data.get('database_uri'), repositories, editors, translators,
        migrations,
        )
    project_config.validate()
    return project_config


def parse_project_config(text, filename='(text)'):
  """Return the ProjectConfig in the JSON string TEXT."""

  try:
    data = JSONSerializer().loads(text)
  except ValueError as e:
    raise InvalidProjectError(
        'Could not parse project configuration %s: %s' % (filename, e,)
        )
  return ProjectConfig.from_data(data)


def load_project_config(filename):
  """Return the ProjectConfig stored in file FILENAME."""

  try:
    f = open(filename, 'r')
  except IOError as e:
    raise InvalidProjectError(
        'Could not read project configuration %s: %s' % (filename, e,)
        )
  try:
    text = f.read()
  finally:
    f.close()
  return parse_project_config(text, filename)


class ProjectContext(object):
  """The repositories, translators and migrations of a loaded project."""

  def __init__(self, project_config, context, repositories=None):
    """Build everything PROJECT_CONFIG describes.

    REPOSITORIES, if given, is a map {name : RepositoryType} that is
    used instead of creating RepositoryTypes from the configuration."""

    self.config = project_config
    self.context = context

    if repositories is None:
      repositories = {}
      for (name, repository_config) in project_config.repositories.items():
        repositories[name] = create_repository(
            name, repository_config, context
            )
    self.repositories = repositories

    # A map {(from_project_space, to_project_space) : TranslationPipeline}:
    self.translators = {}
    for translator_config in project_config.translators:
      self.translators[
          (translator_config.from_project_space,
           translator_config.to_project_space,)
          ] = self._make_translator(translator_config)

    # A map {name : MigrationConfig}, in configuration order:
    self.migration_configs = {}
    for migration_config in project_config.migrations:
      self.migration_configs[migration_config.name] = migration_config

  def _find_inverse_translator_config(self, translator_config):
    for other in self.config.translators:
      if other.from_project_space == translator_config.to_project_space \
             and other.to_project_space == translator_config.from_project_space:
        if other.inverse:
          raise InvalidProjectError("Can't have mutually inverse translators")
        return other
    raise InvalidProjectError(
        "Couldn't find translator whose path is inverse of %s -> %s"
        % (translator_config.from_project_space,
           translator_config.to_project_space,))

  def _make_translator(self, translator_config):
    if translator_config.inverse:
      other = self._find_inverse_translator_config(translator_config)
      forward_steps = [
          TranslationStep(
              step.name, make_editor(step.name, step.editor_config, self.context)
              )
          for step in other.steps
          ]
      inverse_steps = [
          InverseTranslationStep(
              'inverse_' + step.name,
              make_inverse_editor(step.name, step.editor_config, self.context),
              )
          for step in reversed(other.steps)
          ]
      return InverseTranslationPipeline(
          translator_config.from_project_space,
          translator_config.to_project_space,
          forward_steps, inverse_steps,
          )
    else:
      return ForwardTranslationPipeline(
          translator_config.from_project_space,
          translator_config.to_project_space,
          [
              TranslationStep(
                  step.name,
                  make_editor(step.name, step.editor_config, self.context),
                  )
              for step in translator_config.steps
              ],
          )

  def get_repository(self, name):
    try:
      return self.repositories[name]
    except KeyError:
      raise UnknownRepositoryError(name, self.repositories.keys())

  def find_translator(self, from_project_space, to_project_space):
    """Return the pipeline translating between the two spaces, or None."""

    return self.translators.get((from_project_space, to_project_space,))

  def get_migration_config(self, name):
    try:
      return self.migration_configs[name]
    except KeyError:
      raise UnknownMigrationError(name, self.migration_configs.keys())

  def translate(self, codebase, to_project_space, options=None):
    """Return CODEBASE translated into TO_PROJECT_SPACE.

    Raise InvalidProjectError if no translator is configured for the
    two project spaces."""

    if codebase.project_space == to_project_space:
      return codebase
    translator = self.find_translator(codebase.project_space, to_project_space)
    if translator is None:
      raise InvalidProjectError(
          'Could not find a translator from project space "%s" to "%s"'
          % (codebase.project_space, to_project_space,))
    if options is None:
      options = {}
    return translator.translate(codebase, options)
