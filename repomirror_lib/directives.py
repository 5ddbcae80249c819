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


"""This module defines the directives that repomirror can perform.

A directive is one thing the user can ask repomirror to do, named by
the first command-line argument.  Each directive contributes its own
options to the command line and returns an exit status."""


import os
import sys

from repomirror_lib import config
from repomirror_lib.common import FatalError
from repomirror_lib.common import InvalidProjectError
from repomirror_lib.log import logger
from repomirror_lib.revision import parse_revision
from repomirror_lib.equivalence import Equivalence
from repomirror_lib.codebase import Codebase
from repomirror_lib.codebase_merger import merge_codebases
from repomirror_lib.migrator import Migrator
from repomirror_lib.bookkeeper import Bookkeeper


class UnknownDirectiveError(FatalError):
  def __init__(self, name):
    FatalError.__init__(
        self,
        'Unknown directive %r.\n'
        'Use --help-directives for a list of directives.' % (name,))


def get_translator(project_context, from_repository, to_repository):
  """Return the translator needed between two repositories, or None.

  None means that both repositories share a project space, so no
  translation is needed.  Raise InvalidProjectError if they don't and
  no translator is configured."""

  from_space = project_context.get_repository(from_repository).project_space
  to_space = project_context.get_repository(to_repository).project_space
  if from_space == to_space:
    return None
  translator = project_context.find_translator(from_space, to_space)
  if translator is None:
    raise InvalidProjectError(
        'Could not find a translator from project space "%s" to "%s"'
        % (from_space, to_space,))
  return translator


def perform_migrations(
      project_context, db, migration_names=None, skip_revisions=(),
      migrator=None,
      ):
  """Determine and perform the pending migrations named MIGRATION_NAMES.

  MIGRATION_NAMES defaults to all migrations of the project, in
  configuration order.  All migrations of one name are written by a
  single Writer, positioned at the revision of the target repository
  that is equivalent to where the migrations start (or at its head if
  there is no such equivalence).  Return the list of DraftRevisions
  produced, one per migration name that produced anything."""

  if migrator is None:
    migrator = Migrator()
  if migration_names is None:
    migration_names = list(project_context.migration_configs.keys())
  skip_revisions = set(skip_revisions)

  drafts = []
  try:
    for migration_name in migration_names:
      task = logger.push_task(
          'perform_migration', "Performing migration '%s'" % (migration_name,)
          )
      try:
        migration_config = project_context.get_migration_config(migration_name)
        from_repository = project_context.get_repository(
            migration_config.from_repository
            )
        to_repository = project_context.get_repository(
            migration_config.to_repository
            )

        migrations = migrator.determine_migrations(
            from_repository.history, migration_config, db
            )
        if not migrations:
          logger.normal(
              'No pending revisions to migrate for %s' % (migration_name,)
              )
          continue

        since_equivalence = migrations[0].since_equivalence
        if since_equivalence is None:
          to_rev_id = None
        else:
          to_rev_id = since_equivalence.get_revision_in(
              migration_config.to_repository
              ).rev_id
        writer = to_repository.writer_creator.create(to_rev_id)
        translator = get_translator(
            project_context, migration_config.from_repository,
            migration_config.to_repository,
            )

        draft = None
        for (i, migration) in enumerate(migrations):
          if migrator.should_skip(migration, skip_revisions):
            logger.normal(
                'Skipping %d/%d migration %s'
                % (i + 1, len(migrations), migration,))
            continue
          migration_task = logger.push_task(
              'perform_individual_migration',
              "Performing %d/%d migration '%s'"
              % (i + 1, len(migrations), migration,))
          try:
            draft = migrator.migrate(
                migration, from_repository, translator, writer, db,
                migration_config.scrubber_config,
                migration_config.metadata_scrubber_config,
                )
          finally:
            logger.pop_task(migration_task)

        if draft is not None:
          drafts.append(draft)
          writer.print_push_message()
      finally:
        logger.pop_task(task)
  finally:
    # Record the migrations that were committed before any failure.
    db.write()
  return drafts


class Directive(object):
  """Base class for the directives.

  NAME is the name of the directive on the command line; DESCRIPTION
  is a one-line summary for --help-directives."""

  name = None
  description = None

  # Whether the directive needs a project configuration:
  needs_project = True

  def add_options(self, group):
    """Add the options specific to this directive to the OptionGroup GROUP."""

    pass

  def check_options(self, options):
    """Raise FatalError if OPTIONS lack something this directive needs."""

    pass

  def _require_option(self, options, dest, option_name):
    if not getattr(options, dest):
      raise FatalError(
          "The '%s' directive requires the %s option."
          % (self.name, option_name,))

  def perform(self, run_options, context):
    """Perform the directive; return the exit status."""

    raise NotImplementedError()


class MagicDirective(Directive):
  name = 'magic'
  description = 'update the database and perform all pending migrations'

  def add_options(self, group):
    group.add_option(
        '--migration', action='append', dest='migrations', default=[],
        help=(
            'perform the migration NAME (may be specified several times; '
            'default: all migrations)'
            ),
        metavar='NAME',
        )
    group.add_option(
        '--skip-revision', action='append', dest='skip_revisions',
        default=[],
        help=(
            'do not migrate REV, given as REPOSITORY{ID} or a bare ID '
            '(may be specified several times)'
            ),
        metavar='REV',
        )
    group.add_option(
        '--skip-bookkeeping', action='store_true', default=False,
        help='do not update the database before migrating',
        )

  def perform(self, run_options, context):
    project_context = run_options.get_project_context(context)
    db = run_options.get_db(project_context)
    options = run_options.options

    if not options.skip_bookkeeping:
      if Bookkeeper(project_context, db).bookkeep() != 0:
        logger.error('Bookkeeping failed.')
        return 1

    drafts = perform_migrations(
        project_context, db, options.migrations or None,
        options.skip_revisions,
        )

    if drafts:
      logger.quiet(
          'Created Draft Revisions:\n%s'
          % ('\n'.join([str(draft.location) for draft in drafts]),))
    else:
      logger.quiet('No migrations made.')
    return 0


class BookkeepingDirective(Directive):
  name = 'bookkeeping'
  description = 'update the database from the state of the repositories'

  def perform(self, run_options, context):
    project_context = run_options.get_project_context(context)
    db = run_options.get_db(project_context)
    return Bookkeeper(project_context, db).bookkeep()


class DetermineMigrationsDirective(Directive):
  name = 'determine-migrations'
  description = 'list the migrations that would be performed'

  def add_options(self, group):
    group.add_option(
        '--migration', action='append', dest='migrations', default=[],
        help='list the pending migrations of NAME (default: all)',
        metavar='NAME',
        )

  def perform(self, run_options, context):
    project_context = run_options.get_project_context(context)
    db = run_options.get_db(project_context)
    migrator = Migrator()

    migration_names = run_options.options.migrations \
        or list(project_context.migration_configs.keys())
    for migration_name in migration_names:
      migration_config = project_context.get_migration_config(migration_name)
      history = project_context.get_repository(
          migration_config.from_repository
          ).history
      for migration in migrator.determine_migrations(
            history, migration_config, db
            ):
        sys.stdout.write('%s\n' % (migration,))
    return 0


class FindEquivalenceDirective(Directive):
  name = 'find-equivalence'
  description = 'print the revisions equivalent to a revision'

  def add_options(self, group):
    group.add_option(
        '--from-repository', type='string', action='store',
        help='the repository of the revision',
        metavar='NAME',
        )
    group.add_option(
        '--revision', type='string', action='store',
        help='the revision id (default: head)',
        metavar='ID',
        )
    group.add_option(
        '--in-repository', type='string', action='store',
        help='the repository in which to look for equivalent revisions',
        metavar='NAME',
        )

  def check_options(self, options):
    self._require_option(options, 'from_repository', '--from-repository')
    self._require_option(options, 'in_repository', '--in-repository')

  def perform(self, run_options, context):
    project_context = run_options.get_project_context(context)
    db = run_options.get_db(project_context)
    options = run_options.options

    repository = project_context.get_repository(options.from_repository)
    # Validate the name:
    project_context.get_repository(options.in_repository)
    revision = repository.history.find_highest_revision(options.revision)

    equivalences = db.find_equivalences(revision, options.in_repository)
    if not equivalences:
      logger.normal(
          'No Equivalences for %s in repository %s'
          % (revision, options.in_repository,))
      return 0
    for other in sorted(equivalences):
      sys.stdout.write('%s == %s\n' % (revision, other,))
    return 0


class NoteEquivalenceDirective(Directive):
  name = 'note-equivalence'
  description = 'record that two revisions are equivalent'

  def add_options(self, group):
    group.add_option(
        '--rev1', type='string', action='store',
        help='the first revision, as REPOSITORY{ID}',
        metavar='REV',
        )
    group.add_option(
        '--rev2', type='string', action='store',
        help='the second revision, as REPOSITORY{ID}',
        metavar='REV',
        )

  def check_options(self, options):
    self._require_option(options, 'rev1', '--rev1')
    self._require_option(options, 'rev2', '--rev2')

  def perform(self, run_options, context):
    project_context = run_options.get_project_context(context)
    db = run_options.get_db(project_context)

    revisions = []
    for s in [run_options.options.rev1, run_options.options.rev2]:
      revision = parse_revision(s)
      project_context.get_repository(revision.repository_name)
      revisions.append(revision)
    try:
      equivalence = Equivalence(revisions[0], revisions[1])
    except ValueError as e:
      raise FatalError(str(e))

    if db.note_equivalence(equivalence):
      logger.normal('Noted equivalence: %s' % (equivalence,))
    else:
      logger.normal('Equivalence was already known: %s' % (equivalence,))
    db.write()
    return 0


class HighestRevisionDirective(Directive):
  name = 'highest-revision'
  description = 'print the highest revision of a repository'

  def add_options(self, group):
    group.add_option(
        '--repository', type='string', action='store',
        help='the repository to inspect',
        metavar='NAME',
        )
    group.add_option(
        '--revision', type='string', action='store',
        help='find the highest revision up to ID',
        metavar='ID',
        )

  def check_options(self, options):
    self._require_option(options, 'repository', '--repository')

  def perform(self, run_options, context):
    project_context = run_options.get_project_context(context)
    repository = project_context.get_repository(
        run_options.options.repository
        )
    revision = repository.history.find_highest_revision(
        run_options.options.revision
        )
    sys.stdout.write('Highest revision in repository "%s": %s\n'
                     % (repository.name, revision.rev_id,))
    return 0


class MergeCodebasesDirective(Directive):
  name = 'merge-codebases'
  description = 'merge the changes between two codebases into a third'

  needs_project = False

  def add_options(self, group):
    group.add_option(
        '--original-codebase', type='string', action='store',
        help='the codebase the changes are relative to',
        metavar='PATH',
        )
    group.add_option(
        '--modified-codebase', type='string', action='store',
        help='the codebase holding the changes',
        metavar='PATH',
        )
    group.add_option(
        '--destination-codebase', type='string', action='store',
        help='the codebase into which the changes are merged',
        metavar='PATH',
        )

  def check_options(self, options):
    self._require_option(options, 'original_codebase', '--original-codebase')
    self._require_option(options, 'modified_codebase', '--modified-codebase')
    self._require_option(
        options, 'destination_codebase', '--destination-codebase'
        )

  def perform(self, run_options, context):
    options = run_options.options
    codebases = []
    for path in [
          options.original_codebase, options.modified_codebase,
          options.destination_codebase,
          ]:
      if not os.path.isdir(path):
        raise FatalError('Codebase directory %s does not exist' % (path,))
      codebases.append(
          Codebase(os.path.abspath(path), config.DEFAULT_PROJECT_SPACE, path)
          )
    result = merge_codebases(context, *codebases)
    result.report()
    return 0


# The available directives, in the order in which they are listed:
directives = [
    MagicDirective(),
    BookkeepingDirective(),
    DetermineMigrationsDirective(),
    FindEquivalenceDirective(),
    NoteEquivalenceDirective(),
    HighestRevisionDirective(),
    MergeCodebasesDirective(),
    ]


def find_directive(name):
  for directive in directives:
    if directive.name == name:
      return directive
  raise UnknownDirectiveError(name)


def help_directives(f=None):
  if f is None:
    f = sys.stdout
  f.write('DIRECTIVES:\n')
  for directive in directives:
    f.write('  %-22s %s\n' % (directive.name, directive.description,))
