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


"""This module contains the Bookkeeper class.

Bookkeeping brings the equivalence database up to date with what has
happened in the repositories since the last run: it notices when the
heads of two repositories have become equivalent, and it finds the
commits that were created by earlier migrations (recognizable by the
trailer in their descriptions) and checks whether they established an
equivalence."""


import re

from repomirror_lib import config
from repomirror_lib.log import logger
from repomirror_lib.revision import Revision
from repomirror_lib.revision_history import SearchType
from repomirror_lib.equivalence import Equivalence
from repomirror_lib.equivalence import SubmittedMigration
from repomirror_lib.equivalence_matcher import find_revisions
from repomirror_lib.codebase_differ import diff_codebases


_migrated_revid_re = re.compile(
    re.escape(config.MIGRATED_REVID_FIELD) + r'=(\S*)'
    )


def get_migrated_rev_id(metadata):
  """Return the rev id recorded in METADATA by a migration, or None."""

  m = _migrated_revid_re.search(metadata.description)
  if m and m.group(1):
    return m.group(1)
  return None


class Bookkeeper(object):
  """Update an EquivalenceDatabase from the state of a project's repositories."""

  def __init__(self, project_context, db):
    self.project_context = project_context
    self.db = db

  def _head(self, repository_name):
    repository = self.project_context.get_repository(repository_name)
    return repository.history.find_highest_revision(None)

  def _is_inverse(self, migration_config):
    """Return True iff MIGRATION_CONFIG's translator is an inverse translator.

    An inverse translator needs a reference codebase to translate, so
    equivalence is instead checked by translating the other way."""

    from_space = self.project_context.get_repository(
        migration_config.from_repository
        ).project_space
    to_space = self.project_context.get_repository(
        migration_config.to_repository
        ).project_space
    for translator_config in self.project_context.config.translators:
      if translator_config.from_project_space == from_space \
             and translator_config.to_project_space == to_space:
        return translator_config.inverse
    return False

  def determine_equivalence(self, from_revision, to_revision):
    """Return an Equivalence if the two revisions are equivalent, else None.

    The codebase of FROM_REVISION is translated into the project space
    of TO_REVISION's repository and compared with the codebase of
    TO_REVISION."""

    from_repository = self.project_context.get_repository(
        from_revision.repository_name
        )
    to_repository = self.project_context.get_repository(
        to_revision.repository_name
        )
    from_codebase = self.project_context.translate(
        from_repository.codebase_creator.create(from_revision.rev_id),
        to_repository.project_space,
        )
    to_codebase = to_repository.codebase_creator.create(to_revision.rev_id)

    task = logger.push_task(
        'diff_codebases',
        "Diff codebases '%s' and '%s'" % (from_codebase, to_codebase,)
        )
    difference = diff_codebases(from_codebase, to_codebase)
    if difference.are_different():
      logger.verbose(str(difference))
      logger.pop_task(task, 'Difference Found')
      return None
    else:
      logger.pop_task(task, 'No Difference')
      return Equivalence(from_revision, to_revision)

  def _determine_equivalence(self, from_revision, to_revision, inverse):
    if inverse:
      return self.determine_equivalence(to_revision, from_revision)
    else:
      return self.determine_equivalence(from_revision, to_revision)

  def try_head_equivalence(self, from_head, to_head, inverse):
    """Check whether FROM_HEAD and TO_HEAD are equivalent; note it if so.

    Return the Equivalence, or None."""

    task = logger.push_task(
        'checking head equivalency',
        "Checking head equivalence between '%s' and '%s'"
        % (from_head, to_head,))
    equivalence = self._determine_equivalence(from_head, to_head, inverse)
    if equivalence is not None:
      logger.normal(
          'SUCCESS: Found Equivalence between %s and %s' % (from_head, to_head,)
          )
      self.db.note_equivalence(equivalence)
      logger.pop_task(task, 'Found!!')
    else:
      logger.normal(
          'No equivalence found between %s and %s' % (from_head, to_head,)
          )
      logger.pop_task(task, 'Not Found.')
    return equivalence

  def process_migration(self, migration, inverse):
    """Record MIGRATION and check whether it established an equivalence.

    Return the Equivalence found, or None.  A migration that was
    already recorded is not checked again."""

    if not self.db.note_migration(migration):
      logger.normal('Skipping: already recorded %s' % (migration,))
      return None

    task = logger.push_task(
        'process_migration', 'Bookkeeping migrated revision %s' % (migration,)
        )
    equivalence = self._determine_equivalence(
        migration.from_revisions[0], migration.to_revision, inverse
        )
    if equivalence is not None:
      self.db.note_equivalence(equivalence)
      logger.normal(
          'SUCCESS: Equivalence found and recorded: %s' % (equivalence,)
          )
    self.db.write()
    logger.pop_task(task)
    return equivalence

  def note_completed_migrations(self, from_repository, to_repository, inverse):
    """Find the migrated commits in TO_REPOSITORY since the last equivalence.

    They are processed newest first; processing stops at the first one
    that turns out to be equivalent to its source revision."""

    task = logger.push_task(
        'check_migrations',
        "Checking completed migrations for new equivalence between "
        "'%s' and '%s'" % (from_repository, to_repository,))

    to_history = self.project_context.get_repository(to_repository).history
    result = find_revisions(
        to_history, None, from_repository, self.db, SearchType.BRANCHED
        )
    to_revisions = result.revisions_since_equivalence.breadth_first_history()
    logger.normal(
        'Found %d revisions in %s since equivalence (%s)'
        % (len(to_revisions), to_repository,
           ', '.join(map(str, result.equivalences)),))
    logger.debug(
        'Revisions since equivalence: %s' % (' '.join(map(str, to_revisions)),)
        )

    unmigrated = 0
    processed = 0
    for to_revision in to_revisions:
      processed += 1
      from_rev_id = get_migrated_rev_id(
          result.revisions_since_equivalence.get_metadata(to_revision)
          )
      if from_rev_id is None:
        unmigrated += 1
        logger.debug('Ignoring non-migrated revision %s' % (to_revision,))
        continue
      migration = SubmittedMigration(
          [Revision(from_rev_id, from_repository)], to_revision
          )
      logger.debug('Processing submitted migration: %s' % (migration,))
      if self.process_migration(migration, inverse) is not None:
        logger.normal(
            'Equivalence found - skipping remaining revisions in this '
            'migration.'
            )
        break

    logger.normal(
        'Ignored %d commits that were not migrated by repomirror'
        % (unmigrated,))
    if processed < len(to_revisions):
      logger.normal(
          'Skipped %d commits that preceded a discovered migration'
          % (len(to_revisions) - processed,))
    logger.pop_task(task)

  def bookkeep(self):
    """Bookkeep every migration of the project, and write the database.

    Return 0 on success."""

    task = logger.push_task('bookkeeping', 'Updating database')

    tested_heads = set()
    for migration_config in self.project_context.migration_configs.values():
      migration_task = logger.push_task(
          'bookkeeping %s' % (migration_config.name,),
          "Doing bookkeeping between '%s' and '%s' for migration '%s'"
          % (migration_config.from_repository,
             migration_config.to_repository,
             migration_config.name,))
      try:
        inverse = self._is_inverse(migration_config)
        from_head = self._head(migration_config.from_repository)
        to_head = self._head(migration_config.to_repository)
        heads = frozenset([from_head, to_head])
        if heads not in tested_heads:
          # The pair of a migration and its reverse migration is only
          # checked once.
          tested_heads.add(heads)
          if self.try_head_equivalence(from_head, to_head, inverse) is not None:
            continue
        self.note_completed_migrations(
            migration_config.from_repository,
            migration_config.to_repository,
            inverse,
            )
      finally:
        logger.pop_task(migration_task)

    logger.pop_task(task)
    self.db.write()
    return 0
