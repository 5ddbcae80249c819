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


"""This module contains the Migrator class.

The Migrator plans migrations (which revisions of one repository have
not yet been brought over to another, and in which groups) and
performs them one at a time (translate, write, record)."""


from repomirror_lib.common import SkipSubsetError
from repomirror_lib.common import MetadataUnavailableError
from repomirror_lib.log import logger
from repomirror_lib.revision import RevisionMetadata
from repomirror_lib.equivalence import SubmittedMigration
from repomirror_lib.equivalence_matcher import find_revisions
from repomirror_lib.migration import Migration
from repomirror_lib.metadata_scrubber import PublicSectionScrubber


class Migrator(object):
  """Plan and perform migrations between repositories."""

  def match_equivalences(self, history, to_repository, db, search_type=None):
    """Search HISTORY from its head(s) for equivalences with TO_REPOSITORY.

    Return an EquivalenceMatcherResult."""

    return find_revisions(history, None, to_repository, db, search_type)

  def determine_migrations(self, from_history, migration_config, db):
    """Return the list of pending Migrations for MIGRATION_CONFIG.

    FROM_HISTORY is the RevisionHistory of the migration's
    from-repository; it is searched (with its own search type) back to
    the revisions that DB knows to be equivalent to revisions of the
    to-repository.  The revisions found before reaching them are
    returned oldest first, either in a single Migration or, if the
    configuration asks for separate revisions, in one Migration each.

    Every Migration is anchored to the first equivalence found, or to
    None if the repositories were never equivalent."""

    result = self.match_equivalences(
        from_history, migration_config.to_repository, db
        )

    # Breadth-first discovery order is newest first:
    revisions = list(
        reversed(result.revisions_since_equivalence.breadth_first_history())
        )

    if not revisions:
      logger.normal(
          "No revisions found since last equivalence for migration '%s'"
          % (migration_config.name,))
      return []

    if result.equivalences:
      since_equivalence = result.equivalences[0]
      for equivalence in result.equivalences[1:]:
        if equivalence != since_equivalence:
          logger.verbose(
              'Ignoring additional equivalence %s; migrating since %s'
              % (equivalence, since_equivalence,))
    else:
      since_equivalence = None
      logger.normal(
          'No equivalence found between %s and %s; migrating the whole '
          'history of %s'
          % (migration_config.from_repository,
             migration_config.to_repository,
             migration_config.from_repository,))

    logger.normal(
        'Found %d revisions in %s since equivalence (%s): %s'
        % (len(revisions), migration_config.from_repository,
           since_equivalence, ', '.join(map(str, revisions)),))

    if migration_config.separate_revisions:
      return [
          Migration(
              migration_config.name,
              migration_config.from_repository,
              migration_config.to_repository,
              [revision],
              since_equivalence,
              )
          for revision in revisions
          ]
    else:
      return [
          Migration(
              migration_config.name,
              migration_config.from_repository,
              migration_config.to_repository,
              revisions,
              since_equivalence,
              )
          ]

  def should_skip(self, migration, skip_revisions):
    """Return True iff MIGRATION is to be skipped entirely.

    SKIP_REVISIONS is a collection of strings, each either of the form
    'repository{rev_id}' or a bare revision id.  A migration is skipped
    if all of its revisions are listed.  Listing only some of them is
    an error, because the revisions of one migration cannot be
    separated."""

    skip_revisions = set(skip_revisions)
    skipped = 0
    for revision in migration.from_revisions:
      if str(revision) in skip_revisions or revision.rev_id in skip_revisions:
        skipped += 1

    if skipped == 0:
      return False
    elif skipped == len(migration.from_revisions):
      return True
    else:
      raise SkipSubsetError(migration)

  def process_metadata(
        self, history, revisions, metadata_scrubber_config=None,
        from_revision=None,
        ):
    """Return the combined, scrubbed RevisionMetadata for REVISIONS.

    The metadata of each revision is read from HISTORY and scrubbed as
    METADATA_SCRUBBER_CONFIG prescribes (with no config, only the
    public section of each description is kept).  The results are
    concatenated; FROM_REVISION, if given, is recorded in the
    description so that the migration can be recognized later."""

    if metadata_scrubber_config is None:
      scrubbers = [PublicSectionScrubber()]
    else:
      scrubbers = metadata_scrubber_config.get_scrubbers()

    metadata_list = []
    for revision in revisions:
      metadata = history.get_metadata(revision)
      if metadata is None:
        raise MetadataUnavailableError(revision)
      for scrubber in scrubbers:
        metadata = scrubber.scrub(metadata)
      metadata_list.append(metadata)

    return RevisionMetadata.concatenate(metadata_list, from_revision)

  def possibly_scrub_author(self, metadata, scrubber_config):
    """Return METADATA without its author if SCRUBBER_CONFIG says so."""

    if scrubber_config is not None \
           and scrubber_config.should_scrub_author(metadata.author):
      return metadata.with_author(None)
    return metadata

  def migrate(
        self, migration, from_repository, translator, writer, db,
        scrubber_config=None, metadata_scrubber_config=None,
        ):
    """Perform MIGRATION and return the resulting DraftRevision.

    FROM_REPOSITORY is the RepositoryType of the migration's source.
    The codebase of its most recent revision is created and, if
    TRANSLATOR is not None, translated into the target project space,
    with the codebase currently held by WRITER as the reference for
    inverse translation.  The result is handed to WRITER together with
    the migration's metadata.

    If the writer produced a revision, the migration is noted in DB
    (noting it again is harmless)."""

    most_recent = migration.most_recent_revision()
    codebase = from_repository.codebase_creator.create(most_recent.rev_id)
    if translator is not None:
      codebase = translator.translate(
          codebase, {'reference_to_codebase' : writer.get_codebase()}
          )

    metadata = self.process_metadata(
        from_repository.history, migration.from_revisions,
        metadata_scrubber_config, most_recent,
        )
    metadata = self.possibly_scrub_author(metadata, scrubber_config)

    draft = writer.put_codebase(codebase, metadata)

    if draft.revision is not None:
      if not db.note_migration(
            SubmittedMigration(migration.from_revisions, draft.revision)
            ):
        logger.verbose('Migration %s was already recorded' % (migration,))
    return draft
