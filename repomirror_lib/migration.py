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


"""This module contains the Migration and MigrationConfig classes."""


class MigrationConfig(object):
  """The configuration of one named migration.

  A migration moves revisions from FROM_REPOSITORY to TO_REPOSITORY.
  If SEPARATE_REVISIONS is true, each pending revision is migrated in
  its own commit; otherwise all pending revisions are migrated
  together.  METADATA_SCRUBBER_CONFIG (a MetadataScrubberConfig or
  None) controls how the descriptions of migrated revisions are
  rewritten, and SCRUBBER_CONFIG (an AuthorScrubberConfig or None)
  whether their authors are published."""

  def __init__(
        self, name, from_repository, to_repository,
        separate_revisions=False, metadata_scrubber_config=None,
        scrubber_config=None,
        ):
    self.name = name
    self.from_repository = from_repository
    self.to_repository = to_repository
    self.separate_revisions = separate_revisions
    self.metadata_scrubber_config = metadata_scrubber_config
    self.scrubber_config = scrubber_config

  def __repr__(self):
    return 'MigrationConfig(%r, %r -> %r%s)' % (
        self.name, self.from_repository, self.to_repository,
        self.separate_revisions and ', separate' or '',
        )


class Migration(object):
  """One unit of work: revisions to be replayed into another repository.

  FROM_REVISIONS is a non-empty tuple of revisions of FROM_REPOSITORY,
  oldest first.  SINCE_EQUIVALENCE is the Equivalence that the work is
  anchored to, or None if the two repositories have never been
  equivalent."""

  __slots__ = [
      'name', 'from_repository', 'to_repository', 'from_revisions',
      'since_equivalence',
      ]

  def __init__(
        self, name, from_repository, to_repository, from_revisions,
        since_equivalence,
        ):
    self.name = name
    self.from_repository = from_repository
    self.to_repository = to_repository
    self.from_revisions = tuple(from_revisions)
    if not self.from_revisions:
      raise ValueError('Migration %s has no revisions' % (name,))
    for revision in self.from_revisions:
      if revision.repository_name != from_repository:
        raise ValueError(
            'Revision %s of migration %s is not in repository %s'
            % (revision, name, from_repository,))
    self.since_equivalence = since_equivalence

  def most_recent_revision(self):
    return self.from_revisions[-1]

  def __eq__(self, other):
    return (
        isinstance(other, Migration)
        and self.name == other.name
        and self.from_repository == other.from_repository
        and self.to_repository == other.to_repository
        and self.from_revisions == other.from_revisions
        and self.since_equivalence == other.since_equivalence
        )

  def __ne__(self, other):
    return not self == other

  def __hash__(self):
    return hash((self.name, self.from_revisions,))

  def __str__(self):
    return '%s: %s -> %s [%s]' % (
        self.name, self.from_repository, self.to_repository,
        ', '.join(map(str, self.from_revisions)),
        )

  def __repr__(self):
    return 'Migration(%r, %r, %r, %r, %r)' % (
        self.name, self.from_repository, self.to_repository,
        list(self.from_revisions), self.since_equivalence,
        )
