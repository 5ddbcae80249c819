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


"""This module contains the Equivalence and SubmittedMigration classes."""


class Equivalence(object):
  """An assertion that two revisions in different repositories match.

  An Equivalence is unordered: Equivalence(a, b) == Equivalence(b, a),
  and both hash the same.  The orientation in which it was created is
  preserved (in REV1 and REV2) only so that it can be stored and
  displayed the way it was noted."""

  __slots__ = ['rev1', 'rev2']

  def __init__(self, rev1, rev2):
    if rev1.repository_name == rev2.repository_name:
      raise ValueError(
          'An equivalence must relate two different repositories; '
          'got %s and %s' % (rev1, rev2,))
    self.rev1 = rev1
    self.rev2 = rev2

  def get_other_revision(self, revision):
    """Return the counterpart of REVISION in this equivalence.

    Return None if REVISION is not part of this equivalence."""

    if revision == self.rev1:
      return self.rev2
    elif revision == self.rev2:
      return self.rev1
    else:
      return None

  def get_revision_in(self, repository_name):
    """Return the revision of this equivalence in REPOSITORY_NAME, or None."""

    if self.rev1.repository_name == repository_name:
      return self.rev1
    elif self.rev2.repository_name == repository_name:
      return self.rev2
    else:
      return None

  def __eq__(self, other):
    return (
        isinstance(other, Equivalence)
        and frozenset([self.rev1, self.rev2])
            == frozenset([other.rev1, other.rev2])
        )

  def __ne__(self, other):
    return not self == other

  def __hash__(self):
    return hash(frozenset([self.rev1, self.rev2]))

  def __str__(self):
    return '%s == %s' % (self.rev1, self.rev2,)

  def __repr__(self):
    return 'Equivalence(%r, %r)' % (self.rev1, self.rev2,)


class SubmittedMigration(object):
  """A record that some revisions were migrated into another repository.

  FROM_REVISIONS is the tuple of source revisions (all in one
  repository), in the order in which they were migrated; TO_REVISION
  is the revision that the migration produced in the target
  repository."""

  __slots__ = ['from_revisions', 'to_revision']

  def __init__(self, from_revisions, to_revision):
    self.from_revisions = tuple(from_revisions)
    if not self.from_revisions:
      raise ValueError('A submitted migration needs at least one revision')
    self.to_revision = to_revision

  def __eq__(self, other):
    return (
        isinstance(other, SubmittedMigration)
        and self.from_revisions == other.from_revisions
        and self.to_revision == other.to_revision
        )

  def __ne__(self, other):
    return not self == other

  def __hash__(self):
    return hash((self.from_revisions, self.to_revision,))

  def __str__(self):
    return '%s ==> %s' % (
        ', '.join(map(str, self.from_revisions)), self.to_revision,
        )

  def __repr__(self):
    return 'SubmittedMigration(%r, %r)' % (
        list(self.from_revisions), self.to_revision,
        )
