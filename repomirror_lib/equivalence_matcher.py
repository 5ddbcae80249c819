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


"""This module contains the EquivalenceMatcher class.

An EquivalenceMatcher walks one repository's history backwards and
stops at the revisions that the equivalence database relates to a
target repository.  What lies before those stopping revisions is the
history that has not been shown to be equivalent yet."""


from repomirror_lib.revision_matcher import RevisionMatcher
from repomirror_lib.equivalence import Equivalence


class EquivalenceMatcherResult(object):
  """The outcome of a search with an EquivalenceMatcher.

  REVISIONS_SINCE_EQUIVALENCE is the RevisionGraph of revisions visited
  before any stopping revision on their path.  EQUIVALENCES is the
  list of Equivalences found at the stopping revisions, in the order in
  which those revisions were discovered.  It is empty if no stopping
  revision was found; that is a valid outcome (the two repositories
  have never been brought into sync)."""

  def __init__(self, revisions_since_equivalence, equivalences):
    self.revisions_since_equivalence = revisions_since_equivalence
    self.equivalences = list(equivalences)

  def __repr__(self):
    return 'EquivalenceMatcherResult(%r, [%s])' % (
        self.revisions_since_equivalence,
        ', '.join(map(str, self.equivalences)),
        )


class EquivalenceMatcher(RevisionMatcher):
  """Stop at revisions with an equivalence in TARGET_REPOSITORY."""

  Result = EquivalenceMatcherResult

  def __init__(self, target_repository, db):
    self.target_repository = target_repository
    self.db = db

  def matches(self, revision):
    return bool(self.db.find_equivalences(revision, self.target_repository))

  def make_result(self, revision_graph, matching_revisions):
    equivalences = []
    for revision in matching_revisions:
      # When several counterparts are known, the one noted last is the
      # most recent fact about this revision.
      other = self.db.find_latest_equivalence(
          revision, self.target_repository
          )
      equivalences.append(Equivalence(revision, other))
    return EquivalenceMatcherResult(revision_graph, equivalences)

  def __str__(self):
    return 'EquivalenceMatcher(%s)' % (self.target_repository,)


def find_revisions(history, start, target_repository, db, search_type=None):
  """Search HISTORY backwards from START for equivalences.

  START is a Revision, or None to start at the head(s).  Stop at
  revisions that DB relates to TARGET_REPOSITORY.  SEARCH_TYPE defaults
  to HISTORY's own search type.  Return an EquivalenceMatcherResult."""

  return history.find_revisions(
      start, EquivalenceMatcher(target_repository, db), search_type
      )
