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


"""Matchers that decide where a history search stops."""


class RevisionMatcher(object):
  """Decide which revisions stop a RevisionHistory.find_revisions() walk.

  matches() is called once per revision reached by the walk.
  make_result() turns the outcome of the walk into whatever the
  particular matcher's caller wants."""

  def matches(self, revision):
    """Return True iff the search should stop at REVISION."""

    raise NotImplementedError()

  def make_result(self, revision_graph, matching_revisions):
    """Return the result of a search.

    REVISION_GRAPH holds the non-matching revisions that were visited;
    MATCHING_REVISIONS is the list of stopping revisions in the order
    in which they were discovered."""

    raise NotImplementedError()


class ExactRevisionMatcher(RevisionMatcher):
  """Stop at any of a fixed collection of revisions.

  The result of a search is the RevisionGraph of the revisions that
  were visited before reaching them."""

  def __init__(self, revisions):
    self.revisions = frozenset(revisions)

  def matches(self, revision):
    return revision in self.revisions

  def make_result(self, revision_graph, matching_revisions):
    return revision_graph

  def __str__(self):
    return 'ExactRevisionMatcher(%s)' % (
        ', '.join(sorted(map(str, self.revisions))),
        )


class NeverMatcher(RevisionMatcher):
  """Never stop; the result is the graph of the whole reachable history."""

  def matches(self, revision):
    return False

  def make_result(self, revision_graph, matching_revisions):
    return revision_graph

  def __str__(self):
    return 'NeverMatcher()'
