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


"""This module contains the RevisionHistory base class.

A RevisionHistory is the view of one repository's commit graph that
the rest of repomirror needs: which revisions are the heads, and what
the metadata (including the parents) of a given revision is.  The
search over that graph is implemented once, here, in terms of those
two capabilities."""


from collections import deque

from repomirror_lib.common import FatalError
from repomirror_lib.common import MetadataUnavailableError
from repomirror_lib.log import logger
from repomirror_lib.revision_graph import RevisionGraph


class SearchType(object):
  """The ways in which find_revisions() can follow parent links."""

  # Follow only the first parent of each revision:
  LINEAR = 'linear'

  # Follow all parents of each revision:
  BRANCHED = 'branched'

  ALL = (LINEAR, BRANCHED)


class RevisionHistory(object):
  """The history of one repository.

  Subclasses implement find_highest_revision(), get_metadata() and,
  if the repository can have several heads, find_head_revisions().

  SEARCH_TYPE is the way that this repository's history should be
  searched by default: LINEAR for repositories that are modelled as a
  single mainline, BRANCHED for those whose merges matter.

  MAX_REVISIONS, if not None, bounds the number of revisions a single
  search may visit before it gives up."""

  def __init__(
        self, repository_name, search_type=SearchType.LINEAR,
        max_revisions=None,
        ):
    if search_type not in SearchType.ALL:
      raise ValueError('Unknown search type %r' % (search_type,))
    self.repository_name = repository_name
    self.search_type = search_type
    self.max_revisions = max_revisions

  def find_highest_revision(self, rev_id):
    """Return the Revision with id REV_ID, or the head if REV_ID is None.

    Raise a FatalError if REV_ID does not name a revision in this
    repository."""

    raise NotImplementedError()

  def get_metadata(self, revision):
    """Return the RevisionMetadata of REVISION, or None if unavailable."""

    raise NotImplementedError()

  def find_head_revisions(self):
    """Return a list of the head revisions of this repository.

    The default is the single highest revision."""

    return [self.find_highest_revision(None)]

  def find_revisions(self, revision, matcher, search_type=None):
    """Walk the history backwards from REVISION, consulting MATCHER.

    If REVISION is None, start at the heads of the repository.  The
    walk is breadth-first; SEARCH_TYPE (by default self.search_type)
    determines whether all parents or only the first parent of each
    revision are followed.

    A revision for which MATCHER.matches() returns True is a stopping
    revision: it is recorded, but its parents are not followed.  All
    other revisions are added, with their metadata, to a RevisionGraph.
    Each revision is considered at most once, however many paths lead
    to it.

    Return MATCHER.make_result(graph, stopping_revisions)."""

    if search_type is None:
      search_type = self.search_type

    if revision is None:
      starting_revisions = list(self.find_head_revisions())
    else:
      starting_revisions = [revision]

    if len(starting_revisions) > 1 and search_type == SearchType.LINEAR:
      raise FatalError(
          'Repository %s has multiple heads (%s); its history cannot be '
          'searched linearly'
          % (self.repository_name,
             ', '.join(map(str, starting_revisions)),))

    graph = RevisionGraph(starting_revisions)
    matching_revisions = []

    work_list = deque(starting_revisions)
    visited = set(starting_revisions)

    while work_list:
      current = work_list.popleft()
      if matcher.matches(current):
        matching_revisions.append(current)
        continue

      metadata = self.get_metadata(current)
      if metadata is None:
        raise MetadataUnavailableError(current)
      graph.add_revision(current, metadata)

      parents = list(metadata.parents)
      if search_type == SearchType.LINEAR:
        parents = parents[:1]
      for parent in parents:
        if parent not in visited:
          visited.add(parent)
          work_list.append(parent)

      if self.max_revisions is not None \
             and len(visited) > self.max_revisions:
        raise FatalError(
            "Couldn't find a matching revision for %s from %s within "
            "%d revisions"
            % (matcher, revision or 'head', self.max_revisions,))

    logger.debug(
        'Searched %d revisions of %s; %d stopping revision(s)'
        % (len(graph), self.repository_name, len(matching_revisions),))
    return matcher.make_result(graph, matching_revisions)
