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


"""This module contains the RevisionGraph class."""


from collections import deque

from repomirror_lib.common import InternalError


class RevisionGraph(object):
  """A graph of Revisions together with their RevisionMetadata.

  The graph is built incrementally by a history walk: each visited
  Revision is added once, with the metadata that was read for it.  The
  edges are the parent links in the metadata.  Parents that were never
  added (because the walk stopped before reaching them) are not part
  of the graph.

  The graph remembers its HEADS, the revisions from which the walk
  started; the traversal orders are defined relative to them."""

  def __init__(self, heads=()):
    self.heads = list(heads)

    # A map {Revision : RevisionMetadata}, in discovery order:
    self._metadata = {}

  def add_revision(self, revision, metadata):
    """Add REVISION with its METADATA to the graph.

    Adding the same revision twice is an error in the walk that built
    the graph."""

    if revision in self._metadata:
      raise InternalError(
          'Revision %s was added to the revision graph twice' % (revision,)
          )
    self._metadata[revision] = metadata

  def get_metadata(self, revision):
    return self._metadata[revision]

  def get_parents(self, revision):
    """Return the parents of REVISION that are part of this graph."""

    return [
        parent
        for parent in self._metadata[revision].parents
        if parent in self._metadata
        ]

  def __contains__(self, revision):
    return revision in self._metadata

  def __len__(self):
    return len(self._metadata)

  def __iter__(self):
    """Iterate over the revisions in the order in which they were added."""

    return iter(self._metadata)

  def is_empty(self):
    return not self._metadata

  def _roots(self):
    """Return the revisions at which traversals start.

    These are the heads that are in the graph, or, if none of the
    heads is (e.g., the graph was built by hand), all revisions that
    are not the parent of any other revision in the graph."""

    roots = [head for head in self.heads if head in self._metadata]
    if roots:
      return roots

    children = set()
    for revision in self._metadata:
      children.update(self.get_parents(revision))
    return [
        revision for revision in self._metadata if revision not in children
        ]

  def breadth_first_history(self):
    """Return a list of the revisions in breadth-first order.

    The traversal starts at the heads and follows every parent link.
    Each revision appears exactly once, even if it can be reached
    along several paths."""

    result = []
    visited = set()
    queue = deque()
    for root in self._roots():
      if root not in visited:
        visited.add(root)
        queue.append(root)

    while queue:
      revision = queue.popleft()
      result.append(revision)
      for parent in self.get_parents(revision):
        if parent not in visited:
          visited.add(parent)
          queue.append(parent)

    return result

  def depth_first_history(self):
    """Return a list of the revisions in depth-first (preorder) order.

    First parents are explored before later parents.  Each revision
    appears exactly once."""

    result = []
    visited = set()
    # A stack of revisions still to be visited; the next one is at the
    # end.  Parents are pushed in reverse order so that the first parent
    # is popped first.
    stack = list(reversed(self._roots()))
    while stack:
      revision = stack.pop()
      if revision in visited:
        continue
      visited.add(revision)
      result.append(revision)
      for parent in reversed(self.get_parents(revision)):
        if parent not in visited:
          stack.append(parent)

    return result

  def __repr__(self):
    return 'RevisionGraph(heads=[%s], %d revisions)' % (
        ', '.join(map(str, self.heads)), len(self._metadata),
        )
