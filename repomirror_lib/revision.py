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

"""This module contains the Revision and RevisionMetadata classes."""


import re
from datetime import datetime
from datetime import timezone

from repomirror_lib import config
from repomirror_lib.common import ParseError


class Revision(object):
  """One commit in one named repository.

  Revisions are value objects: two Revisions are equal iff both their
  REV_ID and their REPOSITORY_NAME are equal.  They must not be
  modified after construction, because they are used as dictionary
  keys and set members throughout."""

  __slots__ = ['rev_id', 'repository_name']

  def __init__(self, rev_id, repository_name):
    self.rev_id = str(rev_id)
    self.repository_name = repository_name

  def __eq__(self, other):
    return (
        isinstance(other, Revision)
        and self.rev_id == other.rev_id
        and self.repository_name == other.repository_name
        )

  def __ne__(self, other):
    return not self == other

  def __hash__(self):
    return hash((self.rev_id, self.repository_name,))

  def __lt__(self, other):
    return (
        (self.repository_name, self.rev_id,)
        < (other.repository_name, other.rev_id,)
        )

  def __str__(self):
    return '%s{%s}' % (self.repository_name, self.rev_id,)

  def __repr__(self):
    return 'Revision(%r, %r)' % (self.rev_id, self.repository_name,)


_revision_re = re.compile(r'^(?P<name>[^{}\s]+)\{(?P<rev_id>[^{}\s]+)\}$')


def parse_revision(s):
  """Parse a string of the form 'name{rev_id}' into a Revision.

  Raise ParseError if S does not have that form."""

  m = _revision_re.match(s.strip())
  if not m:
    raise ParseError(
        'Cannot parse revision %r; expected the form repository{revision}'
        % (s,))
  return Revision(m.group('rev_id'), m.group('name'))


# A line 'KEY=value' in a description is a field.
_field_re = re.compile(r'^(?P<key>[A-Za-z_-]+)=(?P<value>.*)$')


def parse_fields(description):
  """Return a dict mapping field names to lists of values in DESCRIPTION.

  The description itself is not modified."""

  fields = {}
  for line in description.split('\n'):
    m = _field_re.match(line)
    if m:
      fields.setdefault(m.group('key'), []).append(m.group('value'))
  return fields


class RevisionMetadata(object):
  """Metadata describing one revision.

  PARENTS is a tuple of Revisions, in the order reported by the
  repository; the first parent is the mainline parent.  FIELDS maps
  field names (parsed from 'KEY=value' lines in the description) to
  lists of values."""

  __slots__ = ['id', 'author', 'date', 'description', 'parents', 'fields']

  def __init__(self, id, author, date, description, parents, fields=None):
    self.id = id
    self.author = author
    self.date = date
    self.description = description
    self.parents = tuple(parents)
    if fields is None:
      fields = parse_fields(description)
    self.fields = fields

  def __eq__(self, other):
    return (
        isinstance(other, RevisionMetadata)
        and self.id == other.id
        and self.author == other.author
        and self.date == other.date
        and self.description == other.description
        and self.parents == other.parents
        )

  def __ne__(self, other):
    return not self == other

  def __hash__(self):
    return hash((self.id, self.author, self.description, self.parents,))

  def __repr__(self):
    return 'RevisionMetadata(%r, author=%r, parents=[%s])' % (
        self.id, self.author, ', '.join(map(str, self.parents)),
        )

  def with_author(self, author):
    """Return a copy of this metadata with AUTHOR replacing the author."""

    return RevisionMetadata(
        self.id, author, self.date, self.description, self.parents,
        self.fields,
        )

  @staticmethod
  def concatenate(metadata_list, migration_from_rev=None):
    """Combine METADATA_LIST into a single RevisionMetadata.

    The result describes a single commit that stands for all of the
    revisions in METADATA_LIST: ids and authors are joined with ', ',
    the date is the latest of the dates, descriptions are joined with
    a separator line, and the parents are concatenated.

    If MIGRATION_FROM_REV is given, a trailer naming it is appended to
    the description, which is how bookkeeping later recognizes the
    commit as the result of a migration."""

    if not metadata_list:
      raise ValueError('Cannot concatenate an empty list of metadata')

    ids = []
    authors = []
    descriptions = []
    parents = []
    fields = {}
    date = datetime.fromtimestamp(0, timezone.utc)
    for metadata in metadata_list:
      ids.append(metadata.id)
      authors.append(metadata.author or '')
      if metadata.date is not None and _as_aware(metadata.date) > date:
        date = _as_aware(metadata.date)
      descriptions.append(metadata.description)
      parents.extend(metadata.parents)
      for (key, values) in metadata.fields.items():
        fields.setdefault(key, []).extend(values)

    if migration_from_rev is not None:
      descriptions.append(
          config.MIGRATED_REVID_TRAILER % (migration_from_rev.rev_id,)
          )
      fields.setdefault(config.MIGRATED_REVID_FIELD, []).append(
          migration_from_rev.rev_id
          )

    return RevisionMetadata(
        ', '.join(ids),
        ', '.join(authors),
        date,
        config.DESCRIPTION_SEPARATOR.join(descriptions),
        parents,
        fields,
        )


def _as_aware(date):
  """Treat naive datetimes as UTC, so that they can be compared."""

  if date.tzinfo is None:
    return date.replace(tzinfo=timezone.utc)
  return date
