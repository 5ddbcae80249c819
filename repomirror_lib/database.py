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


"""This module contains the equivalence database.

The database records two kinds of facts:

- Equivalences, pairs of revisions in different repositories that are
  known to hold the same content (modulo translation).

- SubmittedMigrations, records that a set of revisions was migrated
  into another repository and produced a particular revision there.

The database is append-only.  It is kept in memory and persisted as a
single JSON document, which looks like this:

    {
      "equivalences": [
        {"rev1": {"repository_name": "internal", "rev_id": "1"},
         "rev2": {"repository_name": "public", "rev_id": "a1b2"}}
      ],
      "migrations": [
        {"from_revisions": [{"repository_name": "internal", "rev_id": "2"}],
         "to_revision": {"repository_name": "public", "rev_id": "c3d4"}}
      ]
    }

When reading, the camel-case field names of older databases ('revId',
'repositoryName', 'fromRevision', 'toRevision') and a single
'from_revision' are accepted as well."""


import os

from repomirror_lib import config
from repomirror_lib.common import MalformedDatabaseError
from repomirror_lib.log import logger
from repomirror_lib.serializer import JSONSerializer
from repomirror_lib.revision import Revision
from repomirror_lib.equivalence import Equivalence
from repomirror_lib.equivalence import SubmittedMigration


class EquivalenceDatabase(object):
  """The set of known equivalences and submitted migrations.

  LOCATION is the filename to which write() saves the database.  If it
  is None, the database lives only in memory and write() does
  nothing."""

  def __init__(self, location=None, serializer=None):
    self.location = location
    if serializer is None:
      serializer = JSONSerializer()
    self.serializer = serializer

    # Lists of Equivalences and SubmittedMigrations in the order in
    # which they were noted, with sets of the same objects for quick
    # membership tests:
    self._equivalences = []
    self._equivalence_set = set()
    self._migrations = []
    self._migration_set = set()

  def note_equivalence(self, equivalence):
    """Record EQUIVALENCE.  Return True iff it was not known before.

    Equivalence is symmetric, so noting Equivalence(b, a) after
    Equivalence(a, b) has no effect."""

    if equivalence in self._equivalence_set:
      return False
    self._equivalence_set.add(equivalence)
    self._equivalences.append(equivalence)
    return True

  def find_equivalences(self, revision, other_repository):
    """Return the set of revisions in OTHER_REPOSITORY equivalent to REVISION.

    It doesn't matter in which orientation the equivalences were
    noted."""

    retval = set()
    for equivalence in self._equivalences:
      other = equivalence.get_other_revision(revision)
      if other is not None and other.repository_name == other_repository:
        retval.add(other)
    return retval

  def find_latest_equivalence(self, revision, other_repository):
    """Return the revision most recently noted as equivalent to REVISION.

    Only revisions in OTHER_REPOSITORY are considered.  Return None if
    there is no such revision."""

    for equivalence in reversed(self._equivalences):
      other = equivalence.get_other_revision(revision)
      if other is not None and other.repository_name == other_repository:
        return other
    return None

  def has_equivalence(self, equivalence):
    return equivalence in self._equivalence_set

  def note_migration(self, migration):
    """Record the SubmittedMigration MIGRATION.

    Return True iff it was not already recorded.  Noting the same
    migration again is harmless."""

    if migration in self._migration_set:
      return False
    self._migration_set.add(migration)
    self._migrations.append(migration)
    return True

  def has_migration(self, migration):
    return migration in self._migration_set

  def equivalences(self):
    """Return a list of all equivalences, in the order they were noted."""

    return list(self._equivalences)

  def migrations(self):
    """Return a list of all migrations, in the order they were noted."""

    return list(self._migrations)

  def to_data(self):
    """Return the contents of this database as plain (JSON-able) data."""

    return {
        'equivalences' : [
            {
                'rev1' : _revision_to_data(equivalence.rev1),
                'rev2' : _revision_to_data(equivalence.rev2),
                }
            for equivalence in self._equivalences
            ],
        'migrations' : [
            {
                'from_revisions' : [
                    _revision_to_data(revision)
                    for revision in migration.from_revisions
                    ],
                'to_revision' : _revision_to_data(migration.to_revision),
                }
            for migration in self._migrations
            ],
        }

  def write(self):
    """Save this database to self.location (if it has one)."""

    if self.location is None:
      logger.verbose('Not writing in-memory database')
      return
    self.write_to_location(self.location)

  def write_to_location(self, filename):
    """Save this database to FILENAME, replacing any existing file.

    The data are written to a temporary file first and then moved into
    place, so that an interrupted write leaves the old database
    intact."""

    tmp_filename = '%s.tmp' % (filename,)
    f = open(tmp_filename, 'w')
    try:
      self.serializer.dumpf(f, self.to_data())
    finally:
      f.close()
    os.replace(tmp_filename, filename)
    logger.verbose(
        'Wrote database with %d equivalences and %d migrations to %s'
        % (len(self._equivalences), len(self._migrations), filename,))

  def __repr__(self):
    return 'EquivalenceDatabase(%r)' % (self.location,)


def _revision_to_data(revision):
  return {
      'rev_id' : revision.rev_id,
      'repository_name' : revision.repository_name,
      }


def _get_field(data, *names):
  """Return the value of the first of NAMES that is a key in DATA.

  Raise KeyError if none of them is."""

  for name in names:
    if name in data:
      return data[name]
  raise KeyError(names[0])


def _revision_from_data(data):
  rev_id = _get_field(data, 'rev_id', 'revId')
  repository_name = _get_field(data, 'repository_name', 'repositoryName')
  if not isinstance(repository_name, str) \
         or not isinstance(rev_id, (str, int)):
    raise TypeError('Revision fields must be strings: %r' % (data,))
  return Revision(rev_id, repository_name)


def _migration_from_data(data):
  try:
    from_revisions = [
        _revision_from_data(d)
        for d in _get_field(data, 'from_revisions', 'fromRevisions')
        ]
  except KeyError:
    from_revisions = [
        _revision_from_data(_get_field(data, 'from_revision', 'fromRevision'))
        ]
  to_revision = _revision_from_data(
      _get_field(data, 'to_revision', 'toRevision')
      )
  return SubmittedMigration(from_revisions, to_revision)


def parse_database(text, location=None, serializer=None):
  """Return an EquivalenceDatabase parsed from TEXT.

  LOCATION is the filename the text came from, which is also where the
  returned database will be written.  Raise MalformedDatabaseError if
  TEXT is not a valid database."""

  if serializer is None:
    serializer = JSONSerializer()
  db = EquivalenceDatabase(location, serializer)
  try:
    data = serializer.loads(text)
    if not isinstance(data, dict):
      raise TypeError('Top-level value must be an object')
    for d in data.get('equivalences') or []:
      db.note_equivalence(
          Equivalence(
              _revision_from_data(d['rev1']), _revision_from_data(d['rev2'])
              )
          )
    for d in data.get('migrations') or []:
      db.note_migration(_migration_from_data(d))
  except (ValueError, KeyError, TypeError, AttributeError) as e:
    raise MalformedDatabaseError(
        'Could not parse database %s: %s' % (location or '(text)', e,)
        )
  return db


def load_database(location):
  """Return the EquivalenceDatabase stored at LOCATION.

  The location 'dummy' (or 'dummy:anything') selects a database that
  lives only in memory.  A file that does not exist yet yields an
  empty database, which will be created by the first write()."""

  if location == config.DUMMY_DATABASE_LOCATION \
         or location.startswith(config.DUMMY_DATABASE_LOCATION + ':'):
    logger.verbose('Using an in-memory database')
    return EquivalenceDatabase(None)

  if not os.path.exists(location):
    logger.verbose('Database %s does not exist yet; starting empty' % (location,))
    return EquivalenceDatabase(location)

  f = open(location, 'r')
  try:
    text = f.read()
  finally:
    f.close()
  return parse_database(text, location)
