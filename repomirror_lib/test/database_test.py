#!/usr/bin/env python3
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


"""Unit tests of the equivalence database."""

import sys
import os
import shutil
import tempfile
import unittest

SRCPATH = os.path.normpath(os.path.join(os.path.dirname(__file__), '..', '..'))
sys.path.insert(0, SRCPATH)

from repomirror_lib.common import MalformedDatabaseError
from repomirror_lib.revision import Revision
from repomirror_lib.equivalence import Equivalence
from repomirror_lib.equivalence import SubmittedMigration
from repomirror_lib.database import EquivalenceDatabase
from repomirror_lib.database import parse_database
from repomirror_lib.database import load_database


def internal(rev_id):
  return Revision(rev_id, 'internal')


def public(rev_id):
  return Revision(rev_id, 'public')


class EquivalenceTestCase(unittest.TestCase):
  def test_symmetric(self):
    e1 = Equivalence(internal('1'), public('a'))
    e2 = Equivalence(public('a'), internal('1'))
    self.assertEqual(e1, e2)
    self.assertEqual(hash(e1), hash(e2))

  def test_other_revision(self):
    e = Equivalence(internal('1'), public('a'))
    self.assertEqual(e.get_other_revision(internal('1')), public('a'))
    self.assertEqual(e.get_other_revision(public('a')), internal('1'))
    self.assertEqual(e.get_other_revision(public('b')), None)
    self.assertEqual(e.get_revision_in('public'), public('a'))
    self.assertEqual(e.get_revision_in('elsewhere'), None)

  def test_same_repository(self):
    self.assertRaises(ValueError, Equivalence, internal('1'), internal('2'))

  def test_empty_migration(self):
    self.assertRaises(ValueError, SubmittedMigration, [], public('a'))


class EquivalenceDatabaseTestCase(unittest.TestCase):
  def setUp(self):
    self.db = EquivalenceDatabase()

  def test_lookup_both_orientations(self):
    self.db.note_equivalence(Equivalence(internal('1'), public('a')))
    self.assertEqual(
        self.db.find_equivalences(internal('1'), 'public'), set([public('a')])
        )
    self.assertEqual(
        self.db.find_equivalences(public('a'), 'internal'),
        set([internal('1')]),
        )
    self.assertEqual(self.db.find_equivalences(public('a'), 'other'), set())
    self.assertEqual(self.db.find_equivalences(internal('2'), 'public'), set())

  def test_note_twice(self):
    self.assertTrue(
        self.db.note_equivalence(Equivalence(internal('1'), public('a')))
        )
    self.assertFalse(
        self.db.note_equivalence(Equivalence(public('a'), internal('1')))
        )
    self.assertEqual(len(self.db.equivalences()), 1)

  def test_find_latest_equivalence(self):
    self.db.note_equivalence(Equivalence(internal('1'), public('a')))
    self.db.note_equivalence(Equivalence(public('b'), internal('1')))
    self.assertEqual(
        self.db.find_latest_equivalence(internal('1'), 'public'), public('b')
        )
    self.assertEqual(
        self.db.find_latest_equivalence(internal('9'), 'public'), None
        )

  def test_migrations(self):
    migration = SubmittedMigration([internal('1'), internal('2')], public('a'))
    self.assertTrue(self.db.note_migration(migration))
    self.assertFalse(
        self.db.note_migration(
            SubmittedMigration([internal('1'), internal('2')], public('a'))
            )
        )
    self.assertTrue(self.db.has_migration(migration))
    self.assertEqual(self.db.migrations(), [migration])

  def test_write_without_location(self):
    # Nothing to write to; must not fail.
    self.db.write()


class PersistenceTestCase(unittest.TestCase):
  def setUp(self):
    self.tmpdir = tempfile.mkdtemp(prefix='database_test_')
    self.filename = os.path.join(self.tmpdir, 'db.json')

  def tearDown(self):
    shutil.rmtree(self.tmpdir)

  def test_round_trip(self):
    db = load_database(self.filename)
    self.assertEqual(db.equivalences(), [])
    db.note_equivalence(Equivalence(internal('1'), public('a')))
    db.note_equivalence(Equivalence(internal('2'), public('b')))
    db.note_migration(SubmittedMigration([internal('2')], public('b')))
    db.write()

    db2 = load_database(self.filename)
    self.assertEqual(db2.location, self.filename)
    self.assertEqual(db2.equivalences(), db.equivalences())
    self.assertEqual(db2.migrations(), db.migrations())
    self.assertFalse(os.path.exists(self.filename + '.tmp'))

  def test_dummy_location(self):
    db = load_database('dummy')
    self.assertEqual(db.location, None)
    db.note_equivalence(Equivalence(internal('1'), public('a')))
    db.write()
    self.assertEqual(load_database('dummy').equivalences(), [])


class ParseDatabaseTestCase(unittest.TestCase):
  def test_alternative_names(self):
    db = parse_database("""\
{
  "equivalences": [
    {"rev1": {"revId": "1", "repositoryName": "internal"},
     "rev2": {"revId": "a", "repositoryName": "public"}}
  ],
  "migrations": [
    {"fromRevision": {"revId": "2", "repositoryName": "internal"},
     "toRevision": {"revId": "b", "repositoryName": "public"}}
  ]
}
""")
    self.assertEqual(
        db.find_equivalences(internal('1'), 'public'), set([public('a')])
        )
    self.assertTrue(
        db.has_migration(SubmittedMigration([internal('2')], public('b')))
        )

  def test_empty_document(self):
    db = parse_database('{}')
    self.assertEqual(db.equivalences(), [])
    self.assertEqual(db.migrations(), [])

  def test_malformed(self):
    for text in [
          'not json',
          '[]',
          '{"equivalences": [{"rev1": {"rev_id": "1"}}]}',
          '{"equivalences": [{"rev1": {"rev_id": "1", '
          '"repository_name": "internal"}, "rev2": {"rev_id": "2", '
          '"repository_name": "internal"}}]}',
          '{"migrations": [{"to_revision": {"rev_id": "1", '
          '"repository_name": "public"}}]}',
          ]:
      self.assertRaises(MalformedDatabaseError, parse_database, text)


if __name__ == '__main__':
  unittest.main()
