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


"""Tests of bookkeeping and of performing migrations, end to end.

The repositories of these tests are dummy repositories, so that the
whole cycle (migrate, bookkeep, migrate again) runs in memory."""

import sys
import os
import shutil
import tempfile
import unittest

SRCPATH = os.path.normpath(os.path.join(os.path.dirname(__file__), '..', '..'))
sys.path.insert(0, SRCPATH)

from repomirror_lib import config
from repomirror_lib.common import UnknownMigrationError
from repomirror_lib.context import Context
from repomirror_lib.revision import Revision
from repomirror_lib.revision import RevisionMetadata
from repomirror_lib.equivalence import Equivalence
from repomirror_lib.equivalence import SubmittedMigration
from repomirror_lib.database import EquivalenceDatabase
from repomirror_lib.project_config import ProjectConfig
from repomirror_lib.project_config import ProjectContext
from repomirror_lib.bookkeeper import get_migrated_rev_id
from repomirror_lib.bookkeeper import Bookkeeper
from repomirror_lib.directives import get_translator
from repomirror_lib.directives import perform_migrations


def internal(rev_id):
  return Revision(rev_id, 'internal')


def public(rev_id):
  return Revision(rev_id, 'public')


def make_project_data(internal_commits, public_commits):
  return {
      'name' : 'foo',
      'database_uri' : 'dummy',
      'repositories' : {
          'internal' : {
              'type' : 'dummy',
              'project_space' : 'internal',
              'commits' : internal_commits,
              },
          'public' : {
              'type' : 'dummy',
              'commits' : public_commits,
              },
          },
      'translators' : [
          {
              'from_project_space' : 'internal',
              'to_project_space' : 'public',
              'steps' : [
                  {
                      'name' : 'rename_step',
                      'editor' : {
                          'type' : 'renamer',
                          'mappings' : {'internal/' : 'public/'},
                          },
                      },
                  ],
              },
          {
              'from_project_space' : 'public',
              'to_project_space' : 'internal',
              'inverse' : True,
              },
          ],
      'migrations' : [
          {
              'name' : 'publish',
              'from_repository' : 'internal',
              'to_repository' : 'public',
              },
          {
              'name' : 'import',
              'from_repository' : 'public',
              'to_repository' : 'internal',
              },
          ],
      }


class GetMigratedRevIdTestCase(unittest.TestCase):
  def metadata(self, description):
    return RevisionMetadata('x', None, None, description, [])

  def test_trailer(self):
    self.assertEqual(
        get_migrated_rev_id(
            self.metadata(
                'Fix it\n\n' + config.MIGRATED_REVID_TRAILER % ('1234',)
                )
            ),
        '1234',
        )

  def test_no_trailer(self):
    self.assertEqual(get_migrated_rev_id(self.metadata('Fix it')), None)

  def test_empty_trailer(self):
    self.assertEqual(
        get_migrated_rev_id(
            self.metadata('%s=\n' % (config.MIGRATED_REVID_FIELD,))
            ),
        None,
        )


class EndToEndTestCaseBase(unittest.TestCase):
  def setUp(self):
    self.tmpdir = tempfile.mkdtemp(prefix='bookkeeper_test_')
    self.addCleanup(shutil.rmtree, self.tmpdir)
    self.context = Context(self.tmpdir)
    self.db = EquivalenceDatabase()

  def make_project_context(self, internal_commits, public_commits):
    return ProjectContext(
        ProjectConfig.from_data(
            make_project_data(internal_commits, public_commits)
            ),
        self.context,
        )

  def get_data(self, project_context, repository_name):
    return project_context.get_repository(repository_name).history.data


class PublishTestCase(EndToEndTestCaseBase):
  def setUp(self):
    EndToEndTestCaseBase.setUp(self)
    self.project_context = self.make_project_context(
        [
            {
                'id' : '1', 'description' : 'Initial',
                'files' : {'internal/a' : 'x\n'},
                },
            {
                'id' : '2', 'description' : 'Change a',
                'author' : 'dev <dev@example.com>',
                'files' : {'internal/a' : 'y\n'},
                },
            ],
        [{'id' : 'p1', 'files' : {'public/a' : 'x\n'}}],
        )
    self.db.note_equivalence(Equivalence(internal('1'), public('p1')))

  def test_get_translator(self):
    translator = get_translator(self.project_context, 'internal', 'public')
    self.assertEqual(translator.to_project_space, 'public')
    self.assertEqual(
        get_translator(self.project_context, 'internal', 'internal'), None
        )

  def test_publish(self):
    drafts = perform_migrations(self.project_context, self.db, ['publish'])
    self.assertEqual(len(drafts), 1)
    self.assertEqual(drafts[0].revision, public('migrated_2'))

    public_data = self.get_data(self.project_context, 'public')
    commit = public_data.get_commit('migrated_2')
    self.assertEqual(commit.parent_ids, ['p1'])
    self.assertEqual(commit.files, {'public/a' : b'y\n'})
    self.assertEqual(commit.author, 'dev <dev@example.com>')
    self.assertTrue(commit.description.startswith('Change a'))
    self.assertEqual(
        get_migrated_rev_id(
            RevisionMetadata('x', None, None, commit.description, [])
            ),
        '2',
        )
    self.assertEqual(
        self.db.migrations(),
        [SubmittedMigration([internal('2')], public('migrated_2'))],
        )

  def test_publish_bookkeep_publish(self):
    perform_migrations(self.project_context, self.db, ['publish'])

    self.assertEqual(Bookkeeper(self.project_context, self.db).bookkeep(), 0)
    self.assertTrue(
        self.db.has_equivalence(
            Equivalence(internal('2'), public('migrated_2'))
            )
        )

    # Everything has been migrated now:
    self.assertEqual(
        perform_migrations(self.project_context, self.db, ['publish']), []
        )
    self.assertEqual(len(self.get_data(self.project_context, 'public')), 2)

  def test_skip_revision(self):
    drafts = perform_migrations(
        self.project_context, self.db, ['publish'], ['internal{2}']
        )
    self.assertEqual(drafts, [])
    self.assertEqual(len(self.get_data(self.project_context, 'public')), 1)
    self.assertEqual(self.db.migrations(), [])

  def test_unknown_migration(self):
    self.assertRaises(
        UnknownMigrationError,
        perform_migrations, self.project_context, self.db, ['nonesuch'],
        )


class ImportTestCase(EndToEndTestCaseBase):
  def test_import(self):
    project_context = self.make_project_context(
        [{'id' : '1', 'files' : {'internal/a' : 'x\n'}}],
        [
            {'id' : 'p1', 'files' : {'public/a' : 'x\n'}},
            {
                'id' : 'p2', 'description' : 'Contribution',
                'files' : {'public/a' : 'x\n', 'public/new' : 'n\n'},
                },
            ],
        )
    self.db.note_equivalence(Equivalence(internal('1'), public('p1')))

    drafts = perform_migrations(project_context, self.db, ['import'])
    self.assertEqual(
        [draft.revision for draft in drafts], [internal('migrated_2')]
        )
    commit = self.get_data(project_context, 'internal').get_commit(
        'migrated_2'
        )
    self.assertEqual(commit.parent_ids, ['1'])
    self.assertEqual(
        commit.files, {'internal/a' : b'x\n', 'internal/new' : b'n\n'}
        )

    # The heads are now equivalent:
    Bookkeeper(project_context, self.db).bookkeep()
    self.assertTrue(
        self.db.has_equivalence(
            Equivalence(public('p2'), internal('migrated_2'))
            )
        )


class BookkeepingTestCase(EndToEndTestCaseBase):
  def make_standard_project_context(self, migrated_files):
    return self.make_project_context(
        [
            {'id' : '1', 'files' : {'internal/a' : 'x\n'}},
            {'id' : '2', 'files' : {'internal/a' : 'y\n'}},
            ],
        [
            {'id' : 'p1', 'files' : {'public/a' : 'x\n'}},
            {
                'id' : 'p2',
                'description' : (
                    'Change a\n\n' + config.MIGRATED_REVID_TRAILER % ('2',)
                    ),
                'files' : migrated_files,
                },
            {
                'id' : 'p3', 'description' : 'Public-only change',
                'files' : dict(migrated_files, **{'public/b' : 'z\n'}),
                },
            ],
        )

  def test_heads_equivalent(self):
    project_context = self.make_project_context(
        [{'id' : '1', 'files' : {'internal/a' : 'x\n'}}],
        [{'id' : 'p1', 'files' : {'public/a' : 'x\n'}}],
        )
    bookkeeper = Bookkeeper(project_context, self.db)
    self.assertEqual(bookkeeper.bookkeep(), 0)
    self.assertEqual(
        self.db.equivalences(), [Equivalence(internal('1'), public('p1'))]
        )

  def test_heads_different(self):
    project_context = self.make_project_context(
        [{'id' : '1', 'files' : {'internal/a' : 'x\n'}}],
        [{'id' : 'p1', 'files' : {'public/a' : 'other\n'}}],
        )
    Bookkeeper(project_context, self.db).bookkeep()
    self.assertEqual(self.db.equivalences(), [])

  def test_completed_migration(self):
    project_context = self.make_standard_project_context({'public/a' : 'y\n'})
    self.db.note_equivalence(Equivalence(internal('1'), public('p1')))

    Bookkeeper(project_context, self.db).bookkeep()
    self.assertTrue(
        self.db.has_migration(SubmittedMigration([internal('2')], public('p2')))
        )
    self.assertTrue(
        self.db.has_equivalence(Equivalence(internal('2'), public('p2')))
        )
    self.assertFalse(
        self.db.has_equivalence(Equivalence(internal('2'), public('p3')))
        )

  def test_completed_migration_metadata_read_once(self):
    project_context = self.make_standard_project_context({'public/a' : 'y\n'})
    self.db.note_equivalence(Equivalence(internal('1'), public('p1')))

    # A history that can only be asked once for each revision:
    history = project_context.get_repository('public').history
    get_metadata = history.get_metadata
    served = set()
    def get_metadata_once(revision):
      if revision in served:
        return None
      served.add(revision)
      return get_metadata(revision)
    history.get_metadata = get_metadata_once

    Bookkeeper(project_context, self.db).note_completed_migrations(
        'internal', 'public', False
        )
    self.assertTrue(
        self.db.has_migration(SubmittedMigration([internal('2')], public('p2')))
        )

  def test_completed_migration_not_equivalent(self):
    project_context = self.make_standard_project_context(
        {'public/a' : 'edited after review\n'}
        )
    self.db.note_equivalence(Equivalence(internal('1'), public('p1')))

    Bookkeeper(project_context, self.db).bookkeep()
    self.assertTrue(
        self.db.has_migration(SubmittedMigration([internal('2')], public('p2')))
        )
    self.assertEqual(
        self.db.equivalences(), [Equivalence(internal('1'), public('p1'))]
        )

  def test_already_recorded_migration(self):
    project_context = self.make_standard_project_context(
        {'public/a' : 'edited after review\n'}
        )
    migration = SubmittedMigration([internal('2')], public('p2'))
    self.db.note_migration(migration)
    bookkeeper = Bookkeeper(project_context, self.db)
    self.assertEqual(bookkeeper.process_migration(migration, False), None)
    self.assertEqual(self.db.migrations(), [migration])

  def test_is_inverse(self):
    project_context = self.make_standard_project_context({'public/a' : 'y\n'})
    bookkeeper = Bookkeeper(project_context, self.db)
    self.assertFalse(
        bookkeeper._is_inverse(project_context.get_migration_config('publish'))
        )
    self.assertTrue(
        bookkeeper._is_inverse(project_context.get_migration_config('import'))
        )

  def test_determine_equivalence(self):
    project_context = self.make_standard_project_context({'public/a' : 'y\n'})
    bookkeeper = Bookkeeper(project_context, self.db)
    self.assertEqual(
        bookkeeper.determine_equivalence(internal('2'), public('p2')),
        Equivalence(internal('2'), public('p2')),
        )
    self.assertEqual(
        bookkeeper.determine_equivalence(internal('1'), public('p2')), None
        )


if __name__ == '__main__':
  unittest.main()
