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


"""Unit tests of the Revision and RevisionMetadata classes."""

import sys
import os
import unittest
from datetime import datetime
from datetime import timezone

SRCPATH = os.path.normpath(os.path.join(os.path.dirname(__file__), '..', '..'))
sys.path.insert(0, SRCPATH)

from repomirror_lib import config
from repomirror_lib.common import ParseError
from repomirror_lib.revision import Revision
from repomirror_lib.revision import RevisionMetadata
from repomirror_lib.revision import parse_revision
from repomirror_lib.revision import parse_fields


def date(day):
  return datetime(2012, 7, day, 12, 0, 0, tzinfo=timezone.utc)


class RevisionTestCase(unittest.TestCase):
  def test_value_semantics(self):
    self.assertEqual(Revision('1', 'internal'), Revision('1', 'internal'))
    self.assertNotEqual(Revision('1', 'internal'), Revision('1', 'public'))
    self.assertNotEqual(Revision('1', 'internal'), Revision('2', 'internal'))
    self.assertEqual(
        len(set([Revision('1', 'internal'), Revision('1', 'internal')])), 1
        )

  def test_rev_id_is_a_string(self):
    self.assertEqual(Revision(7, 'internal').rev_id, '7')

  def test_str(self):
    self.assertEqual(str(Revision('abc', 'public')), 'public{abc}')

  def test_parse_revision(self):
    self.assertEqual(parse_revision('public{abc}'), Revision('abc', 'public'))
    self.assertEqual(
        parse_revision(' internal{12} '), Revision('12', 'internal')
        )

  def test_parse_bad_revision(self):
    for s in ['public', 'public{}', '{abc}', 'public{a}b', 'a b{c}']:
      self.assertRaises(ParseError, parse_revision, s)


class FieldsTestCase(unittest.TestCase):
  def test_parse_fields(self):
    fields = parse_fields(
        'Fix the frobnicator\n'
        '\n'
        'BUG=1234\n'
        'BUG=5678\n'
        'R=somebody\n'
        'not a field = here\n'
        )
    self.assertEqual(fields, {'BUG' : ['1234', '5678'], 'R' : ['somebody']})

  def test_metadata_fields(self):
    metadata = RevisionMetadata('1', 'a', date(1), 'x\nKEY=value', [])
    self.assertEqual(metadata.fields, {'KEY' : ['value']})


class ConcatenateTestCase(unittest.TestCase):
  def setUp(self):
    self.m1 = RevisionMetadata(
        '1', 'alice', date(3), 'first\nBUG=1',
        [Revision('0', 'internal')],
        )
    self.m2 = RevisionMetadata(
        '2', 'bob', date(1), 'second', [Revision('1', 'internal')],
        )

  def test_concatenate(self):
    result = RevisionMetadata.concatenate([self.m1, self.m2])
    self.assertEqual(result.id, '1, 2')
    self.assertEqual(result.author, 'alice, bob')
    self.assertEqual(result.date, date(3))
    self.assertEqual(
        result.description,
        'first\nBUG=1' + config.DESCRIPTION_SEPARATOR + 'second',
        )
    self.assertEqual(
        result.parents,
        (Revision('0', 'internal'), Revision('1', 'internal'),),
        )
    self.assertEqual(result.fields, {'BUG' : ['1']})

  def test_concatenate_with_migration_trailer(self):
    result = RevisionMetadata.concatenate(
        [self.m1], Revision('1', 'internal')
        )
    self.assertTrue(
        result.description.endswith(config.MIGRATED_REVID_FIELD + '=1')
        )
    self.assertEqual(result.fields[config.MIGRATED_REVID_FIELD], ['1'])
    # Fields of the input are kept:
    self.assertEqual(result.fields['BUG'], ['1'])

  def test_naive_dates(self):
    naive = RevisionMetadata('3', 'c', datetime(2012, 7, 5), 'third', [])
    result = RevisionMetadata.concatenate([self.m1, naive])
    self.assertEqual(result.date, datetime(2012, 7, 5, tzinfo=timezone.utc))

  def test_concatenate_nothing(self):
    self.assertRaises(ValueError, RevisionMetadata.concatenate, [])

  def test_with_author(self):
    m = self.m1.with_author(None)
    self.assertEqual(m.author, None)
    self.assertEqual(m.description, self.m1.description)
    self.assertEqual(self.m1.author, 'alice')


if __name__ == '__main__':
  unittest.main()
