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


"""Unit tests of the forward and inverse translation pipelines."""

import sys
import os
import shutil
import tempfile
import unittest

SRCPATH = os.path.normpath(os.path.join(os.path.dirname(__file__), '..', '..'))
sys.path.insert(0, SRCPATH)

from repomirror_lib.common import InternalError
from repomirror_lib.context import Context
from repomirror_lib.codebase import Codebase
from repomirror_lib.codebase import write_codebase
from repomirror_lib.editors import IdentityEditor
from repomirror_lib.editors import RenamingEditor
from repomirror_lib.editors import InverseRenamingEditor
from repomirror_lib.editors import ScrubbingEditor
from repomirror_lib.editors import InverseMergingEditor
from repomirror_lib.translation import TranslationStep
from repomirror_lib.translation import InverseTranslationStep
from repomirror_lib.translation import ForwardTranslationPipeline
from repomirror_lib.translation import InverseTranslationPipeline

from codebase_merger_test import FakeMergeRunner
from editors_test import read_codebase


class TranslationTestCase(unittest.TestCase):
  def setUp(self):
    self.tmpdir = tempfile.mkdtemp(prefix='translation_test_')
    self.addCleanup(shutil.rmtree, self.tmpdir)
    self.context = Context(os.path.join(self.tmpdir, 'tmp'), FakeMergeRunner())
    self._count = 0

    self.renamer = RenamingEditor(
        'rename', self.context, [('internal/', 'public/')]
        )
    self.scrubber = ScrubbingEditor('scrub', self.context, r'(^|/)secret$')
    self.forward_steps = [
        TranslationStep('rename', self.renamer),
        TranslationStep('scrub', self.scrubber),
        ]

  def make_codebase(self, files, project_space):
    self._count += 1
    path = os.path.join(self.tmpdir, 'codebase%d' % (self._count,))
    os.makedirs(path)
    write_codebase(path, files)
    return Codebase(path, project_space)

  def make_inverse_pipeline(self):
    return InverseTranslationPipeline(
        'public', 'internal', self.forward_steps,
        [
            InverseTranslationStep(
                'inverse_scrub', InverseMergingEditor('scrub', self.context)
                ),
            InverseTranslationStep(
                'inverse_rename', InverseRenamingEditor(self.renamer)
                ),
            ],
        )

  def test_forward(self):
    pipeline = ForwardTranslationPipeline(
        'internal', 'public', self.forward_steps
        )
    result = pipeline.translate(
        self.make_codebase(
            {'internal/a' : 'x\n', 'internal/secret' : 's\n'}, 'internal'
            ),
        {},
        )
    self.assertEqual(read_codebase(result), {'public/a' : b'x\n'})
    self.assertEqual(result.project_space, 'public')

  def test_forward_without_steps(self):
    pipeline = ForwardTranslationPipeline('internal', 'public', [])
    codebase = self.make_codebase({'a' : 'x'}, 'internal')
    result = pipeline.translate(codebase, {})
    self.assertEqual(result.path, codebase.path)
    self.assertEqual(result.project_space, 'public')

  def test_inverse(self):
    reference = self.make_codebase(
        {'internal/a' : 'x\n', 'internal/secret' : 's\n'}, 'internal'
        )
    public_change = self.make_codebase(
        {'public/a' : 'y\n', 'public/new' : 'n\n'}, 'public'
        )
    result = self.make_inverse_pipeline().translate(
        public_change, {'reference_to_codebase' : reference}
        )
    # The public change is applied, and the scrubbed file comes back:
    self.assertEqual(
        read_codebase(result),
        {
            'internal/a' : b'y\n',
            'internal/new' : b'n\n',
            'internal/secret' : b's\n',
            },
        )
    self.assertEqual(result.project_space, 'internal')

  def test_inverse_deletion(self):
    reference = self.make_codebase(
        {'internal/a' : 'x\n', 'internal/b' : 'b\n'}, 'internal'
        )
    public_change = self.make_codebase({'public/a' : 'x\n'}, 'public')
    result = self.make_inverse_pipeline().translate(
        public_change, {'reference_to_codebase' : reference}
        )
    self.assertEqual(read_codebase(result), {'internal/a' : b'x\n'})

  def test_inverse_requires_reference(self):
    public_change = self.make_codebase({'public/a' : 'y\n'}, 'public')
    self.assertRaises(
        InternalError,
        self.make_inverse_pipeline().translate, public_change, {},
        )

  def test_inverse_needs_steps(self):
    self.assertRaises(
        InternalError, InverseTranslationPipeline, 'public', 'internal', [], []
        )
    self.assertRaises(
        InternalError,
        InverseTranslationPipeline, 'public', 'internal', self.forward_steps,
        [InverseTranslationStep('inverse_id', IdentityEditor('id'))],
        )


if __name__ == '__main__':
  unittest.main()
