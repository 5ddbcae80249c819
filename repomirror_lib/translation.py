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


"""Translation pipelines move a codebase from one project space to another.

A ForwardTranslationPipeline applies a list of editors in order.

An InverseTranslationPipeline goes the other way, using the steps of
the forward translation in the opposite direction.  Say the forward
translation from 'internal' to 'public' is renamer, then scrubber, and
internal(x) is equivalent to public(y).  To bring public(y+1) into the
internal project space, first build a stack of forward translations of
the reference codebase internal(x):

    internal(x)                      -- bottom of stack
    internal(x)|renamer
    internal(x)|renamer|scrubber     -- top of stack

Then, for each inverse step, merge the input onto the next element of
the stack, using the element above it as the common base.  The first
(inverse scrubbing) merge is:

            internal(x)|renamer|scrubber == public(y)
               /                                \\
    internal(x)|renamer                      public(y+1)
                    \\                        /
                      internal(x+1)|renamer

and the last (inverse renaming) one is:

            internal(x)|renamer
             /                 \\
      internal(x)      internal(x+1)|renamer
             \\                 /
                internal(x+1)

The codebase at the top of each diamond is the reference
from-codebase; the one on the left is the reference to-codebase."""


from repomirror_lib.common import InternalError
from repomirror_lib.log import logger


class TranslationStep(object):
  """A named forward step: an Editor."""

  def __init__(self, name, editor):
    self.name = name
    self.editor = editor


class InverseTranslationStep(object):
  """A named inverse step: an InverseEditor."""

  def __init__(self, name, inverse_editor):
    self.name = name
    self.inverse_editor = inverse_editor


class TranslationPipeline(object):
  """Translate codebases from FROM_PROJECT_SPACE to TO_PROJECT_SPACE."""

  def __init__(self, from_project_space, to_project_space):
    self.from_project_space = from_project_space
    self.to_project_space = to_project_space

  def translate(self, codebase, options):
    """Return CODEBASE translated into self.to_project_space."""

    raise NotImplementedError()

  def __str__(self):
    return '%s(%s -> %s)' % (
        self.__class__.__name__, self.from_project_space,
        self.to_project_space,
        )


class ForwardTranslationPipeline(TranslationPipeline):
  """Apply a list of TranslationSteps in order."""

  def __init__(self, from_project_space, to_project_space, steps):
    TranslationPipeline.__init__(self, from_project_space, to_project_space)
    self.steps = list(steps)

  def translate(self, codebase, options):
    translated = codebase
    for step in self.steps:
      task = logger.push_task(
          'edit', 'Translating step %s on %s' % (step.name, translated,)
          )
      try:
        translated = step.editor.edit(translated, options)
      finally:
        logger.pop_task(task, translated.path)
    return translated.copy_with_project_space(self.to_project_space)


class InverseTranslationPipeline(TranslationPipeline):
  """Undo a forward translation by merging, step by step.

  FORWARD_STEPS are the steps of the forward translation (from
  TO_PROJECT_SPACE to FROM_PROJECT_SPACE), in their forward order.
  INVERSE_STEPS undo them, in the opposite order; there must be one for
  each forward step.

  translate() requires the option 'reference_to_codebase', a Codebase
  in TO_PROJECT_SPACE that is equivalent (modulo the input's pending
  changes) to the input codebase.  The option 'reference_from_codebase'
  may supply the first reference from-codebase, which is otherwise the
  fully forward-translated reference to-codebase."""

  def __init__(
        self, from_project_space, to_project_space, forward_steps,
        inverse_steps,
        ):
    TranslationPipeline.__init__(self, from_project_space, to_project_space)
    self.forward_steps = list(forward_steps)
    self.inverse_steps = list(inverse_steps)
    if not self.inverse_steps:
      raise InternalError('An inverse translation needs at least one step')
    if len(self.inverse_steps) != len(self.forward_steps):
      raise InternalError(
          'An inverse translation needs one inverse step per forward step'
          )

  def _make_forward_translation_stack(self, reference_to, options):
    """Return a list of REFERENCE_TO and its successive forward edits.

    The last element of the list is the top of the stack."""

    stack = [reference_to]
    task = logger.push_task(
        'ref_to', 'Pushing to forward-translation stack: %s' % (reference_to,)
        )
    logger.pop_task(task, reference_to.path)

    codebase = reference_to
    expression = reference_to.expression
    for step in self.forward_steps:
      expression = '%s|%s' % (expression, step.name,)
      task = logger.push_task(
          'edit', 'Pushing to forward-translation stack: %s' % (expression,)
          )
      try:
        codebase = step.editor.edit(codebase, options).copy_with_expression(
            expression
            )
        stack.append(codebase)
      finally:
        logger.pop_task(task, codebase.path)
    return stack

  def translate(self, codebase, options):
    reference_to = options.get('reference_to_codebase')
    if reference_to is None:
      raise InternalError(
          "Inverse translation requires the option 'reference_to_codebase'"
          )

    stack = self._make_forward_translation_stack(reference_to, options)

    reference_from = stack.pop()
    if options.get('reference_from_codebase') is not None:
      reference_from = options['reference_from_codebase']
    reference_to = stack[-1]

    translated = codebase
    for step in self.inverse_steps:
      task = logger.push_task(
          'inverse_edit',
          'Inverse-translating step %s by merging codebase %s onto %s'
          % (step.name, reference_to, reference_from,))
      try:
        translated = step.inverse_editor.inverse_edit(
            translated, reference_from, reference_to, options
            )
      finally:
        logger.pop_task(task, translated.path)
      reference_from = stack.pop()
      if stack:
        reference_to = stack[-1]

    return translated.copy_with_project_space(self.to_project_space)
