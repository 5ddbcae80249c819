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


"""Editors: single steps that transform a codebase.

An Editor turns one codebase into another (renaming files, scrubbing
content, running a shell command).  Editors that can be undone are
also InverseEditors: their inverse_edit() takes a codebase in the
edited shape and, with the help of reference codebases, brings it
back into the unedited shape.

Editors never modify their input; each edit produces a new codebase in
a fresh temporary directory."""


import os
import re

from repomirror_lib import config
from repomirror_lib.common import FatalError
from repomirror_lib.common import CommandError
from repomirror_lib.common import InvalidProjectError
from repomirror_lib.codebase import Codebase
from repomirror_lib.codebase import copy_file
from repomirror_lib.codebase import copy_codebase_files
from repomirror_lib.codebase_merger import CodebaseMerger


class Editor(object):
  """Transform a codebase into a new codebase."""

  def __init__(self, name):
    self.name = name

  def get_description(self):
    raise NotImplementedError()

  def edit(self, codebase, options):
    """Return a new Codebase that is CODEBASE, edited.

    OPTIONS is a dict of options for this edit; most editors ignore
    it."""

    raise NotImplementedError()

  def __str__(self):
    return self.get_description()


class InverseEditor(object):
  """Undo an edit by consulting reference codebases.

  The reference from-codebase is in the edited shape; the reference
  to-codebase is the corresponding codebase in the unedited shape.
  inverse_edit() applies to the reference to-codebase whatever changes
  lead from the reference from-codebase to INPUT."""

  def inverse_edit(self, input, reference_from, reference_to, options):
    raise NotImplementedError()


class IdentityEditor(Editor, InverseEditor):
  """An editor that changes nothing."""

  def get_description(self):
    return 'identity step %s' % (self.name,)

  def edit(self, codebase, options):
    return codebase

  def inverse_edit(self, input, reference_from, reference_to, options):
    return input.copy_with_project_space(reference_to.project_space)


class ShellEditor(Editor):
  """Run a shell command in a copy of the codebase.

  The command string may be a compound command like 'cmd1 && cmd2'; it
  is run by bash with the copy as its working directory."""

  def __init__(self, name, context, command_string):
    Editor.__init__(self, name)
    self.context = context
    self.command_string = command_string

  def get_description(self):
    return 'shell step %s' % (self.name,)

  def edit(self, codebase, options):
    tmp_dir = self.context.get_temporary_directory('shell_run_')
    copy_codebase_files(codebase, tmp_dir)
    try:
      self.context.command_runner.run(
          config.SHELL_EXECUTABLE, ['-c', self.command_string], cwd=tmp_dir
          )
    except CommandError as e:
      raise FatalError(
          'Shell editor %s failed on %s:\n%s' % (self.name, codebase, e,)
          )
    return Codebase(tmp_dir, codebase.project_space, codebase.expression)


class RenamingEditor(Editor, InverseEditor):
  """Reorganize the files of a codebase.

  MAPPINGS is a list of (pattern, replacement) pairs.  Each file is
  renamed by the first mapping whose pattern occurs in its relative
  path; the first occurrence is replaced.  Unless USE_REGEX is true,
  patterns are literal strings.  Every file must be covered by some
  mapping."""

  def __init__(self, name, context, mappings, use_regex=False):
    Editor.__init__(self, name)
    self.context = context
    self.use_regex = use_regex
    self.mappings = []
    for (pattern, replacement) in mappings:
      if use_regex:
        self.mappings.append((re.compile(pattern), replacement,))
      else:
        self.mappings.append(
            (re.compile(re.escape(pattern)), replacement.replace('\\', '\\\\'),)
            )

  def get_description(self):
    return 'rename step %s' % (self.name,)

  def rename_file(self, filename):
    """Return the new relative name for the relative path FILENAME.

    Raise FatalError if no mapping applies."""

    for (regexp, replacement) in self.mappings:
      if regexp.search(filename):
        renamed = regexp.sub(replacement, filename, count=1)
        # A rule 'dir' -> '' maps 'dir/file' to '/file':
        return renamed.lstrip('/')
    raise FatalError(
        'Cannot find a rename mapping that covers file %s. '
        'Every file needs an applicable renaming rule.' % (filename,)
        )

  def edit(self, codebase, options):
    tmp_dir = self.context.get_temporary_directory('rename_run_')
    for filename in sorted(codebase.relative_filenames()):
      copy_file(
          codebase.get_file(filename),
          os.path.join(tmp_dir, *self.rename_file(filename).split('/')),
          )
    return Codebase(tmp_dir, codebase.project_space, codebase.expression)

  def _make_renamed_to_reference_map(self, reference_filenames):
    """Return a map {renamed path : reference path}.

    Each file of the reference codebase is renamed, and a mapping is
    made for the file and for each of its directory prefixes, as far as
    both paths go.  For example, renaming a/b/c/file to x/y/file gives
    mappings x/y/file -> a/b/c/file, x/y -> a/b/c and x -> a/b."""

    path_map = {}
    for reference_filename in sorted(reference_filenames):
      renamed_parts = self.rename_file(reference_filename).split('/')
      reference_parts = reference_filename.split('/')
      while renamed_parts and reference_parts:
        path_map['/'.join(renamed_parts)] = '/'.join(reference_parts)
        del renamed_parts[-1]
        del reference_parts[-1]
    return path_map

  def inverse_rename(self, renamed_filename, renamed_to_reference_map):
    """Return the inverse-renamed path of RENAMED_FILENAME.

    The longest directory prefix with an entry in
    RENAMED_TO_REFERENCE_MAP is substituted.  If there is none, the
    path is returned unchanged."""

    parts = renamed_filename.split('/')
    for i in range(len(parts), 0, -1):
      prefix = '/'.join(parts[:i])
      substitute = renamed_to_reference_map.get(prefix)
      if substitute is not None:
        return '/'.join([substitute] + parts[i:])
    return renamed_filename

  def inverse_edit(self, input, reference_from, reference_to, options):
    tmp_dir = self.context.get_temporary_directory('inverse_rename_run_')
    renamed_to_reference_map = self._make_renamed_to_reference_map(
        reference_to.relative_filenames()
        )
    for filename in sorted(input.relative_filenames()):
      copy_file(
          input.get_file(filename),
          os.path.join(
              tmp_dir,
              *self.inverse_rename(filename, renamed_to_reference_map).split('/')
              ),
          )
    return Codebase(tmp_dir, reference_to.project_space, reference_to.expression)


class InverseRenamingEditor(InverseEditor):
  """The inverse of a RenamingEditor, usable where an InverseEditor is needed."""

  def __init__(self, renamer):
    self.renamer = renamer
    self.name = renamer.name

  def inverse_edit(self, input, reference_from, reference_to, options):
    return self.renamer.inverse_edit(input, reference_from, reference_to, options)


class ScrubbingEditor(Editor):
  """Remove confidential material from a codebase.

  Files whose relative path matches IGNORE_FILES_RE are dropped, and
  lines matching any of SENSITIVE_RES are removed from the remaining
  files.  Scrubbing loses information; its inverse is a merge (see
  InverseMergingEditor)."""

  def __init__(self, name, context, ignore_files_re=None, sensitive_res=()):
    Editor.__init__(self, name)
    self.context = context
    if ignore_files_re:
      self.ignore_files_re = re.compile(ignore_files_re)
    else:
      self.ignore_files_re = None
    self.sensitive_res = [
        re.compile(s.encode('utf-8')) for s in sensitive_res
        ]

  def get_description(self):
    return 'scrub step %s' % (self.name,)

  def _scrub_file(self, src, dest):
    copy_file(src, dest)
    if not self.sensitive_res:
      return
    f = open(src, 'rb')
    try:
      lines = f.read().split(b'\n')
    finally:
      f.close()
    kept = [
        line for line in lines
        if not any(regexp.search(line) for regexp in self.sensitive_res)
        ]
    if len(kept) != len(lines):
      f = open(dest, 'wb')
      try:
        f.write(b'\n'.join(kept))
      finally:
        f.close()

  def edit(self, codebase, options):
    tmp_dir = self.context.get_temporary_directory('scrub_run_')
    for filename in sorted(codebase.relative_filenames()):
      if self.ignore_files_re is not None \
             and self.ignore_files_re.search(filename):
        continue
      self._scrub_file(
          codebase.get_file(filename),
          os.path.join(tmp_dir, *filename.split('/')),
          )
    return Codebase(tmp_dir, codebase.project_space, codebase.expression)


class InverseMergingEditor(InverseEditor):
  """Undo a lossy edit by merging.

  Say internal(x) is translated to public(y) by scrubbing, and public
  has since moved on to public(y+1).  Merging the change
  public(y)->public(y+1) into internal(x) gives internal(x+1): the new
  public change plus the content that scrubbing removed.  Here
  public(y) is the reference from-codebase and internal(x) the
  reference to-codebase."""

  def __init__(self, name, context):
    self.name = name
    self.context = context

  def inverse_edit(self, input, reference_from, reference_to, options):
    result = CodebaseMerger(
        self.context, reference_from, input, reference_to
        ).merge()
    return result.merged_codebase.copy_with_project_space(
        reference_to.project_space
        )


EDITOR_TYPES = ['identity', 'shell', 'renamer', 'scrubber']


def _get_mappings(name, editor_config):
  mappings = editor_config.get('mappings')
  if not isinstance(mappings, dict) or not mappings:
    raise InvalidProjectError(
        'No mappings object found in the config for editor %s' % (name,)
        )
  return list(mappings.items())


def make_editor(name, editor_config, context):
  """Return the Editor described by the dict EDITOR_CONFIG."""

  editor_type = editor_config.get('type')
  if editor_type == 'identity':
    return IdentityEditor(name)
  elif editor_type == 'shell':
    command_string = editor_config.get('command_string')
    if not command_string:
      raise InvalidProjectError(
          'Missing command_string in shell editor %s' % (name,)
          )
    return ShellEditor(name, context, command_string)
  elif editor_type == 'renamer':
    return RenamingEditor(
        name, context, _get_mappings(name, editor_config),
        bool(editor_config.get('use_regex', False)),
        )
  elif editor_type == 'scrubber':
    return ScrubbingEditor(
        name, context,
        editor_config.get('ignore_files_re'),
        editor_config.get('sensitive_res', []),
        )
  else:
    raise InvalidProjectError(
        'Invalid editor type "%s" for editor %s' % (editor_type, name,)
        )


def make_inverse_editor(name, editor_config, context):
  """Return the InverseEditor undoing the editor described by EDITOR_CONFIG."""

  editor_type = editor_config.get('type')
  if editor_type == 'identity':
    return IdentityEditor(name)
  elif editor_type == 'renamer':
    return InverseRenamingEditor(make_editor(name, editor_config, context))
  elif editor_type == 'scrubber':
    return InverseMergingEditor(name, context)
  elif editor_type in EDITOR_TYPES:
    raise InvalidProjectError(
        'Non-invertible editor type "%s" for editor %s' % (editor_type, name,)
        )
  else:
    raise InvalidProjectError(
        'Invalid editor type "%s" for editor %s' % (editor_type, name,)
        )
