# (Be in -*- python -*- mode.)
#
# ====================================================================
# Copyright (c) 2000-2008 CollabNet.  All rights reserved.
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

"""This module contains a simple logging facility for repomirror."""


import sys
import time


class Task(object):
  """A unit of reportable work, opened by push_task()."""

  def __init__(self, name, description, depth):
    self.name = name
    self.description = description
    self.depth = depth
    self.start_time = time.time()

  def __repr__(self):
    return '<Task %s: %s>' % (self.name, self.description,)


class _Log:
  """A Simple logging facility.

  If self.log_level is DEBUG or higher, each line will be timestamped
  with the number of wall-clock seconds since the time when this
  module was first imported.

  Messages written while a task is open are indented by the depth of
  the task stack, so that the output of nested operations (a migration
  inside a directive, an inverse-translation step inside a migration)
  reads as a tree."""

  # These constants represent the log levels that this class supports.
  # The increase_verbosity() and decrease_verbosity() methods rely on
  # these constants being consecutive integers:
  ERROR = -2
  WARN = -1
  QUIET = 0
  NORMAL = 1
  VERBOSE = 2
  DEBUG = 3

  start_time = time.time()

  def __init__(self):
    self.log_level = _Log.NORMAL

    # The output file to use for errors:
    self._err = sys.stderr

    # The output file to use for lower-priority messages.  We also
    # write these to stderr so that directive output (e.g., a list of
    # revisions) can be written to stdout without being contaminated
    # with progress messages:
    self._out = sys.stderr

    # The stack of open Tasks:
    self._tasks = []

  def increase_verbosity(self):
    self.log_level = min(self.log_level + 1, _Log.DEBUG)

  def decrease_verbosity(self):
    self.log_level = max(self.log_level - 1, _Log.ERROR)

  def is_on(self, level):
    """Return True iff messages at the specified LEVEL are currently on.

    LEVEL should be one of the constants _Log.WARN, _Log.QUIET, etc."""

    return self.log_level >= level

  def _timestamp(self):
    """Return a timestamp if needed, as a string with a trailing space."""

    if self.log_level >= _Log.DEBUG:
      return '%f: ' % (time.time() - self.start_time,)
    return ''

  def _write(self, out, *args):
    """Write a message to OUT.

    If there are multiple ARGS, they will be separated by spaces.  If
    there are multiple lines, they will be output one by one with the
    same timestamp prefix."""

    prefix = self._timestamp() + '  ' * len(self._tasks)
    s = ' '.join(map(str, args))
    lines = s.split('\n')
    if lines and not lines[-1]:
      del lines[-1]

    for s in lines:
      out.write('%s%s\n' % (prefix, s,))
    # Ensure that log output doesn't get out-of-order with respect to
    # stderr output.
    out.flush()

  def write(self, *args):
    """Write a message to SELF._out unconditionally."""

    self._write(self._out, *args)

  def error(self, *args):
    """Log a message at the ERROR level."""

    if self.is_on(_Log.ERROR):
      self._write(self._err, *args)

  def warn(self, *args):
    """Log a message at the WARN level."""

    if self.is_on(_Log.WARN):
      self._write(self._out, *args)

  def quiet(self, *args):
    """Log a message at the QUIET level."""

    if self.is_on(_Log.QUIET):
      self._write(self._out, *args)

  def normal(self, *args):
    """Log a message at the NORMAL level."""

    if self.is_on(_Log.NORMAL):
      self._write(self._out, *args)

  def verbose(self, *args):
    """Log a message at the VERBOSE level."""

    if self.is_on(_Log.VERBOSE):
      self._write(self._out, *args)

  def debug(self, *args):
    """Log a message at the DEBUG level."""

    if self.is_on(_Log.DEBUG):
      self._write(self._out, *args)

  def push_task(self, name, description):
    """Announce the start of a task and return its Task object.

    The caller must hand the Task back to pop_task() when the work is
    done, even if it failed."""

    self.normal(description)
    task = Task(name, description, len(self._tasks))
    self._tasks.append(task)
    return task

  def pop_task(self, task, result=''):
    """Close TASK (and any tasks opened inside it that were left open).

    RESULT, if non-empty, is logged as the outcome of the task."""

    if task not in self._tasks:
      raise ValueError('Task %r is not open' % (task,))
    while self._tasks:
      top = self._tasks.pop()
      if top is task:
        break
    if result:
      self.normal('%s: %s' % (task.name, result,))
    self.debug(
        'Task %s took %.3f seconds' % (task.name, time.time() - task.start_time,)
        )


# Create an instance that everybody can use:
logger = _Log()
