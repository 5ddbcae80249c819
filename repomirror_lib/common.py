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

"""This module contains common facilities used by repomirror."""


# Warnings and errors start with these strings.  They are typically
# followed by a colon and a space, as in "%s: " ==> "WARNING: ".
warning_prefix = "WARNING"
error_prefix = "ERROR"


class FatalException(Exception):
  """Exception thrown on a non-recoverable error.

  If this exception is thrown by main(), it is caught by the global
  layer of the program, its string representation is printed (followed
  by a newline), and the program is ended with an exit code of 1."""

  pass


class InternalError(Exception):
  """Exception thrown in the case of a repomirror internal error.

  These are inconsistencies in the repositories or the database that
  no user action can repair from within this run.  They are not caught
  by the global layer, so that they surface with a full traceback."""

  pass


class FatalError(FatalException):
  """A FatalException that prepends error_prefix to the message."""

  def __init__(self, msg):
    """Use (error_prefix + ': ' + MSG) as the error message."""

    FatalException.__init__(self, '%s: %s' % (error_prefix, msg,))


class CommandError(FatalError):
  """A FatalError caused by a failed command invocation.

  The error message includes the command name, exit code, and output.
  The raw EXIT_STATUS, STDOUT and ERROR_OUTPUT are kept as attributes
  so that callers which expect certain exit statuses can inspect
  them."""

  def __init__(self, command, exit_status, error_output='', stdout=''):
    self.command = command
    self.exit_status = exit_status
    self.error_output = error_output
    self.stdout = stdout
    if error_output.rstrip():
      FatalError.__init__(
          self,
          'The command %r failed with exit status=%s\n'
          'and the following output:\n'
          '%s'
          % (self.command, self.exit_status, self.error_output.rstrip()))
    else:
      FatalError.__init__(
          self,
          'The command %r failed with exit status=%s and no output'
          % (self.command, self.exit_status))


class InvalidProjectError(FatalError):
  """The project configuration is missing or inconsistent."""

  pass


class UnknownRepositoryError(FatalError):
  def __init__(self, repository_name, known_names):
    self.repository_name = repository_name
    FatalError.__init__(
        self,
        'No such repository %r in this project; known repositories: %s'
        % (repository_name, ', '.join(sorted(known_names)) or '(none)',))


class UnknownMigrationError(FatalError):
  def __init__(self, migration_name, known_names):
    self.migration_name = migration_name
    FatalError.__init__(
        self,
        'No such migration %r in this project; known migrations: %s'
        % (migration_name, ', '.join(sorted(known_names)) or '(none)',))


class ParseError(FatalError):
  """A revision expression given by the user could not be parsed."""

  pass


class SkipSubsetError(FatalError):
  """Only some of the revisions of a single migration were to be skipped."""

  def __init__(self, migration):
    self.migration = migration
    FatalError.__init__(
        self,
        'Cannot skip subset of revisions in a single migration: %s'
        % (migration,))


class MetadataUnavailableError(InternalError):
  """A revision reachable in a history walk has no metadata."""

  def __init__(self, revision):
    self.revision = revision
    InternalError.__init__(
        self,
        'Could not read metadata for revision %s; the repository view '
        'is inconsistent' % (revision,))


class MalformedDatabaseError(InternalError):
  """The persisted equivalence database could not be understood."""

  pass


class MergeError(InternalError):
  """The three-way merge tool failed for a reason other than a conflict."""

  pass
