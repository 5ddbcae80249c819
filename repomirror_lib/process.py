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

"""This module contains the command runner used by repomirror."""


import subprocess

from repomirror_lib.common import FatalError
from repomirror_lib.common import CommandError
from repomirror_lib.log import logger


class CommandResult(object):
  """The outcome of one finished command."""

  __slots__ = ['stdout', 'stderr', 'exit_status']

  def __init__(self, stdout, stderr, exit_status):
    self.stdout = stdout
    self.stderr = stderr
    self.exit_status = exit_status

  def __repr__(self):
    return 'CommandResult(exit_status=%d)' % (self.exit_status,)


class CommandRunner(object):
  """Run external commands to completion.

  Each command is run with its stdin closed and both of its output
  streams captured.  The streams are drained with communicate(), so a
  command that writes a lot of output cannot deadlock against us.
  Output is decoded as UTF-8; undecodable bytes (say, a legacy commit
  message in Latin-1) are kept as surrogate escapes."""

  def run(self, command, args, cwd=None):
    """Run COMMAND with the list of ARGS in directory CWD.

    Return a CommandResult if the command exits with status 0.  Raise
    a CommandError (carrying the exit status and output) if it exits
    with any other status, and a FatalError if it cannot be executed
    at all."""

    argv = [command] + list(args)
    logger.debug('Running command %r in %s' % (argv, cwd or '.',))
    try:
      pipe = subprocess.Popen(
          argv,
          cwd=cwd,
          stdin=subprocess.DEVNULL,
          stdout=subprocess.PIPE,
          stderr=subprocess.PIPE,
          universal_newlines=True,
          encoding='utf-8',
          errors='surrogateescape',
          )
    except OSError as e:
      raise FatalError(
          'Command execution failed (%s): "%s"' % (e, ' '.join(argv),)
          )
    (stdout, stderr) = pipe.communicate()
    if pipe.returncode < 0:
      raise FatalError(
          'Command terminated by signal %d: "%s"'
          % (-pipe.returncode, ' '.join(argv),)
          )
    elif pipe.returncode > 0:
      raise CommandError(' '.join(argv), pipe.returncode, stderr, stdout)
    return CommandResult(stdout, stderr, pipe.returncode)


def check_command_runs(runner, command, args=()):
  """Return True iff COMMAND can be executed and exits successfully."""

  try:
    runner.run(command, args)
  except FatalError:
    return False
  return True
