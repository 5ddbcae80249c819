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


"""This module contains the class that processes repomirror's command line."""

import sys
import time
import optparse
from optparse import OptionGroup

from repomirror_lib.version import VERSION
from repomirror_lib import config
from repomirror_lib.common import FatalError
from repomirror_lib.log import logger
from repomirror_lib.context import Context
from repomirror_lib.process import CommandRunner
from repomirror_lib.database import load_database
from repomirror_lib.project_config import load_project_config
from repomirror_lib.project_config import ProjectContext
from repomirror_lib.directives import find_directive
from repomirror_lib.directives import help_directives


usage = """\
Usage: %prog DIRECTIVE [OPTION...]
       %prog --help-directives"""

description="""\
Keep repositories of one project in sync by migrating revisions between them.
"""


class RunOptions(object):
  """The directive to perform and the options to perform it with."""

  def __init__(self, progname, cmd_args):
    """Process the command-line options, storing run options to SELF.

    PROGNAME is the name of the program, used in the usage string.
    CMD_ARGS is the list of command-line arguments passed to the
    program.  The first argument names the directive, unless it is an
    option; the options that the directive accepts depend on it."""

    self.progname = progname
    self.cmd_args = list(cmd_args)

    self.directive = None
    if self.cmd_args and not self.cmd_args[0].startswith('-'):
      self.directive = find_directive(self.cmd_args.pop(0))

    parser = self.parser = optparse.OptionParser(
        prog=progname,
        usage=usage,
        description=description,
        add_help_option=False,
        )

    parser.add_option_group(self._get_project_options_group())
    parser.add_option_group(self._get_environment_options_group())
    if self.directive is not None:
      group = OptionGroup(
          parser, "Options of the '%s' directive" % (self.directive.name,)
          )
      self.directive.add_options(group)
      parser.add_option_group(group)
    parser.add_option_group(self._get_information_options_group())

    (self.options, self.args) = parser.parse_args(args=self.cmd_args)

    # Now the log level has been set; log the time when the run started:
    logger.verbose(
        time.strftime(
            'Start time: %Y-%m-%d %I:%M:%S %Z',
            time.localtime(logger.start_time)
            )
        )

    self.check_options()

  def _get_project_options_group(self):
    group = OptionGroup(self.parser, 'Project options')
    group.add_option(
        '--config-file', '--config_file', type='string', action='store',
        help='read the project configuration from PATH',
        metavar='PATH',
        )
    group.add_option(
        '--db', type='string', action='store',
        help=(
            'use the equivalence database at PATH (default: the '
            'database_uri of the project; \'%s\' for one that is not saved)'
            % (config.DUMMY_DATABASE_LOCATION,)
            ),
        metavar='PATH',
        )
    return group

  def _get_environment_options_group(self):
    group = OptionGroup(self.parser, 'Environment options')
    group.add_option(
        '--tmpdir', type='string', action='store',
        default=config.DEFAULT_TMPDIR,
        help=(
            'directory to use for temporary data files '
            '(default "%s")' % (config.DEFAULT_TMPDIR,)
            ),
        metavar='PATH',
        )
    return group

  def _get_information_options_group(self):
    group = OptionGroup(self.parser, 'Information options')
    group.add_option(
        '--version',
        action='callback', callback=self.callback_version,
        help='print the version number',
        )
    group.add_option(
        '--help', '-h',
        action='help',
        help='print this usage message and exit with success',
        )
    group.add_option(
        '--help-directives',
        action='callback', callback=self.callback_help_directives,
        help='list the available directives',
        )
    group.add_option(
        '--verbose', '-v',
        action='callback', callback=self.callback_verbose,
        help='verbose (may be specified twice for debug output)',
        )
    group.add_option(
        '--quiet', '-q',
        action='callback', callback=self.callback_quiet,
        help='quiet (may be specified twice for very quiet)',
        )
    return group

  def callback_version(self, option, opt_str, value, parser):
    sys.stdout.write(
        '%s version %s\n' % (self.progname, VERSION)
        )
    sys.exit(0)

  def callback_help_directives(self, option, opt_str, value, parser):
    help_directives()
    sys.exit(0)

  def callback_verbose(self, option, opt_str, value, parser):
    logger.increase_verbosity()

  def callback_quiet(self, option, opt_str, value, parser):
    logger.decrease_verbosity()

  def check_options(self):
    """Check the options for consistency; raise FatalError if wrong."""

    if self.directive is None:
      raise FatalError(
          'No directive specified.\n'
          'Use --help-directives for a list of directives.'
          )
    if self.args:
      raise FatalError(
          'Unexpected arguments: %s' % (' '.join(self.args),)
          )
    if self.directive.needs_project and not self.options.config_file:
      raise FatalError(
          "The '%s' directive requires the --config-file option."
          % (self.directive.name,))
    self.directive.check_options(self.options)

  def get_context(self):
    return Context(self.options.tmpdir, CommandRunner())

  def get_project_context(self, context):
    """Load the project configuration and return its ProjectContext."""

    project_config = load_project_config(self.options.config_file)
    return ProjectContext(project_config, context)

  def get_db(self, project_context):
    """Load the equivalence database named by --db or by the project."""

    location = self.options.db or project_context.config.database_uri
    if not location:
      raise FatalError(
          'No database given; use --db or set database_uri in the project.'
          )
    return load_database(location)
