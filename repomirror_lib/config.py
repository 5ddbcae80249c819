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

"""This module contains various configuration constants used by repomirror."""


MERGE_EXECUTABLE = 'merge'
GIT_EXECUTABLE = 'git'
SHELL_EXECUTABLE = 'bash'

# The exit status with which merge(1) reports that the merge completed
# but left conflict markers in the output.  Any other non-zero status
# means that the merge itself failed.
MERGE_CONFLICT_EXIT_STATUS = 1

# The directory (relative to the current directory) in which temporary
# codebases, clones, and writer workspaces are created:
DEFAULT_TMPDIR = 'repomirror-tmp'

# The database location that selects an in-memory database which is
# never written back:
DUMMY_DATABASE_LOCATION = 'dummy'

# The default project space of a repository that does not name one:
DEFAULT_PROJECT_SPACE = 'public'

# The trailer appended to the description of every migrated revision.
# Bookkeeping reads it back from the target repository's history to
# find out which source revision a commit was migrated from.
MIGRATED_REVID_FIELD = 'REPOMIRROR_MIGRATED_REVID'
MIGRATED_REVID_TRAILER = (
    'Created by repomirror\n'
    + MIGRATED_REVID_FIELD + '=%s'
    )

# The line that separates the descriptions of several revisions that
# are migrated together:
DESCRIPTION_SEPARATOR = '\n\n-------------\n'

# Directories holding version-control metadata, which never belong to
# a codebase:
VCS_METADATA_DIRS = ('.git', '.hg', '.svn')

# Separator used in the git log format, so that the fields of a single
# log entry can be split apart again:
GIT_LOG_DELIMITER = '---@REPOMIRROR@---'
