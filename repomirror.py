#!/usr/bin/env python3
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

import os
import sys

from repomirror_lib.common import FatalException
from repomirror_lib.main import main


try:
  sys.exit(main(os.path.basename(sys.argv[0]), sys.argv[1:]))
except FatalException as e:
  sys.stderr.write(str(e) + '\n')
  sys.exit(1)
