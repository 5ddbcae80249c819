#!/usr/bin/env python3

import sys
from setuptools import setup

assert sys.hexversion >= 0x030c0000, \
       "Install Python 3, version 3.12 or greater"


def get_version():
  "Return the version number of repomirror."

  from repomirror_lib.version import VERSION
  return VERSION


setup(
    # Metadata.
    name = "repomirror",
    version = get_version(),
    description = "Keep the repositories of a project in sync",
    author = "The repomirror team",
    license = "Apache-style",
    long_description = """\
repomirror keeps two or more repositories of one project in sync.  A
typical use is an internal repository and its public mirror: revisions
committed internally are scrubbed, renamed and committed publicly, and
contributions made in public are translated back and merged into the
internal repository.

repomirror remembers which revisions of the repositories are
equivalent, so that each run migrates only what happened since the
last equivalence.  The changes it makes are left as draft commits in
working copies, for a human to review and push.
""",
    classifiers = [
        'Development Status :: 3 - Alpha',
        'Environment :: Console',
        'Intended Audience :: Developers',
        'Intended Audience :: System Administrators',
        'License :: OSI Approved',
        'Natural Language :: English',
        'Operating System :: POSIX',
        'Programming Language :: Python :: 3',
        'Topic :: Software Development :: Version Control',
        'Topic :: Software Development :: Version Control :: Git',
        'Topic :: Utilities',
        ],
    python_requires = ">=3.12",
    # Data.
    packages = ["repomirror_lib"],
    scripts = ["repomirror.py"],
    )
