#!/usr/bin/env python3
#
#  run-tests.py:  functional test suite for repomirror
#
#  Usage: run-tests.py [-v | --verbose] [list | <num>]
#
#  Options:
#      -v, --verbose
#          enable verbose output
#
#  Arguments (at most one argument is allowed):
#      list
#          If the word "list" is passed as an argument, the list of
#          available tests is printed (but no tests are run).
#
#      <num>
#          If a number is passed as an argument, then only the test
#          with that number is run.
#
#      If no argument is specified, then all tests are run.
#
#  The unit tests live in repomirror_lib/test/ and are run separately,
#  for example with "python3 -m unittest discover -s repomirror_lib/test
#  -p '*_test.py'".
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
######################################################################

# General modules
import sys
import re
import os
import json
import shutil
import subprocess
import traceback

# This script needs to run in the correct directory.  Make sure we're there.
if not (os.path.exists('repomirror.py') and os.path.exists('repomirror_lib')):
  sys.stderr.write("error: I need to be run in the directory containing "
                   "'repomirror.py' and 'repomirror_lib'.\n")
  sys.exit(1)

repomirror = os.path.abspath('repomirror.py')

tmp_dir = os.path.abspath('repomirror-test-tmp')

verbose = False


#----------------------------------------------------------------------
# Helpers.
#----------------------------------------------------------------------


class Failure(Exception):
  pass


class RunProgramException(Failure):
  pass


class MissingErrorException(Failure):
  def __init__(self, error_re):
    Failure.__init__(
        self, "Test failed because no error matched '%s'" % (error_re,)
        )


def run_program(program, error_re, *varargs):
  """Run PROGRAM with VARARGS, return stdout as a list of lines.

  If ERROR_RE is None, the program must exit successfully; otherwise
  raise RunProgramException, after logging its stderr if running
  verbosely.

  If ERROR_RE is not None, it is a string regular expression that must
  match some line of stderr of a program that fails.  If it fails to
  match, raise MissingErrorException."""

  pipe = subprocess.Popen(
      [program] + list(varargs),
      stdin=subprocess.DEVNULL,
      stdout=subprocess.PIPE,
      stderr=subprocess.PIPE,
      universal_newlines=True,
      )
  (out, err) = pipe.communicate()
  out = out.splitlines(True)
  err = err.splitlines(True)

  if error_re:
    # Specified error expected on stderr.
    if pipe.returncode == 0:
      raise MissingErrorException(error_re)
    for line in err:
      if re.match(error_re, line):
        return out
    raise MissingErrorException(error_re)
  elif pipe.returncode != 0:
    if verbose:
      sys.stdout.write('%s said:\n' % (program,))
      for line in err:
        sys.stdout.write('   %s\n' % (line.rstrip(),))
    raise RunProgramException(
        '%s exited with status %d' % (program, pipe.returncode,)
        )

  return out


def run_repomirror(error_re, *varargs):
  """Run repomirror.py with VARARGS, returning stdout as a list of lines."""

  # Use the same python that is running this script
  return run_program(sys.executable, error_re, repomirror, *varargs)


def ensure_workdir(name):
  """Return the path of an empty working directory for test NAME."""

  path = os.path.join(tmp_dir, name)
  if os.path.exists(path):
    shutil.rmtree(path)
  os.makedirs(path)
  return path


def write_project(workdir, project):
  """Write the project configuration PROJECT into WORKDIR; return its path."""

  filename = os.path.join(workdir, 'project.json')
  f = open(filename, 'w')
  try:
    json.dump(project, f, indent=2)
  finally:
    f.close()
  return filename


def write_files(root, files):
  for (filename, contents) in files.items():
    path = os.path.join(root, *filename.split('/'))
    if not os.path.isdir(os.path.dirname(path)):
      os.makedirs(os.path.dirname(path))
    f = open(path, 'w')
    try:
      f.write(contents)
    finally:
      f.close()


def read_file(path):
  f = open(path, 'r')
  try:
    return f.read()
  finally:
    f.close()


def expect(expected, actual):
  if expected != actual:
    raise Failure('Expected %r, got %r' % (expected, actual,))


def dummy_project():
  """Return a project of two dummy repositories that need a translator."""

  return {
      'name' : 'functional',
      'repositories' : {
          'internal' : {
              'type' : 'dummy',
              'project_space' : 'internal',
              'commits' : [
                  {'id' : '1', 'files' : {'src/a' : 'x\n'}},
                  {'id' : '2', 'description' : 'Change a',
                   'files' : {'src/a' : 'y\n'}},
                  ],
              },
          'public' : {
              'type' : 'dummy',
              'commits' : [{'id' : 'p1', 'files' : {'a' : 'x\n'}}],
              },
          },
      'editors' : {
          'flatten' : {'type' : 'renamer', 'mappings' : {'src/' : ''}},
          },
      'translators' : [
          {
              'from_project_space' : 'internal',
              'to_project_space' : 'public',
              'steps' : [{'name' : 'flatten_step', 'editor' : 'flatten'}],
              },
          ],
      'migrations' : [
          {
              'name' : 'publish',
              'from_repository' : 'internal',
              'to_repository' : 'public',
              },
          ],
      }


def run_project_directive(workdir, directive, error_re=None, *args):
  return run_repomirror(
      error_re, directive,
      '--config-file', os.path.join(workdir, 'project.json'),
      '--db', os.path.join(workdir, 'db.json'),
      '--tmpdir', os.path.join(workdir, 'tmp'),
      *args
      )


#----------------------------------------------------------------------
# Tests.
#----------------------------------------------------------------------


def show_usage():
  "repomirror with no arguments shows an error"

  run_repomirror(r'ERROR: No directive specified')


def show_version():
  "repomirror --version"

  out = run_repomirror(None, '--version')
  if not re.match(r'^repomirror\.py version \S+$', ''.join(out).strip()):
    raise Failure('Unexpected version output: %r' % (out,))


def help_directives():
  "list the directives"

  out = ''.join(run_repomirror(None, '--help-directives'))
  for name in ['magic', 'bookkeeping', 'merge-codebases']:
    if name not in out:
      raise Failure('Directive %s is not listed' % (name,))


def unknown_directive():
  "an unknown directive is an error"

  run_repomirror(r"ERROR: Unknown directive 'frobnicate'", 'frobnicate')


def missing_config_file():
  "a project directive without --config-file"

  run_repomirror(
      r"ERROR: The 'bookkeeping' directive requires the --config-file option",
      'bookkeeping',
      )


def invalid_project():
  "a project configuration that is not valid"

  workdir = ensure_workdir('invalid-project')
  project = dummy_project()
  project['migrations'][0]['to_repository'] = 'nonesuch'
  write_project(workdir, project)
  run_project_directive(
      workdir, 'bookkeeping',
      r'ERROR: Migration publish refers to unknown repository nonesuch',
      )


def highest_revision():
  "print the highest revision of a repository"

  workdir = ensure_workdir('highest-revision')
  write_project(workdir, dummy_project())
  out = run_project_directive(
      workdir, 'highest-revision', None, '--repository', 'internal'
      )
  expect(['Highest revision in repository "internal": 2\n'], out)


def note_and_find_equivalence():
  "note an equivalence and find it again"

  workdir = ensure_workdir('note-equivalence')
  write_project(workdir, dummy_project())
  run_project_directive(
      workdir, 'note-equivalence', None,
      '--rev1', 'internal{1}', '--rev2', 'public{p1}',
      )
  out = run_project_directive(
      workdir, 'find-equivalence', None,
      '--from-repository', 'internal', '--revision', '1',
      '--in-repository', 'public',
      )
  expect(['internal{1} == public{p1}\n'], out)


def determine_migrations():
  "list the pending migrations"

  workdir = ensure_workdir('determine-migrations')
  write_project(workdir, dummy_project())
  run_project_directive(
      workdir, 'note-equivalence', None,
      '--rev1', 'internal{1}', '--rev2', 'public{p1}',
      )
  out = run_project_directive(workdir, 'determine-migrations')
  expect(['publish: internal -> public [internal{2}]\n'], out)


def magic():
  "bookkeep and migrate between dummy repositories"

  workdir = ensure_workdir('magic')
  write_project(workdir, dummy_project())
  run_project_directive(
      workdir, 'note-equivalence', None,
      '--rev1', 'internal{1}', '--rev2', 'public{p1}',
      )
  run_project_directive(workdir, 'magic')

  db = json.loads(read_file(os.path.join(workdir, 'db.json')))
  expect(1, len(db['migrations']))
  expect(
      {'rev_id' : '2', 'repository_name' : 'internal'},
      db['migrations'][0]['from_revisions'][0],
      )
  if os.path.exists(os.path.join(workdir, 'tmp', 'repomirror.lock')):
    raise Failure('The lock directory was left behind')


def merge_codebases():
  "merge the changes between two codebases into a third"

  try:
    subprocess.check_call(
        ['merge', '-V'],
        stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL,
        )
  except (OSError, subprocess.CalledProcessError):
    sys.stdout.write('SKIP: merge(1) is not available\n')
    return

  workdir = ensure_workdir('merge-codebases')
  original = os.path.join(workdir, 'original')
  modified = os.path.join(workdir, 'modified')
  destination = os.path.join(workdir, 'destination')
  write_files(original, {'a' : 'one\ntwo\nthree\n', 'b' : 'b\n'})
  write_files(modified, {'a' : 'one\n2\nthree\n', 'b' : 'b\n', 'c' : 'c\n'})
  write_files(destination, {'a' : 'one\ntwo\nthree\nfour\n'})
  run_repomirror(
      None, 'merge-codebases',
      '--tmpdir', os.path.join(workdir, 'tmp'),
      '--original-codebase', original,
      '--modified-codebase', modified,
      '--destination-codebase', destination,
      )


test_list = [
    None,
# 1:
    show_usage,
    show_version,
    help_directives,
    unknown_directive,
    missing_config_file,
    invalid_project,
    highest_revision,
    note_and_find_equivalence,
    determine_migrations,
# 10:
    magic,
    merge_codebases,
    ]


def run_test(num):
  test = test_list[num]
  try:
    test()
  except Failure as e:
    sys.stdout.write('FAIL:  %2d: %s\n' % (num, test.__doc__,))
    if verbose:
      sys.stdout.write('       %s\n' % (e,))
    return False
  except Exception:
    sys.stdout.write('FAIL:  %2d: %s\n' % (num, test.__doc__,))
    if verbose:
      traceback.print_exc(file=sys.stdout)
    return False
  sys.stdout.write('PASS:  %2d: %s\n' % (num, test.__doc__,))
  return True


def usage():
  sys.stderr.write('Usage: %s [-v | --verbose] [list | <num>]\n' % (sys.argv[0],))
  sys.exit(2)


def main(args):
  global verbose

  nums = None
  for arg in args:
    if arg in ['-v', '--verbose']:
      verbose = True
    elif arg == 'list':
      for num in range(1, len(test_list)):
        sys.stdout.write(' %2d     %s\n' % (num, test_list[num].__doc__,))
      return 0
    elif nums is None and arg.isdigit() \
           and 1 <= int(arg) < len(test_list):
      nums = [int(arg)]
    else:
      usage()
  if nums is None:
    nums = range(1, len(test_list))

  failures = 0
  for num in nums:
    if not run_test(num):
      failures += 1

  if failures == 0 and os.path.exists(tmp_dir):
    shutil.rmtree(tmp_dir)
  return failures and 1 or 0


if __name__ == '__main__':
  # Configure the environment for reproducable output:
  os.environ["LC_ALL"] = "C"

  sys.exit(main(sys.argv[1:]))


### End of file.
