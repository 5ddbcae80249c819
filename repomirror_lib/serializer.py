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


"""Serializers used to persist repomirror's databases."""


import json


class Serializer:
  """An object able to serialize/deserialize some class of objects."""

  def dumpf(self, f, object):
    """Serialize OBJECT to file-like object F."""

    raise NotImplementedError()

  def dumps(self, object):
    """Return a string containing OBJECT in serialized form."""

    raise NotImplementedError()

    raise NotImplementedError()

  def loads(self, s):
    """Return the object deserialized from string S."""

    raise NotImplementedError()


class JSONSerializer(Serializer):
  """This class uses the json module to serialize/deserialize.

  Only plain data (dicts, lists, strings, numbers, booleans and None)
  can be serialized; callers convert their objects to and from such
  data themselves.  The output is indented and its keys are sorted, so
  that a database under version control produces readable diffs."""

  def __init__(self, indent=2):
    self.indent = indent

  def dumpf(self, f, object):
    json.dump(object, f, indent=self.indent, sort_keys=True)
    f.write('\n')

  def dumps(self, object):
    return json.dumps(object, indent=self.indent, sort_keys=True) + '\n'

  def loads(self, s):
    return json.loads(s)
