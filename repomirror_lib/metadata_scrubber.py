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


"""Scrubbers that clean up the metadata of migrated revisions.

A MetadataScrubber takes a RevisionMetadata and returns a (possibly
new) RevisionMetadata with undesirable information removed.  The
scrubbers to apply, and how, are chosen by a MetadataScrubberConfig,
which is part of a migration's configuration."""


import re

from repomirror_lib.common import warning_prefix
from repomirror_lib.log import logger
from repomirror_lib.revision import RevisionMetadata


DEFAULT_LOG_FORMAT = '{description}\n\tChange on {date} by {author}'

ORIGINAL_AUTHOR_FIELD = 'ORIGINAL_AUTHOR'


class MetadataScrubberConfig(object):
  """Which metadata scrubbers apply to a migration, and how.

  USERNAMES_TO_SCRUB is a list of words (usually usernames) that are
  removed from all metadata.  SENSITIVE_RES is a list of regular
  expressions for text that is removed from all metadata.  LOG_FORMAT
  is the template used to rewrite descriptions; it may refer to {id},
  {author}, {date}, {description} and {parents}.  If
  RESTORE_ORIGINAL_AUTHOR is true, an ORIGINAL_AUTHOR=... field in a
  description replaces the revision's author."""

  def __init__(
        self, usernames_to_scrub=(), sensitive_res=(),
        log_format=DEFAULT_LOG_FORMAT, restore_original_author=False,
        ):
    self.usernames_to_scrub = list(usernames_to_scrub)
    self.sensitive_res = list(sensitive_res)
    self.log_format = log_format
    self.restore_original_author = restore_original_author

  def get_scrubbers(self):
    """Return the list of MetadataScrubbers, in the order to apply them."""

    scrubbers = []
    if self.restore_original_author:
      scrubbers.append(OriginalAuthorScrubber())
    if self.usernames_to_scrub:
      scrubbers.append(UsernameScrubber(self.usernames_to_scrub))
    if self.sensitive_res:
      scrubbers.append(SensitiveTextScrubber(self.sensitive_res))
    scrubbers.append(PublicSectionScrubber())
    scrubbers.append(DescriptionFormatScrubber(self.log_format))
    return scrubbers


class MetadataScrubber(object):
  """Transform RevisionMetadata to remove undesirable information."""

  def scrub(self, metadata):
    """Return a scrubbed version of METADATA.

    If nothing needs to be changed, METADATA itself may be returned."""

    raise NotImplementedError()


def _replace_in_metadata(metadata, regexp, replacement):
  """Return a copy of METADATA with REGEXP replaced in its text fields."""

  return RevisionMetadata(
      regexp.sub(replacement, metadata.id),
      regexp.sub(replacement, metadata.author or ''),
      metadata.date,
      regexp.sub(replacement, metadata.description),
      metadata.parents,
      )


class UsernameScrubber(MetadataScrubber):
  """Remove whole-word occurrences of usernames from all metadata."""

  def __init__(self, usernames):
    self.usernames = list(usernames)
    self._regexp = re.compile(
        r'(?i)\b(?:%s)\b' % ('|'.join(map(re.escape, self.usernames)),)
        )

  def scrub(self, metadata):
    return _replace_in_metadata(metadata, self._regexp, '')


class SensitiveTextScrubber(MetadataScrubber):
  """Remove text matching any of a list of regular expressions."""

  def __init__(self, sensitive_res):
    self._regexps = [re.compile('(?i)' + s) for s in sensitive_res]

  def scrub(self, metadata):
    for regexp in self._regexps:
      metadata = _replace_in_metadata(metadata, regexp, '')
    return metadata


class PublicSectionScrubber(MetadataScrubber):
  """Reduce a description to its 'Public:' section, if it has one.

  The public section starts after a line reading 'Public:' and ends at
  the next blank line (or the end of the description)."""

  _public_section_re = re.compile(r'^\s*Public:\s*$')
  _end_public_section_re = re.compile(r'^\s*$')

  def scrub(self, metadata):
    lines = metadata.description.split('\n')
    start = None
    end = None
    for (i, line) in enumerate(lines):
      if self._public_section_re.match(line):
        start = i
        end = len(lines)
      elif start is not None and self._end_public_section_re.match(line):
        end = i
        break

    if start is None:
      return metadata
    return RevisionMetadata(
        metadata.id, metadata.author, metadata.date,
        '\n'.join(lines[start + 1:end]), metadata.parents,
        )


class DescriptionFormatScrubber(MetadataScrubber):
  """Rewrite the description according to a log format template."""

  def __init__(self, log_format):
    self.log_format = log_format

  def scrub(self, metadata):
    if metadata.date is None:
      date = ''
    else:
      date = metadata.date.strftime('%Y/%m/%d')
    description = self.log_format
    for (key, value) in [
          ('{id}', metadata.id),
          ('{author}', metadata.author or ''),
          ('{date}', date),
          ('{parents}', ', '.join([p.rev_id for p in metadata.parents])),
          # Substituted last, so that braces in the description are left
          # alone:
          ('{description}', metadata.description),
          ]:
      description = description.replace(key, value)
    return RevisionMetadata(
        metadata.id, metadata.author, metadata.date, description,
        metadata.parents,
        )


class OriginalAuthorScrubber(MetadataScrubber):
  """Use an ORIGINAL_AUTHOR field of the description as the author.

  The field is removed from the description.  Authors are expected in
  'Name <user@example.com>' form; bare email addresses and usernames
  are expanded into that form."""

  _field_re = re.compile(r'^%s=.*$\n?' % (ORIGINAL_AUTHOR_FIELD,), re.M)
  _git_author_re = re.compile(r'^.*<.*>.*$')
  _email_re = re.compile(r'^[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}$', re.I)
  _username_re = re.compile(r'^[A-Z0-9._%+-]*$', re.I)

  def sanitize_author(self, author):
    author = author.strip()
    if self._git_author_re.match(author):
      return author
    elif self._email_re.match(author):
      return '%s <%s>' % (author.split('@')[0], author,)
    elif self._username_re.match(author):
      return '%s <%s>' % (author, author,)
    else:
      logger.warn(
          '%s: unknown author format in commit metadata: "%s"'
          % (warning_prefix, author,))
      return '"%s" <undetermined_user>' % (author,)

  def scrub(self, metadata):
    values = metadata.fields.get(ORIGINAL_AUTHOR_FIELD)
    if not values:
      return metadata
    return RevisionMetadata(
        metadata.id,
        self.sanitize_author(values[0]),
        metadata.date,
        self._field_re.sub('', metadata.description, count=1),
        metadata.parents,
        )


class AuthorScrubberConfig(object):
  """Decide whether the author of a migrated revision is published.

  Authors are expected in 'Name <username@domain>' form.  If
  SCRUB_UNKNOWN_USERS is true, every author not listed in
  USERNAMES_TO_PUBLISH is scrubbed; otherwise only those listed in
  USERNAMES_TO_SCRUB are."""

  def __init__(
        self, usernames_to_scrub=(), usernames_to_publish=(),
        scrub_unknown_users=False, scrub_authors=True,
        ):
    self.usernames_to_scrub = list(usernames_to_scrub)
    self.usernames_to_publish = list(usernames_to_publish)
    self.scrub_unknown_users = scrub_unknown_users
    self.scrub_authors = scrub_authors

  def _matches_username(self, author, usernames):
    for username in usernames:
      if re.match(r'.*<%s@.*' % (re.escape(username),), author):
        return True
    return False

  def should_scrub_author(self, author):
    if not self.scrub_authors or author is None:
      return False
    if self.scrub_unknown_users:
      return not self._matches_username(author, self.usernames_to_publish)
    else:
      return self._matches_username(author, self.usernames_to_scrub)
