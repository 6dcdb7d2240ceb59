# -*- mode: python; tab-width: 2; coding: utf8 -*-
#
# Copyright (C) 2015 Niklas Rosenstein
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing,
# software distributed under the License is distributed on an
# "AS IS" BASIS, WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND,
# either express or implied. See the License for the specific
# language governing permissions and limitations under the License.

import collections
import enum
import json
import logging
import http.client
import urllib.parse
import urllib.request

from .commands import CommandKind

ANY_REF = '_any'
WRITE_ACTION = CommandKind.RECEIVE_PACK.value
READ_ACTION = CommandKind.UPLOAD_PACK.value


class Check(enum.Enum):
  ''' Identifies the permission check that allowed a command. '''

  DIRECT = 'direct'
  ANNEX_WRITE = 'annex-write'
  ANNEX_READ = 'annex-read'


AccessDecision = collections.namedtuple('AccessDecision', 'allowed check')
DENIED = AccessDecision(False, None)

Lookup = collections.namedtuple('Lookup', 'name')


class AuthorizationUnavailable(IOError):
  pass


class AccessController(object):
  ''' This interface describes the service that decides whether an SSH
  key may access a repository. '''

  def allowed(self, action, repo, key_id, ref):
    ''' Return True if the key with the specified *key_id* may perform
    *action* (eg. `git-upload-pack`) on the repository *repo* for the
    *ref*. Raise `AuthorizationUnavailable` if the question can not be
    answered. '''

    raise NotImplementedError

  def discover(self, key_id):
    ''' Return a dictionary with information about the owner of the
    key, at least containing a `name`, or None if the key is unknown. '''

    raise NotImplementedError


class ApiAccessController(AccessController):
  ''' Implements the `AccessController` interface by querying the
  internal HTTP API of the Git hosting application.

  Arguments:
    api_url (str): Base URL of the internal API, eg.
      `http://localhost:8080/api/v3/internal`.
    timeout (float): Seconds to wait for a reply before giving up.
    secret_token (str): Sent in the `X-Gateway-Token` header if set.
  '''

  def __init__(self, api_url, timeout=10, secret_token=None):
    super().__init__()
    self.api_url = api_url.rstrip('/')
    self.timeout = timeout
    self.secret_token = secret_token

  def _get(self, endpoint, params):
    url = '{}/{}?{}'.format(self.api_url, endpoint,
      urllib.parse.urlencode(params))
    request = urllib.request.Request(url, method='GET')
    if self.secret_token:
      request.add_header('X-Gateway-Token', self.secret_token)
    try:
      with urllib.request.urlopen(request, timeout=self.timeout) as response:
        return response.read().decode('utf8')
    except (OSError, http.client.HTTPException, UnicodeDecodeError) as exc:
      raise AuthorizationUnavailable('{}: {}'.format(url, exc))

  def allowed(self, action, repo, key_id, ref):
    body = self._get('allowed', [('action', action), ('ref', ref),
      ('project', repo), ('key_id', key_id.replace('key-', ''))])
    return body.strip() == 'true'

  def discover(self, key_id):
    body = self._get('discover', [('key_id', key_id.replace('key-', ''))])
    try:
      data = json.loads(body)
    except ValueError as exc:
      raise AuthorizationUnavailable('invalid discover reply: {}'.format(exc))
    if data is not None and not isinstance(data, dict):
      raise AuthorizationUnavailable('invalid discover reply: {!r}'.format(data))
    return data


class AccessValidator(object):
  ''' Turns a `ParsedCommand` into an `AccessDecision`.

  git-annex has no permission of its own. Write access (`git-receive-pack`)
  is probed first, read access (`git-upload-pack`) second, and the check
  that matched decides whether git-annex-shell runs read-only. A probe
  that can not be answered counts as denied. '''

  def __init__(self, controller, logger=None):
    super().__init__()
    self.controller = controller
    self.logger = logger or logging.getLogger('git_gateway')

  def _allowed(self, action, repo_name, key_id):
    try:
      return bool(self.controller.allowed(action, repo_name, key_id, ANY_REF))
    except AuthorizationUnavailable as exc:
      self.logger.warning('Authorization service unavailable, denying '
        '<%s> on <%s>: %s', action, repo_name, exc)
      return False

  def authorize(self, command, key_id):
    if command.kind.is_git:
      if self._allowed(command.kind.value, command.repo_name, key_id):
        return AccessDecision(True, Check.DIRECT)
    elif command.kind is CommandKind.ANNEX_SHELL:
      if self._allowed(WRITE_ACTION, command.repo_name, key_id):
        return AccessDecision(True, Check.ANNEX_WRITE)
      if self._allowed(READ_ACTION, command.repo_name, key_id):
        return AccessDecision(True, Check.ANNEX_READ)
    return DENIED


class IdentityResolver(object):
  ''' Looks up the owner of an SSH key, at most once. The lookup is only
  used for messages, a failure results in no name. '''

  def __init__(self, controller, key_id, logger=None):
    super().__init__()
    self.controller = controller
    self.key_id = key_id
    self.logger = logger or logging.getLogger('git_gateway')
    # None until attempted, afterwards a Lookup whose name may be None.
    self._lookup = None

  @property
  def name(self):
    if self._lookup is None:
      self._lookup = Lookup(self._discover())
    return self._lookup.name

  def _discover(self):
    try:
      user = self.controller.discover(self.key_id)
    except AuthorizationUnavailable as exc:
      self.logger.warning('Could not discover user for %s: %s', self.key_id, exc)
      return None
    if not user:
      return None
    return user.get('name') or None

  @property
  def display_name(self):
    return self.name or 'Anonymous'

  def log_label(self, audit_usernames):
    ''' Returns the label that identifies the user in log messages. Names
    are only resolved if *audit_usernames* is enabled. '''

    if audit_usernames:
      return self.display_name
    return 'user with key {}'.format(self.key_id)
