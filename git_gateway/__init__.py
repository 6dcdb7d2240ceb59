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
''' An SSH command gateway that authorizes Git and git-annex commands
against the internal API of a Git hosting application. '''

__author__ = 'Niklas Rosenstein <rosensteinniklas(at)gmail.com>'
__version__ = '0.9.0'

import sys
if sys.version_info[0] != 3:
  raise EnvironmentError('git-gateway requires Python3')

import collections
import logging

from .auth import AccessController, ApiAccessController, AccessValidator
from .auth import AccessDecision, AuthorizationUnavailable, Check
from .auth import IdentityResolver
from .commands import CommandKind, ParsedCommand, ParseFailure, parse_command
from .dispatch import ExecutionContext, ProcessDispatcher, build_context
from .dispatch import DispatchFailure, UnsafeRepositoryPath

DISPATCH_FAILURE_STATUS = 255

Invocation = collections.namedtuple('Invocation', 'key_id origin_command')


class Gateway(object):
  ''' Runs a single SSH invocation: greets interactive sessions, rejects
  unknown commands and executes the allowed ones.

  Arguments:
    invocation (Invocation): The key identifier and the original command.
    config (module): The configuration. Defaults to `git_gateway_config`.
    controller (AccessController): Defaults to `config.access_controller`.
    dispatcher (ProcessDispatcher): Executes allowed commands.
    logger (logging.Logger): Receives the audit log entries.
  '''

  def __init__(self, invocation, config=None, controller=None,
      dispatcher=None, logger=None):
    super().__init__()
    if config is None:
      import git_gateway_config as config
    if controller is None:
      controller = config.access_controller
    self.invocation = invocation
    self.config = config
    self.logger = logger or logging.getLogger('git_gateway')
    self.dispatcher = dispatcher or ProcessDispatcher()
    self.validator = AccessValidator(controller, self.logger)
    self.identity = IdentityResolver(controller, invocation.key_id, self.logger)

  @property
  def log_username(self):
    ''' User identifier to be used in log messages. '''

    return self.identity.log_label(getattr(self.config, 'audit_usernames', False))

  def run(self):
    ''' Processes the invocation. Returns the exit code unless the
    process is replaced by the Git executable. '''

    origin_command = self.invocation.origin_command
    if origin_command is None:
      print("Welcome to Git, {}!".format(self.identity.display_name))
      return 0

    try:
      command = parse_command(origin_command)
    except ParseFailure as exc:
      self.logger.warning('Rejected malformed command <%s> by %s (%s).',
        origin_command, self.log_username, exc)
      print('Not allowed command')
      return 0

    if command.kind is CommandKind.UNRECOGNIZED:
      self.logger.warning('Attempt to execute disallowed command <%s> by %s.',
        origin_command, self.log_username)
      print('Not allowed command')
      return 0

    decision = self.validator.authorize(command, self.invocation.key_id)
    if not decision.allowed:
      what = 'git annex' if command.kind is CommandKind.ANNEX_SHELL else 'git'
      self.logger.warning('Access denied for %s command <%s> by %s.',
        what, origin_command, self.log_username)
      print('Access denied.', file=sys.stderr)
      return 0

    try:
      context = build_context(command, decision, self.invocation.key_id,
        self.config.repos_path,
        restrict=getattr(self.config, 'restrict_repo_paths', True))
    except UnsafeRepositoryPath as exc:
      self.logger.warning('Refused repository path <%s> outside of the '
        'repository root for command <%s> by %s.', exc, origin_command,
        self.log_username)
      print('Access denied.', file=sys.stderr)
      return 0

    if command.kind is CommandKind.ANNEX_SHELL:
      self.logger.info('executing git annex command <%s> for %s and '
        '(read_only=%s).', ' '.join(context.argv), self.log_username,
        decision.check is Check.ANNEX_READ)
    else:
      self.logger.info('executing git command <%s> for %s.',
        ' '.join(context.argv), self.log_username)

    try:
      self.dispatcher.dispatch(context)
    except DispatchFailure as exc:
      self.logger.error('Failed to execute <%s> for %s: %s.',
        ' '.join(context.argv), self.log_username, exc)
      print('fatal: could not execute {}: {}'.format(context.executable,
        exc.strerror), file=sys.stderr)
      return DISPATCH_FAILURE_STATUS
