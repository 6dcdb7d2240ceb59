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

import os
import collections

from . import util
from .auth import Check
from .commands import CommandKind

IDENTITY_VAR = 'GL_ID'
ANNEX_LIMITED_VAR = 'GIT_ANNEX_SHELL_LIMITED'
ANNEX_READONLY_VAR = 'GIT_ANNEX_SHELL_READONLY'
ANNEX_DIRECTORY_VAR = 'GIT_ANNEX_SHELL_DIRECTORY'

ExecutionContext = collections.namedtuple('ExecutionContext',
  'executable argv env repo_path')


class UnsafeRepositoryPath(ValueError):
  pass


class DispatchFailure(OSError):
  pass


def build_context(command, decision, key_id, repos_path, environ=None,
    restrict=True):
  ''' Builds the `ExecutionContext` for an allowed *command*. The
  environment is a copy of *environ* (defaults to `os.environ`) with the
  variables git-upload-pack & co. and git-annex-shell expect.

  If *restrict* is True, the repository path must resolve to a location
  inside *repos_path*, otherwise `UnsafeRepositoryPath` is raised. '''

  if not decision.allowed:
    raise ValueError('can not build an execution context for a denied command')

  repo_path = util.join_repo_path(repos_path, command.repo_name)
  if restrict:
    root = os.path.normpath(repos_path)
    if not util.issubpath(os.path.normpath(repo_path), root):
      raise UnsafeRepositoryPath(repo_path)

  env = dict(os.environ if environ is None else environ)
  env[IDENTITY_VAR] = key_id

  if command.kind is CommandKind.ANNEX_SHELL:
    # git-annex-shell is only ever run in its limited mode from here.
    env[ANNEX_LIMITED_VAR] = '1'
    if decision.check is Check.ANNEX_READ:
      env[ANNEX_READONLY_VAR] = '1'
    else:
      env.pop(ANNEX_READONLY_VAR, None)
    env[ANNEX_DIRECTORY_VAR] = repo_path
    executable = command.kind.value
    argv = [executable, command.annex_command, repo_path]
    argv.extend(command.annex_args)
  elif command.kind.is_git:
    executable = command.kind.value
    argv = [executable, repo_path]
  else:
    raise ValueError('can not execute {!r}'.format(command.kind))

  return ExecutionContext(executable, argv, env, repo_path)


class ProcessDispatcher(object):
  ''' Replaces the current process with the Git executable. '''

  def dispatch(self, context):
    ''' Executes *context*. Does not return unless the executable can
    not be run, in which case `DispatchFailure` is raised. '''

    try:
      os.execvpe(context.executable, context.argv, context.env)
    except OSError as exc:
      raise DispatchFailure(exc.errno, exc.strerror or str(exc))
