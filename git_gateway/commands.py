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
''' Parsing of the command the SSH client asked to run. '''

import collections
import enum
import shlex

ANNEX_HOME_PREFIX = '~/'


class CommandKind(enum.Enum):
  UPLOAD_PACK = 'git-upload-pack'
  RECEIVE_PACK = 'git-receive-pack'
  UPLOAD_ARCHIVE = 'git-upload-archive'
  ANNEX_SHELL = 'git-annex-shell'
  UNRECOGNIZED = None

  @property
  def is_git(self):
    ''' True for the commands that are executed as plain Git
    executables (`git-upload-pack` and friends). '''

    return self in GIT_COMMANDS


GIT_COMMANDS = frozenset([CommandKind.UPLOAD_PACK, CommandKind.RECEIVE_PACK,
  CommandKind.UPLOAD_ARCHIVE])


class ParseFailure(ValueError):
  pass


class ParsedCommand(collections.namedtuple('ParsedCommand',
    'kind repo_name annex_command annex_args')):
  ''' The result of `parse_command()`. *annex_command* and *annex_args*
  are only populated for `CommandKind.ANNEX_SHELL`. '''

  def __new__(cls, kind, repo_name=None, annex_command=None, annex_args=()):
    return super().__new__(cls, kind, repo_name, annex_command,
      tuple(annex_args))


def parse_command(origin_command):
  ''' Splits *origin_command* into shell words and classifies it. Raises
  `ParseFailure` if the command can not be split (eg. unbalanced quotes),
  or lacks the repository argument of a known command. Unknown and empty
  commands are not an error, they yield `CommandKind.UNRECOGNIZED`. '''

  try:
    tokens = shlex.split(origin_command)
  except ValueError as exc:
    raise ParseFailure(str(exc))
  if not tokens:
    return ParsedCommand(CommandKind.UNRECOGNIZED)

  try:
    kind = CommandKind(tokens[0])
  except ValueError:
    return ParsedCommand(CommandKind.UNRECOGNIZED)

  if kind is CommandKind.ANNEX_SHELL:
    if len(tokens) < 3:
      raise ParseFailure('{} requires a command and a repository'
        .format(tokens[0]))
    repo_name = tokens[2]
    # git-annex clients address the repository relative to the home.
    if repo_name.startswith(ANNEX_HOME_PREFIX):
      repo_name = repo_name[len(ANNEX_HOME_PREFIX):]
    return ParsedCommand(kind, repo_name, tokens[1], tokens[3:])

  if len(tokens) < 2:
    raise ParseFailure('{} requires a repository'.format(tokens[0]))
  return ParsedCommand(kind, tokens[1])
