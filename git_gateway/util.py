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
import logging
import re

KEY_ID_RE = re.compile('key-[0-9]+')
LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s: %(message)s'


def relpath(path, parent):
  ''' Returns *path* relative to *parent* or None if it is not a subpath
  of *parent*. You can also use `issubpath()` if you only want to check
  if a path is a subpath of another. '''

  relpath = os.path.relpath(path, parent)
  if relpath in (os.curdir, os.pardir) or relpath.startswith(os.pardir + os.sep):
    return None
  return relpath


def issubpath(path, parent):
  ''' Returns True if *path* is a true subpath of *parent*, False if not. '''
  return bool(relpath(path, parent))


def extract_key_id(args):
  ''' Finds the SSH key identifier (`key-<digits>`) in the command-line
  arguments the gateway was invoked with. The arguments are joined
  before searching, so the identifier may be passed in any position.
  Returns an empty string if there is none. '''

  match = KEY_ID_RE.search(''.join(args))
  return match.group(0) if match else ''


def join_repo_path(root, repo_name):
  ''' Joins *repo_name* to the repository *root* like a file join: a
  leading slash on the name does not discard the root. The result is
  not normalized. '''

  return os.path.join(root, repo_name.lstrip('/'))


def setup_logging(config):
  ''' Configures the `git_gateway` logger from the *config* module.
  Entries go to `log_file` if one is configured, otherwise to stderr.
  Returns the logger. '''

  logger = logging.getLogger('git_gateway')
  log_file = getattr(config, 'log_file', None)
  if log_file:
    handler = logging.FileHandler(log_file)
  else:
    handler = logging.StreamHandler()
  handler.setFormatter(logging.Formatter(LOG_FORMAT))
  logger.addHandler(handler)
  logger.setLevel(getattr(config, 'log_level', 'INFO'))
  return logger
