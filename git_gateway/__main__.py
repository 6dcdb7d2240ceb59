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
import sys
import argparse

from . import Gateway, Invocation, __version__, util


def get_argument_parser():
  parser = argparse.ArgumentParser(prog='git-gateway', description='''
    git-gateway v{0} - authorizes the Git command in SSH_ORIGINAL_COMMAND
    and executes it.'''.format(__version__))
  parser.add_argument('args', nargs='*',
    help='arguments from the authorized_keys command, containing key-<id>')
  return parser


def main(argv=None, environ=None, config=None):
  parser = get_argument_parser()
  args = parser.parse_args(argv)
  if environ is None:
    environ = os.environ

  invocation = Invocation(util.extract_key_id(args.args),
    environ.pop('SSH_ORIGINAL_COMMAND', None))

  if config is None:
    import git_gateway_config as config
  logger = util.setup_logging(config)
  return Gateway(invocation, config, logger=logger).run()


def main_and_exit():
  sys.exit(main())


if __name__ == '__main__':
  main_and_exit()
