import errno
import os
from unittest import mock

import pytest

from git_gateway.auth import AccessDecision, Check, DENIED
from git_gateway.commands import parse_command
from git_gateway.dispatch import DispatchFailure, ExecutionContext, ProcessDispatcher
from git_gateway.dispatch import UnsafeRepositoryPath, build_context

ROOT = '/srv/repos'


def test_git_command_context():
  command = parse_command("git-upload-pack '~/group/project.git'")
  context = build_context(command, AccessDecision(True, Check.DIRECT), 'key-3',
    ROOT, environ={'PATH': '/usr/bin'})
  assert context.executable == 'git-upload-pack'
  assert context.argv == ['git-upload-pack', '/srv/repos/~/group/project.git']
  assert context.repo_path == '/srv/repos/~/group/project.git'
  assert context.env == {'PATH': '/usr/bin', 'GL_ID': 'key-3'}


def test_annex_read_only_context():
  command = parse_command('git-annex-shell copy ~/group/project.git --to=origin')
  context = build_context(command, AccessDecision(True, Check.ANNEX_READ),
    'key-3', ROOT, environ={})
  assert context.executable == 'git-annex-shell'
  assert context.argv[1:] == ['copy', '/srv/repos/group/project.git', '--to=origin']
  assert context.env == {
    'GL_ID': 'key-3',
    'GIT_ANNEX_SHELL_LIMITED': '1',
    'GIT_ANNEX_SHELL_READONLY': '1',
    'GIT_ANNEX_SHELL_DIRECTORY': '/srv/repos/group/project.git',
  }


def test_annex_write_context_is_not_read_only():
  command = parse_command('git-annex-shell recvkey ~/group/project.git KEY')
  context = build_context(command, AccessDecision(True, Check.ANNEX_WRITE),
    'key-3', ROOT, environ={'GIT_ANNEX_SHELL_READONLY': '1'})
  assert context.env['GIT_ANNEX_SHELL_LIMITED'] == '1'
  assert 'GIT_ANNEX_SHELL_READONLY' not in context.env
  assert context.argv == ['git-annex-shell', 'recvkey',
    '/srv/repos/group/project.git', 'KEY']


def test_absolute_repo_name_stays_in_root():
  command = parse_command('git-receive-pack /group/project.git')
  context = build_context(command, AccessDecision(True, Check.DIRECT), 'key-3',
    ROOT, environ={})
  assert context.repo_path == '/srv/repos/group/project.git'


@pytest.mark.parametrize('repo', ['../etc.git', 'group/../../etc.git', '.'])
def test_paths_outside_root_are_refused(repo):
  command = parse_command('git-upload-pack {}'.format(repo))
  with pytest.raises(UnsafeRepositoryPath):
    build_context(command, AccessDecision(True, Check.DIRECT), 'key-3', ROOT,
      environ={})


def test_containment_check_can_be_disabled():
  command = parse_command('git-upload-pack ../other/project.git')
  context = build_context(command, AccessDecision(True, Check.DIRECT), 'key-3',
    ROOT, environ={}, restrict=False)
  assert context.repo_path == '/srv/repos/../other/project.git'


def test_denied_decision_has_no_context():
  command = parse_command('git-upload-pack group/project.git')
  with pytest.raises(ValueError):
    build_context(command, DENIED, 'key-3', ROOT, environ={})


def test_dispatcher_execs():
  context = ExecutionContext('git-upload-pack', ['git-upload-pack', '/r/p.git'],
    {'GL_ID': 'key-1'}, '/r/p.git')
  with mock.patch('os.execvpe') as execvpe:
    ProcessDispatcher().dispatch(context)
  execvpe.assert_called_once_with('git-upload-pack',
    ['git-upload-pack', '/r/p.git'], {'GL_ID': 'key-1'})


def test_dispatcher_failure():
  context = ExecutionContext('git-upload-pack', ['git-upload-pack', '/r/p.git'],
    {}, '/r/p.git')
  error = FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT))
  with mock.patch('os.execvpe', side_effect=error):
    with pytest.raises(DispatchFailure) as excinfo:
      ProcessDispatcher().dispatch(context)
  assert excinfo.value.errno == errno.ENOENT


@pytest.mark.parametrize('repo', ['..project.git', 'group/..hidden.git'])
def test_dotted_names_stay_inside_root(repo):
  command = parse_command('git-upload-pack {}'.format(repo))
  context = build_context(command, AccessDecision(True, Check.DIRECT), 'key-1',
    ROOT, environ={})
  assert context.repo_path == '/srv/repos/' + repo
