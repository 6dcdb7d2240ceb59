import types

import pytest

from git_gateway import AccessController, AuthorizationUnavailable, Gateway
from git_gateway import Invocation


class FakeController(AccessController):
  ''' Answers `allowed()` from a dictionary of action -> result. A result
  that is an exception instance is raised instead. '''

  def __init__(self, answers=None, user=None):
    self.answers = answers or {}
    self.user = user
    self.calls = []
    self.discover_calls = []

  def allowed(self, action, repo, key_id, ref):
    self.calls.append((action, repo, key_id, ref))
    answer = self.answers.get(action, False)
    if isinstance(answer, Exception):
      raise answer
    return answer

  def discover(self, key_id):
    self.discover_calls.append(key_id)
    if isinstance(self.user, Exception):
      raise self.user
    return self.user


class Dispatched(Exception):
  pass


class FakeDispatcher(object):
  ''' Records the context and raises `Dispatched`, as the real dispatcher
  never returns either. '''

  def __init__(self, failure=None):
    self.failure = failure
    self.contexts = []

  def dispatch(self, context):
    self.contexts.append(context)
    if self.failure:
      raise self.failure
    raise Dispatched(context)


@pytest.fixture
def config(tmp_path):
  return types.SimpleNamespace(repos_path=str(tmp_path / 'repos'),
    audit_usernames=False, restrict_repo_paths=True)


@pytest.fixture
def controller():
  return FakeController()


@pytest.fixture
def dispatcher():
  return FakeDispatcher()


@pytest.fixture
def make_gateway(config, controller, dispatcher):
  def factory(origin_command, key_id='key-42'):
    return Gateway(Invocation(key_id, origin_command), config,
      controller=controller, dispatcher=dispatcher)
  return factory
