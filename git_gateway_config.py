# -*- mode: python; tab-width: 2; coding: utf8 -*-
# git_gateway configuration file

import os
import git_gateway

repos_path = os.path.expanduser('~/repositories')
access_controller = git_gateway.ApiAccessController(
  'http://localhost:8080/api/v3/internal', timeout=10)
audit_usernames = False
restrict_repo_paths = True
# Audit log file, eg. '/var/log/git-gateway/git-gateway.log'. None logs to stderr.
log_file = None
log_level = 'INFO'
