"""Test helpers package for the pull request action test suite.

This package provides reusable patch lists and in-memory fakes for the
git config and GitHub REST boundaries.
"""

from .common_patches import (
    GIT_COMMAND_PATCHES,
    HTTP_PATCHES,
    WORKFLOW_COMMAND_PATCHES,
    setup_patch_list,
    setup_git_patches_with_defaults,
)
from .fake_git_config_store import FakeGitConfigStore
from .fake_github_api import FakeGitHubApi

__all__ = [
    # Patches
    'GIT_COMMAND_PATCHES',
    'HTTP_PATCHES',
    'WORKFLOW_COMMAND_PATCHES',
    # Utilities
    'setup_patch_list',
    'setup_git_patches_with_defaults',
    # Fakes
    'FakeGitConfigStore',
    'FakeGitHubApi',
]
