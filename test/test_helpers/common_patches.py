"""Shared patches and utilities for all tests.

This module provides reusable patch lists for the process and network
boundaries of the action: git subprocesses, HTTP calls and workflow commands.
"""

from unittest.mock import patch

# Git subprocess patches - CRITICAL: prevents git from touching the real repository config
GIT_COMMAND_PATCHES = [
    'src.git.git_command_manager.run_command',
    'src.git.git_command_manager.try_run_command',
]

# HTTP patches - prevent real network access from the version notice
HTTP_PATCHES = [
    'src.version_check.requests',
]

# Workflow command patches - keep ::group:: and output writes out of the test log
WORKFLOW_COMMAND_PATCHES = [
    'src.main.set_output',
    'src.main.start_group',
    'src.main.end_group',
]

# Combined common patches (all of the above)

def setup_patch_list(test_case, patch_list):
    """Helper function to set up a list of patches in a test case.

    Args:
        test_case: The unittest.TestCase instance
        patch_list: List of patch target strings

    Returns:
        Dict of patch target -> mock

    Example:
        class TestMyClass(unittest.TestCase):
            def setUp(self):
                self.mocks = setup_patch_list(self, GIT_COMMAND_PATCHES)
    """
    mocks = {}
    for patch_target in patch_list:
        patcher = patch(patch_target)
        mocks[patch_target] = patcher.start()
        test_case.addCleanup(patcher.stop)
    return mocks


def setup_git_patches_with_defaults(test_case):
    """Set up git command patches with default return values.

    run_command returns an empty stdout and try_run_command reports success.

    Args:
        test_case: The unittest.TestCase instance

    Returns:
        Dict of patch target -> mock
    """
    mocks = setup_patch_list(test_case, GIT_COMMAND_PATCHES)
    mocks['src.git.git_command_manager.run_command'].return_value = ""
    mocks['src.git.git_command_manager.try_run_command'].return_value = True
    return mocks
