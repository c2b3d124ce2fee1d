#!/usr/bin/env python3
"""Tests for test environment setup helper."""

import os
import unittest

# Test setup imports (path is set up by conftest.py)
from setup_test_env import (
    get_standard_test_env_vars,
    setup_test_environment,
    create_temp_repo_dir,
    cleanup_temp_dir
)


class TestSetupTestEnv(unittest.TestCase):
    """Test cases for test environment setup helper."""

    def test_get_standard_test_env_vars(self):
        """Test that standard environment variables are returned."""
        env_vars = get_standard_test_env_vars()

        # Check that all required variables are present
        required_vars = [
            'INPUT_GITHUB_TOKEN', 'INPUT_SOURCE_BRANCH', 'INPUT_TARGET_BRANCH',
            'GITHUB_REPOSITORY', 'GITHUB_WORKSPACE', 'TESTING'
        ]

        for var in required_vars:
            self.assertIn(var, env_vars, f"Missing required environment variable: {var}")

        # Check specific values
        self.assertEqual(env_vars['INPUT_TARGET_BRANCH'], 'main')
        self.assertEqual(env_vars['TESTING'], 'true')

    def test_setup_test_environment_applies_extra_vars(self):
        """Extra variables override the standard ones while the patch is active."""
        patcher = setup_test_environment({'INPUT_TARGET_BRANCH': 'develop'})
        patcher.start()
        try:
            self.assertEqual(os.environ['INPUT_TARGET_BRANCH'], 'develop')
            self.assertEqual(os.environ['INPUT_SOURCE_BRANCH'], 'feature')
        finally:
            patcher.stop()

    def test_create_and_cleanup_temp_dir(self):
        """Test temporary directory creation and cleanup."""
        # Create temp directory
        temp_dir = create_temp_repo_dir()

        # Should exist and be a directory
        self.assertTrue(temp_dir.exists())
        self.assertTrue(temp_dir.is_dir())

        # Clean up
        cleanup_temp_dir(temp_dir)

        # Should no longer exist
        self.assertFalse(temp_dir.exists())


if __name__ == '__main__':
    unittest.main()
