#!/usr/bin/env python
# -
# #%L
# GitHub Pull Request Action
# %%
# Copyright (C) 2025 Contrast Security, Inc.
# %%
# Contact: support@contrastsecurity.com
# License: Commercial
# NOTICE: This Software and the patented inventions embodied within may only be
# used as part of Contrast Security's commercial offerings. Even though it is
# made available through public repositories, use of this Software is subject to
# the applicable End User Licensing Agreement found at
# https://www.contrastsecurity.com/enduser-terms-0317a or as otherwise agreed
# between Contrast Security and the End User. The Software may not be reverse
# engineered, modified, repackaged, sold, redistributed or otherwise used in a
# way not consistent with the End User License Agreement.
# #L%
#

import unittest
from unittest.mock import patch
from contextlib import contextmanager

# Test setup imports (path is set up by conftest.py)
from setup_test_env import TestEnvironmentMixin
from src import utils
from src.errors import FailureCategory


class TestErrorExit(unittest.TestCase, TestEnvironmentMixin):
    """Tests for the error_exit function in utils.py"""

    def setUp(self):
        """Set up test environment before each test"""
        self.setup_standard_test_env()

    def tearDown(self):
        """Clean up after each test"""
        self.cleanup_standard_test_env()

    @contextmanager
    def assert_system_exit(self, expected_code=1):
        """Context manager to assert that sys.exit was called with the expected code"""
        with self.assertRaises(SystemExit) as cm:
            yield
        self.assertEqual(cm.exception.code, expected_code)

    @patch('src.utils.debug_log')
    @patch('src.utils.safe_print')
    def test_error_exit_with_failure_code(self, mock_print, mock_debug_log):
        """error_exit prints one ::error:: annotation and exits 1"""
        with self.assert_system_exit(1):
            utils.error_exit("Unable to merge pull request #4 after 3 attempt(s)",
                             FailureCategory.EXCEEDED_MERGE_ATTEMPTS.value)

        mock_print.assert_called_once_with("::error::Unable to merge pull request #4 after 3 attempt(s)", flush=True)
        mock_debug_log.assert_called_once_with("Failure category: EXCEEDED_MERGE_ATTEMPTS")

    @patch('src.utils.debug_log')
    @patch('src.utils.safe_print')
    def test_error_exit_defaults_to_general_failure(self, _mock_print, mock_debug_log):
        """Without a failure code the general category is reported"""
        with self.assert_system_exit(1):
            utils.error_exit("boom")

        mock_debug_log.assert_called_once_with("Failure category: GENERAL_FAILURE")

    @patch('src.utils.debug_log')
    @patch('src.utils.safe_print')
    def test_error_exit_redacts_masked_values(self, mock_print, _mock_debug_log):
        """Masked secrets never reach the error annotation"""
        utils._masked_values.add("s3cret-value")
        try:
            with self.assert_system_exit(1):
                utils.error_exit("token s3cret-value rejected")
        finally:
            utils._masked_values.discard("s3cret-value")

        mock_print.assert_called_once_with("::error::token *** rejected", flush=True)


if __name__ == '__main__':
    unittest.main()
