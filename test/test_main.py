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
from unittest.mock import MagicMock, call, patch

# Test setup imports (path is set up by conftest.py)
from setup_test_env import TestEnvironmentMixin, get_standard_test_env_vars
from test_helpers import FakeGitHubApi, WORKFLOW_COMMAND_PATCHES, setup_patch_list

from src import main as main_module
from src.config import Config, reset_config
from src.errors import FailureCategory, IntegrityError, MergeRetriesExhaustedError
from src.git.cleanup import CleanupResult
from src.github.models import MergeResponse, PullRequestAction
from src.utils import CommandExecutionError


def make_config(**inputs):
    env = get_standard_test_env_vars()
    for name, value in inputs.items():
        env[f"INPUT_{name.upper()}"] = value
    return Config(env_vars=env, testing=True)


class TestRun(unittest.TestCase, TestEnvironmentMixin):
    """run() against an in-memory GitHub and a mocked auth helper."""

    def setUp(self):
        self.setup_standard_test_env()
        reset_config()
        self.mocks = setup_patch_list(self, WORKFLOW_COMMAND_PATCHES)
        self.set_output = self.mocks['src.main.set_output']

        self.api = FakeGitHubApi()
        self.api.add_branch("main")
        self.api.add_branch("feature", from_branch="main")
        self.api.commit("feature")

        self.auth_helper = MagicMock()
        self.auth_helper.remove_auth.return_value = CleanupResult()
        self.auth_helper.remove_global_config.return_value = CleanupResult()

        self.sleeps = []
        sleep_patcher = patch('src.github.pull_request_service.time.sleep', side_effect=self.sleeps.append)
        sleep_patcher.start()
        self.addCleanup(sleep_patcher.stop)

    def tearDown(self):
        self.cleanup_standard_test_env()
        reset_config()

    def outputs(self):
        return {c.args[0]: c.args[1] for c in self.set_output.call_args_list}

    def test_creates_pull_request_and_writes_outputs(self):
        pr = main_module.run(make_config(), client=self.api)

        self.assertEqual(pr.action, PullRequestAction.CREATED)
        self.assertFalse(pr.merged)
        self.assertEqual(self.outputs(), {
            "pull-request-number": 1,
            "pull-request-url": "https://github.com/mock/repo/pull/1",
            "pull-request-operation": "created",
            "pull-request-created": True,
            "pull-request-head-sha": self.api.branches["feature"],
            "pull-request-merged": False,
        })
        self.assertEqual(self.api.merge_calls, [])

    def test_existing_pull_request_is_found(self):
        self.api.add_pull("feature", "main", title="Merge feature into main")

        pr = main_module.run(make_config(), client=self.api)

        self.assertEqual(pr.action, PullRequestAction.FOUND)
        self.assertEqual(self.outputs()["pull-request-created"], False)

    def test_auto_merge_through_middle_branch(self):
        pr = main_module.run(
            make_config(auto_merge="true", require_middle_branch="true"), client=self.api
        )

        self.assertTrue(pr.merged)
        self.assertEqual(pr.head_ref, "feature-via-main")
        self.assertTrue(self.api.contains("main", self.api.branches["feature"]))
        self.assertEqual(self.outputs()["pull-request-merged"], True)

    def test_auth_configured_and_removed(self):
        main_module.run(make_config(), client=self.api, auth_helper=self.auth_helper)

        self.auth_helper.configure_auth.assert_called_once()
        self.auth_helper.configure_submodule_auth.assert_called_once()
        self.auth_helper.remove_auth.assert_called_once()
        self.auth_helper.remove_global_config.assert_called_once()
        self.assertEqual(self.mocks['src.main.start_group'].call_args_list, [
            call("Setting up auth"), call("Creating pull request"), call("Removing auth"),
        ])

    def test_auth_removed_when_merge_fails(self):
        self.api.merge_script = [MergeResponse(status_code=405, message="Pull Request is not mergeable")] * 2
        config = make_config(auto_merge="true", max_merge_retries="2")

        with self.assertRaises(MergeRetriesExhaustedError):
            main_module.run(config, client=self.api, auth_helper=self.auth_helper)

        self.auth_helper.remove_auth.assert_called_once()
        self.auth_helper.remove_global_config.assert_called_once()
        self.set_output.assert_not_called()
        self.assertEqual(self.sleeps, [10])

    def test_auth_removed_when_configuration_fails(self):
        self.auth_helper.configure_auth.side_effect = CommandExecutionError("git config failed", 255, "git config")

        with self.assertRaises(CommandExecutionError):
            main_module.run(make_config(), client=self.api, auth_helper=self.auth_helper)

        self.auth_helper.remove_auth.assert_called_once()
        self.assertEqual(self.api.pulls, {})

    def test_persist_credentials_skips_cleanup(self):
        main_module.run(make_config(persist_credentials="true"), client=self.api, auth_helper=self.auth_helper)

        self.auth_helper.configure_auth.assert_called_once()
        self.auth_helper.remove_auth.assert_not_called()
        self.auth_helper.remove_global_config.assert_not_called()

    def test_persist_credentials_still_cleans_up_after_failure(self):
        self.auth_helper.configure_submodule_auth.side_effect = IntegrityError(
            "Unable to replace auth placeholder in /tmp/work/.git/modules/lib/config", occurrences=0
        )
        config = make_config(persist_credentials="true")

        with self.assertRaises(IntegrityError):
            main_module.run(config, client=self.api, auth_helper=self.auth_helper)

        self.auth_helper.remove_auth.assert_called_once()
        self.auth_helper.remove_global_config.assert_called_once()
        self.assertEqual(self.api.pulls, {})

    def test_persist_credentials_cleans_up_when_merge_fails(self):
        self.api.merge_script = [MergeResponse(status_code=405, message="Pull Request is not mergeable")]
        config = make_config(persist_credentials="true", auto_merge="true", max_merge_retries="1")

        with self.assertRaises(MergeRetriesExhaustedError):
            main_module.run(config, client=self.api, auth_helper=self.auth_helper)

        self.auth_helper.remove_auth.assert_called_once()

    @patch('src.main.create_git_auth_helper')
    def test_auth_helper_built_only_when_requested(self, mock_create):
        main_module.run(make_config(), client=self.api)
        mock_create.assert_not_called()

        mock_create.return_value = self.auth_helper
        main_module.run(make_config(configure_git_auth="true"), client=self.api)
        mock_create.assert_called_once()
        self.auth_helper.configure_auth.assert_called_once()


class TestCleanupGitAuth(unittest.TestCase):

    @patch('src.main.log')
    def test_cleanup_warnings_do_not_raise(self, mock_log):
        helper = MagicMock()
        failed = CleanupResult()
        failed.record_warning("http.https://github.com/.extraheader", "submodule foreach failed")
        helper.remove_auth.return_value = failed
        helper.remove_global_config.return_value = CleanupResult()

        main_module.cleanup_git_auth(helper)

        mock_log.assert_called_once_with("Git credential cleanup finished with 1 warning(s)", is_warning=True)


class TestMain(unittest.TestCase, TestEnvironmentMixin):

    def setUp(self):
        self.setup_standard_test_env()
        reset_config()
        for target in ('src.main.do_version_check', 'src.main.log', 'src.main.debug_log'):
            patcher = patch(target)
            patcher.start()
            self.addCleanup(patcher.stop)

    def tearDown(self):
        self.cleanup_standard_test_env()
        reset_config()

    @patch('src.main.error_exit', side_effect=SystemExit(1))
    @patch('src.main.run')
    def test_action_error_exits_with_category(self, mock_run, mock_error_exit):
        mock_run.side_effect = MergeRetriesExhaustedError(7, 3, "conflict")

        with self.assertRaises(SystemExit):
            main_module.main()

        mock_error_exit.assert_called_once_with(
            "Unable to merge pull request #7 after 3 attempt(s) (last outcome: conflict)",
            FailureCategory.EXCEEDED_MERGE_ATTEMPTS.value
        )

    @patch('src.main.error_exit', side_effect=SystemExit(1))
    @patch('src.main.run')
    def test_git_failure_exits_with_git_category(self, mock_run, mock_error_exit):
        mock_run.side_effect = CommandExecutionError("boom", 128, "git fetch")

        with self.assertRaises(SystemExit):
            main_module.main()

        self.assertEqual(mock_error_exit.call_args.args[1], FailureCategory.GIT_COMMAND_FAILURE.value)

    @patch('src.main.error_exit', side_effect=SystemExit(1))
    @patch('src.main.run')
    def test_unexpected_error_exits_with_general_failure(self, mock_run, mock_error_exit):
        mock_run.side_effect = FileNotFoundError(2, "No such file or directory", "/tmp/work/.git/modules/lib/config")

        with self.assertRaises(SystemExit):
            main_module.main()

        mock_error_exit.assert_called_once()
        message, category = mock_error_exit.call_args.args
        self.assertTrue(message.startswith("Unexpected error: "))
        self.assertIn("/tmp/work/.git/modules/lib/config", message)
        self.assertEqual(category, FailureCategory.GENERAL_FAILURE.value)

    @patch('src.main.error_exit')
    @patch('src.main.run')
    def test_success_does_not_exit(self, mock_run, mock_error_exit):
        main_module.main()

        mock_run.assert_called_once_with()
        mock_error_exit.assert_not_called()


if __name__ == '__main__':
    unittest.main()
