import os
import sys
import unittest
from unittest.mock import patch

# Test setup imports (path is set up by conftest.py)
from setup_test_env import create_temp_repo_dir, cleanup_temp_dir
from src import utils
from src.utils import CommandExecutionError, run_command, set_output, try_run_command


class TestWorkflowCommands(unittest.TestCase):

    def setUp(self):
        self.temp_dir = create_temp_repo_dir()
        self.output_path = os.path.join(str(self.temp_dir), "output")

    def tearDown(self):
        cleanup_temp_dir(self.temp_dir)

    def test_set_output_appends_to_github_output(self):
        with patch.dict(os.environ, {"GITHUB_OUTPUT": self.output_path}, clear=True):
            set_output("pull-request-number", 12)
            set_output("pull-request-merged", True)
            set_output("pull-request-created", False)

        with open(self.output_path, encoding="utf-8") as f:
            self.assertEqual(f.read(), "pull-request-number=12\npull-request-merged=true\npull-request-created=false\n")

    @patch('src.utils.safe_print')
    def test_set_output_without_file_uses_legacy_command(self, mock_print):
        with patch.dict(os.environ, {}, clear=True):
            set_output("pull-request-url", "https://github.com/mock/repo/pull/1")

        mock_print.assert_called_once_with(
            "::set-output name=pull-request-url::https://github.com/mock/repo/pull/1", flush=True
        )

    @patch('src.utils.safe_print')
    def test_add_mask_registers_value(self, mock_print):
        try:
            utils.add_mask("hidden-value")
            self.assertEqual(utils.redact("x hidden-value y"), "x *** y")
            mock_print.assert_called_once_with("::add-mask::hidden-value", flush=True)
        finally:
            utils._masked_values.discard("hidden-value")

    @patch('src.utils.safe_print')
    def test_add_mask_ignores_empty(self, mock_print):
        utils.add_mask("")
        mock_print.assert_not_called()

    @patch('src.utils.safe_print')
    def test_groups_and_warning(self, mock_print):
        utils.start_group("Setting up auth")
        utils.warning("careful")
        utils.end_group()

        printed = [c.args[0] for c in mock_print.call_args_list]
        self.assertEqual(printed, ["::group::Setting up auth", "::warning::careful", "::endgroup::"])

    def test_debug_mode_sources(self):
        with patch.dict(os.environ, {"RUNNER_DEBUG": "1"}, clear=True):
            self.assertTrue(utils.is_debug_mode())
        with patch.dict(os.environ, {"INPUT_DEBUG_MODE": "true"}, clear=True):
            self.assertTrue(utils.is_debug_mode())
        with patch.dict(os.environ, {}, clear=True):
            self.assertFalse(utils.is_debug_mode())


class TestRunCommand(unittest.TestCase):

    def test_returns_stripped_stdout(self):
        self.assertEqual(run_command([sys.executable, "-c", "print('  hello  ')"]), "hello")

    def test_env_is_merged_over_process_environment(self):
        output = run_command(
            [sys.executable, "-c", "import os; print(os.environ['PR_ACTION_TEST'] + ':' + str('PATH' in os.environ))"],
            env={"PR_ACTION_TEST": "override"}
        )
        self.assertEqual(output, "override:True")

    @patch('src.utils.log')
    def test_failure_raises_with_details(self, _mock_log):
        with self.assertRaises(CommandExecutionError) as ctx:
            run_command([sys.executable, "-c", "import sys; sys.stderr.write('bad'); sys.exit(3)"])

        self.assertEqual(ctx.exception.return_code, 3)
        self.assertEqual(ctx.exception.stderr, "bad")

    def test_failure_without_check_returns_output(self):
        output = run_command([sys.executable, "-c", "import sys; print('partial'); sys.exit(1)"], check=False)
        self.assertEqual(output, "partial")

    def test_try_run_command(self):
        self.assertTrue(try_run_command([sys.executable, "-c", "pass"]))
        self.assertFalse(try_run_command([sys.executable, "-c", "import sys; sys.exit(1)"]))


if __name__ == '__main__':
    unittest.main()
