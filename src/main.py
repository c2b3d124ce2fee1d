#-
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

import sys
import os
from datetime import datetime

# Add the project root to the Python path to allow for absolute imports
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from src.utils import debug_log, log, error_exit, start_group, end_group, set_output, CommandExecutionError  # noqa: E402
from src.version_check import do_version_check  # noqa: E402
from src.config import get_config  # noqa: E402
from src.errors import ActionError, FailureCategory  # noqa: E402
from src.git.auth_helper import GitAuthHelper  # noqa: E402
from src.git.config_store import GitConfigStore  # noqa: E402
from src.git.git_command_manager import GitCommandManager  # noqa: E402
from src.github.github_api_client import GitHubApiClient  # noqa: E402
from src.github.models import PullRequest  # noqa: E402
from src.github.pull_request_service import PullRequestService  # noqa: E402


def create_github_api_client(config) -> GitHubApiClient:
    """Create the GitHub API client for the configured repository."""
    return GitHubApiClient(
        token=config.github_token,
        owner=config.repo_owner,
        repo=config.repo_name,
        base_url=config.github_api_url,
        user_agent=config.USER_AGENT
    )


def create_git_auth_helper(config) -> GitAuthHelper:
    """Create the auth helper bound to the workspace repository."""
    git = GitCommandManager(str(config.repo_root))
    return GitAuthHelper(GitConfigStore(git), config.git_source_settings())


def write_outputs(pr: PullRequest) -> None:
    set_output("pull-request-number", pr.number)
    set_output("pull-request-url", pr.html_url)
    set_output("pull-request-operation", pr.action.value)
    set_output("pull-request-created", pr.created)
    set_output("pull-request-head-sha", pr.head_sha)
    set_output("pull-request-merged", pr.merged)


def cleanup_git_auth(auth_helper: GitAuthHelper) -> None:
    """Removes credentials and the temporary HOME. Problems are reported as warnings only."""
    result = auth_helper.remove_auth()
    result.merge(auth_helper.remove_global_config())
    if result.ok:
        debug_log(f"Removed git credentials: {', '.join(result.removed) or 'nothing to remove'}")
    else:
        log(f"Git credential cleanup finished with {len(result.warnings)} warning(s)", is_warning=True)


def run(config=None, client=None, auth_helper=None) -> PullRequest:
    """
    Creates (or finds) the pull request and optionally merges it.

    Git credentials, when requested, are configured before any work and removed
    afterwards on every exit path. persist_credentials keeps them only after a
    successful run.
    """
    config = config or get_config()
    client = client or create_github_api_client(config)
    service = PullRequestService.from_config(config, client)

    if config.configure_git_auth and auth_helper is None:
        auth_helper = create_git_auth_helper(config)

    succeeded = False
    try:
        if auth_helper is not None:
            start_group("Setting up auth")
            try:
                auth_helper.configure_auth()
                auth_helper.configure_submodule_auth()
            finally:
                end_group()

        start_group("Creating pull request")
        try:
            pr = service.create_pull_request(config.source_branch, config.target_branch)
            log(f"Pull request #{pr.number} {pr.action.value}: {pr.html_url}")

            if config.auto_merge:
                pr = service.merge_pull_request_with_retries(pr, config.max_merge_retries)
        finally:
            end_group()

        write_outputs(pr)
        succeeded = True
        return pr
    finally:
        # Credentials are only left in place after a successful run
        if auth_helper is not None and (not config.persist_credentials or not succeeded):
            start_group("Removing auth")
            try:
                cleanup_git_auth(auth_helper)
            finally:
                end_group()


def main():
    """Entry point for the action."""
    start_time = datetime.now()
    log("--- Starting GitHub Pull Request Action ---")
    debug_log(f"Start time: {start_time.strftime('%Y-%m-%d %H:%M:%S')}")

    # --- Version Check ---
    do_version_check()

    try:
        run()
    except ActionError as e:
        error_exit(str(e), e.failure_category.value)
    except CommandExecutionError as e:
        error_exit(f"Git command failed: {e}", FailureCategory.GIT_COMMAND_FAILURE.value)
    except Exception as e:
        error_exit(f"Unexpected error: {e}", FailureCategory.GENERAL_FAILURE.value)

    log(f"\n--- Action finished (total runtime: {datetime.now() - start_time}) ---")


if __name__ == "__main__":
    main()
