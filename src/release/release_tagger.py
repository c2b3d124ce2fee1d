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

"""
Runs semantic-release for a branch and moves the floating tags.

Usage: python -m src.release.release_tagger <branch>
"""

import json
import os
import sys
from typing import List, Optional, Tuple

from packaging.version import InvalidVersion, Version

from src.errors import ActionError, FailureCategory
from src.git.auth_helper import GitAuthHelper
from src.git.config_store import GitConfigStore
from src.git.git_command_manager import GitCommandManager
from src.git.git_source_settings import GitSourceSettings
from src.utils import CommandExecutionError, debug_log, error_exit, log, run_command

RELEASE_BRANCHES = ("main", "next", "develop")
BOT_NAME = "github-actions[bot]"
BOT_EMAIL = "github-actions[bot]@users.noreply.github.com"
UNSET_VERSION = Version("0.0.0")


class ReleaseVersionError(ActionError):
    """semantic-release failed or produced an unusable version."""
    failure_category = FailureCategory.RELEASE_FAILURE


def run_semantic_release(cwd: Optional[str] = None) -> None:
    log("Running semantic versioning")
    try:
        run_command(["npx", "semantic-release", "--debug"], cwd=cwd)
    except CommandExecutionError as e:
        raise ReleaseVersionError(f"semantic-release failed with exit code {e.return_code}") from e


def read_package_version(package_json_path: str) -> str:
    try:
        with open(package_json_path, "r", encoding="utf-8") as f:
            version = json.load(f).get("version")
    except (OSError, json.JSONDecodeError) as e:
        raise ReleaseVersionError(f"Unable to read version from {package_json_path}: {e}") from e
    if not version:
        raise ReleaseVersionError(f"No version found in {package_json_path}")
    log(str(version))
    return str(version)


def validate_release_version(branch: str, version_str: str) -> Version:
    """Release branches must never publish the unset 0.0.0 version."""
    try:
        version = Version(version_str)
    except InvalidVersion as e:
        raise ReleaseVersionError(f"'{version_str}' is not a valid version") from e

    if branch in RELEASE_BRANCHES and version == UNSET_VERSION:
        raise ReleaseVersionError(
            "The current version generated is 0.0.0, we will stop here. Please investigate."
        )
    return version


def floating_tags(branch: str, version: Version) -> List[Tuple[str, str]]:
    """(tag, annotation message) pairs to force-move for the branch."""
    if branch == "develop":
        return [("develop", "latest develop")]
    if branch == "next":
        return [("next", "latest next")]
    if branch == "main":
        major = f"v{version.major}"
        return [("latest", "latest"), (major, major)]
    return []


class ReleaseTagger:
    """Moves the floating tags for a release branch and pushes them."""

    def __init__(self, git: GitCommandManager, auth_helper: Optional[GitAuthHelper] = None):
        self.git = git
        self.auth_helper = auth_helper

    def configure_git_user(self) -> None:
        log("Setting git config")
        self.git.config("user.name", BOT_NAME, global_config=True)
        self.git.config("user.email", BOT_EMAIL, global_config=True)

    def tag(self, branch: str, version: Version) -> List[str]:
        tags = floating_tags(branch, version)
        if not tags:
            debug_log(f"No floating tags for branch '{branch}'")
            return []

        log(f"Create extra tags for {branch}: {', '.join(name for name, _ in tags)}")
        for name, message in tags:
            self.git.exec_git(["tag", "-a", "-f", name, "-m", message])
        self.git.exec_git(["push", "--force", "--tags"])
        return [name for name, _ in tags]

    def run(self, branch: str, version_str: str) -> List[str]:
        version = validate_release_version(branch, version_str)
        try:
            if self.auth_helper is not None:
                self.auth_helper.configure_global_auth()
            self.configure_git_user()
            return self.tag(branch, version)
        finally:
            if self.auth_helper is not None:
                self.auth_helper.remove_global_config()


def main(argv: Optional[List[str]] = None) -> None:
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        error_exit("Usage: release_tagger <branch>", FailureCategory.INVALID_CONFIGURATION.value)
    branch = argv[0]
    workspace = os.environ.get("GITHUB_WORKSPACE") or os.getcwd()

    git = GitCommandManager(workspace)
    token = os.environ.get("GITHUB_TOKEN")
    auth_helper = None
    if token:
        auth_helper = GitAuthHelper(
            GitConfigStore(git),
            GitSourceSettings(auth_token=token, github_server_url=os.environ.get("GITHUB_SERVER_URL"))
        )

    try:
        run_semantic_release(cwd=workspace)
        version = read_package_version(os.path.join(workspace, "package.json"))
        ReleaseTagger(git, auth_helper).run(branch, version)
    except ActionError as e:
        error_exit(str(e), e.failure_category.value)
    except CommandExecutionError as e:
        error_exit(f"Git command failed: {e}", FailureCategory.RELEASE_FAILURE.value)
    except Exception as e:
        error_exit(f"Unexpected error: {e}", FailureCategory.GENERAL_FAILURE.value)


if __name__ == "__main__":
    main()
