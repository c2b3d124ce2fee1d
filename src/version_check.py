import os
from typing import Optional

import requests
from packaging.version import parse as parse_version, Version, InvalidVersion

from src.config import Config
from src.github.constants import DEFAULT_API_URL, REQUEST_TIMEOUT_SECONDS
from src.utils import debug_log, log

HEX_CHARS = "0123456789abcdef"


def normalize_version(version_str: str) -> str:
    """Normalize a version string for comparison by removing 'v' prefix."""
    if version_str and version_str.startswith('v'):
        return version_str[1:]
    return version_str


def safe_parse_version(version_str: str) -> Optional[Version]:
    """Safely parse a version string, handling exceptions."""
    try:
        return parse_version(normalize_version(version_str))
    except (InvalidVersion, TypeError):
        return None


def get_latest_repo_version(repository: str, api_url: str = DEFAULT_API_URL) -> Optional[str]:
    """Fetches the latest release tag of an `owner/name` repository."""
    tags_url = f"{api_url.rstrip('/')}/repos/{repository}/tags"
    debug_log(f"Fetching tags from: {tags_url}")
    try:
        response = requests.get(tags_url, timeout=REQUEST_TIMEOUT_SECONDS)
        response.raise_for_status()
        tags = response.json()
    except requests.exceptions.RequestException as e:
        debug_log(f"Error fetching tags: {e}")
        return None
    except ValueError as e:
        debug_log(f"Tags response was not JSON: {e}")
        return None

    if not tags:
        debug_log("No tags found in the repository.")
        return None

    valid_tags = [tag['name'] for tag in tags if safe_parse_version(tag.get('name'))]
    if not valid_tags:
        debug_log("No valid version tags found in the repository.")
        return None

    valid_tags.sort(key=safe_parse_version, reverse=True)
    debug_log(f"Latest version found: {valid_tags[0]}")
    return valid_tags[0]


def check_for_newer_version(current_version, latest_version_str: str) -> Optional[str]:
    """Returns latest_version_str if it is newer than current_version, otherwise None.

    Args:
        current_version: Either a string version or a Version object
        latest_version_str: String representation of the latest version
    """
    current_v = current_version if isinstance(current_version, Version) else safe_parse_version(current_version)
    latest_v = safe_parse_version(latest_version_str)
    if current_v is None or latest_v is None:
        debug_log(f"Error parsing versions for comparison: {current_version}, {latest_version_str}")
        return None

    debug_log(f"Comparing versions: current={current_v} latest={latest_v}")
    if latest_v > current_v:
        return latest_version_str
    return None


def do_version_check():
    """
    Logs an upgrade notice when the running action is older than the newest tag
    of its repository. Never fails the run.
    """
    debug_log("Starting version check")

    action_repository = os.environ.get("GITHUB_ACTION_REPOSITORY")
    github_action_ref = os.environ.get("GITHUB_ACTION_REF")
    github_ref = os.environ.get("GITHUB_REF")

    if not action_repository:
        debug_log("GITHUB_ACTION_REPOSITORY is not set. Version checking is skipped.")
        return

    current_action_version = Config.VERSION
    if github_action_ref:
        if all(c in HEX_CHARS for c in github_action_ref.lower()):
            debug_log(f"Running action from SHA: {github_action_ref}. Skipping version comparison against tags.")
            return
        ref_version = github_action_ref.replace("refs/tags/", "")
        if not safe_parse_version(ref_version):
            debug_log(f"Running action from branch '{ref_version}'. Version checking is only meaningful for release tags.")
            return
        current_action_version = ref_version
    elif github_ref and github_ref.startswith("refs/heads/"):
        debug_log(f"Running from branch '{github_ref[len('refs/heads/'):]}'. Using built-in version {current_action_version}.")

    parsed_version = safe_parse_version(current_action_version)
    if not parsed_version:
        debug_log(f"Could not parse current action version '{current_action_version}'. Skipping version check.")
        return
    debug_log(f"Current action version: {current_action_version}")

    latest_repo_version = get_latest_repo_version(
        action_repository, os.environ.get("GITHUB_API_URL") or DEFAULT_API_URL
    )
    if not latest_repo_version:
        debug_log("Could not determine the latest version from the repository.")
        return

    newer_version = check_for_newer_version(parsed_version, latest_repo_version)
    if newer_version:
        log(f"INFO: A newer version of this action is available ({newer_version}).")
        log(f"INFO: You are running version {current_action_version}.")
        log(f"INFO: Please update your workflow to use the latest version of the action like this: "
            f"{action_repository}@{newer_version}")
