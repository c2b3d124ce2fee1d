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

import json
import os
from pathlib import Path
from typing import Any, List, Optional

from src.errors import PreconditionError
from src.git.git_source_settings import GitSourceSettings
from src.github.constants import DEFAULT_API_URL, MAX_RETRY_DELAY_SECONDS, VALID_MERGE_METHODS
from src.utils import add_mask, debug_log, log


class Config:
    """
    Configuration manager for the pull request action.
    Handles loading, validating, and accessing the action inputs (INPUT_* variables)
    and the runner environment.
    """

    # Preset values
    VERSION = "v1.0.0"
    USER_AGENT = f"github-pull-request-action {VERSION}"
    DEFAULT_MAX_MERGE_RETRIES = 5
    HARD_CAP_MERGE_RETRIES = 20
    DEFAULT_MERGE_RETRY_DELAY = 10

    def __init__(self, env_vars=None, testing: bool = False):
        """
        Initialize the configuration manager.

        Args:
            env_vars: Optional dictionary of environment variables (for testing)
            testing: When True, missing required values do not raise
        """
        self.env_vars = env_vars if env_vars is not None else os.environ
        self.testing = testing
        self._load_config()

    def _get_env_var(self, var_name: str, required: bool = True, default: Optional[Any] = None) -> Optional[str]:
        """Gets an environment variable or raises if required and not found."""
        value = self.env_vars.get(var_name)
        if required and not value and not self.testing:
            raise PreconditionError(f"Required environment variable {var_name} is not set.")
        return value if value else default

    def _get_input(self, name: str, required: bool = False, default: Optional[Any] = None) -> Optional[str]:
        """Action inputs arrive as INPUT_<NAME> (upper-cased) environment variables."""
        value = self.env_vars.get(f"INPUT_{name.upper()}")
        if value is not None:
            value = value.strip()
        if required and not value and not self.testing:
            raise PreconditionError(f"Input required and not supplied: {name}")
        return value if value else default

    def _get_bool_input(self, name: str, default: bool = False) -> bool:
        value = self._get_input(name, required=False, default=None)
        if value is None:
            return default
        return value.lower() == "true"

    def _load_config(self):
        """Loads all configuration from environment variables."""

        # --- Core Settings ---
        self.debug_mode = self._get_bool_input("debug_mode", default=False)

        # --- Repository ---
        self.github_token = self._get_input("github_token", required=True)
        if self.github_token:
            add_mask(self.github_token)
        self.github_repository = self._get_env_var("GITHUB_REPOSITORY", required=False, default="")
        default_owner, _, default_repo = (self.github_repository or "").partition("/")
        self.repo_owner = self._get_input("repo_owner", default=default_owner or None)
        self.repo_name = self._get_input("repo_name", default=default_repo or None)
        if not (self.repo_owner and self.repo_name) and not self.testing:
            raise PreconditionError("Repository owner and name could not be determined; set repo_owner and repo_name.")

        # --- Pull request ---
        self.source_branch = self._get_input("source_branch", required=True)
        self.target_branch = self._get_input("target_branch", required=True)
        self.pr_title = self._get_input(
            "pr_title", default=f"Merge {self.source_branch} into {self.target_branch}"
        )
        self.pr_body = self._get_input("pr_body", default="")
        self.draft = self._get_bool_input("draft", default=False)
        self.require_middle_branch = self._get_bool_input("require_middle_branch", default=False)

        # --- Merge ---
        self.auto_merge = self._get_bool_input("auto_merge", default=False)
        self.max_merge_retries = self._get_max_merge_retries()
        self.merge_method = self._get_merge_method()
        self.merge_retry_delay = self._get_merge_retry_delay()
        self.merge_conflict_statuses = self._parse_status_list("merge_conflict_statuses")
        self.merge_transient_statuses = self._parse_status_list("merge_transient_statuses")

        # --- Git authentication ---
        self.configure_git_auth = self._get_bool_input("configure_git_auth", default=False)
        self.ssh_key = self._get_input("ssh_key", default="")
        self.ssh_known_hosts = self._get_input("ssh_known_hosts", default="")
        self.ssh_strict = self._get_bool_input("ssh_strict", default=True)
        self.persist_credentials = self._get_bool_input("persist_credentials", default=False)
        self.submodules_recursive = self._get_bool_input("submodules_recursive", default=False)

        # --- GitHub endpoints ---
        self.github_server_url = self._get_input(
            "github_server_url", default=self._get_env_var("GITHUB_SERVER_URL", required=False)
        )
        self.github_api_url = self._get_env_var("GITHUB_API_URL", required=False, default=DEFAULT_API_URL)
        self.workflow_organization_id = self._get_workflow_organization_id()

        # --- Paths ---
        self.repo_root = Path(self._get_env_var("GITHUB_WORKSPACE", required=False, default=os.getcwd())).resolve()

        # Debug logs for configuration
        debug_log(f"Repository: {self.repo_owner}/{self.repo_name}")
        debug_log(f"Repository Root: {self.repo_root}")
        debug_log(f"Debug Mode: {self.debug_mode}")
        debug_log(f"Source Branch: {self.source_branch}")
        debug_log(f"Target Branch: {self.target_branch}")
        debug_log(f"Require Middle Branch: {self.require_middle_branch}")
        debug_log(f"Auto Merge: {self.auto_merge}")
        debug_log(f"Max Merge Retries: {self.max_merge_retries}")
        debug_log(f"Merge Method: {self.merge_method}")
        debug_log(f"Configure Git Auth: {self.configure_git_auth}")
        debug_log(f"Persist Credentials: {self.persist_credentials}")

    def _get_max_merge_retries(self) -> int:
        """Validates and normalizes the max_merge_retries input."""
        default_retries = self.DEFAULT_MAX_MERGE_RETRIES
        hard_cap = self.HARD_CAP_MERGE_RETRIES
        try:
            retries = int(self._get_input("max_merge_retries", default=str(default_retries)))
        except (ValueError, TypeError):
            log(f"Invalid max_merge_retries value. Using default: {default_retries}", is_warning=True)
            return default_retries

        if retries < 0:
            log(f"max_merge_retries was negative, using default: {default_retries}", is_warning=True)
            return default_retries
        if retries > hard_cap:
            log(f"max_merge_retries ({retries}) exceeded hard cap ({hard_cap}). Using {hard_cap}.", is_warning=True)
            return hard_cap
        debug_log(f"Using max_merge_retries from config: {retries}")
        return retries

    def _get_merge_method(self) -> str:
        method = self._get_input("merge_method", default="merge").lower()
        if method not in VALID_MERGE_METHODS:
            log(f"'{method}' is not a valid merge method. Must be one of {list(VALID_MERGE_METHODS)}. Using merge.",
                is_warning=True)
            return "merge"
        return method

    def _get_merge_retry_delay(self) -> int:
        default_delay = self.DEFAULT_MERGE_RETRY_DELAY
        try:
            delay = int(self._get_input("merge_retry_delay", default=str(default_delay)))
        except (ValueError, TypeError):
            log(f"Invalid merge_retry_delay value. Using default: {default_delay}", is_warning=True)
            return default_delay
        if delay < 0:
            log(f"merge_retry_delay was negative, using default: {default_delay}", is_warning=True)
            return default_delay
        return min(delay, MAX_RETRY_DELAY_SECONDS)

    def _parse_status_list(self, name: str) -> Optional[List[int]]:
        """Parse a comma separated list of HTTP status codes. None means use the classifier defaults."""
        raw = self._get_input(name, default=None)
        if not raw:
            return None
        statuses = []
        for part in raw.split(","):
            part = part.strip()
            if not part:
                continue
            try:
                status = int(part)
            except ValueError:
                log(f"'{part}' in {name} is not an HTTP status code; disregarding it.", is_warning=True)
                continue
            if 100 <= status <= 599:
                statuses.append(status)
            else:
                log(f"'{part}' in {name} is out of the HTTP status range; disregarding it.", is_warning=True)
        if not statuses:
            log(f"No valid status codes in {name}. Using defaults.", is_warning=True)
            return None
        return statuses

    def _get_workflow_organization_id(self) -> Optional[str]:
        """Reads the repository owner id from the event payload when the owner is an organization."""
        event_path = self._get_env_var("GITHUB_EVENT_PATH", required=False)
        if not event_path or not os.path.exists(event_path):
            return None
        try:
            with open(event_path, "r", encoding="utf-8") as f:
                payload = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            debug_log(f"Could not read event payload {event_path}: {e}")
            return None
        owner = (payload.get("repository") or {}).get("owner") or {}
        if owner.get("type") == "Organization" and owner.get("id") is not None:
            return str(owner["id"])
        return None

    def git_source_settings(self) -> GitSourceSettings:
        return GitSourceSettings(
            auth_token=self.github_token or "",
            ssh_key=self.ssh_key,
            ssh_known_hosts=self.ssh_known_hosts,
            ssh_strict=self.ssh_strict,
            persist_credentials=self.persist_credentials,
            nested_submodules=self.submodules_recursive,
            github_server_url=self.github_server_url,
            workflow_organization_id=self.workflow_organization_id,
        )


_config_instance: Optional[Config] = None


def get_config(testing: bool = False) -> Config:
    global _config_instance
    if _config_instance is None:
        _config_instance = Config(testing=testing)
    return _config_instance


def reset_config():
    global _config_instance
    _config_instance = None
