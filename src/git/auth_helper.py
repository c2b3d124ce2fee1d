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

"""Git authentication lifecycle for the runner workspace.

Installs the token (and optionally an SSH key) into git config, propagates it
to submodules, and removes every trace again. The token never appears on a git
command line: a placeholder is written first and then replaced in the config
file directly.
"""

import os
import shutil
import uuid
from enum import Enum
from typing import List, Optional
from urllib.parse import urlparse

from src.errors import IntegrityError, PreconditionError
from src.git.cleanup import CleanupResult
from src.git.config_store import ConfigScope, GitConfigStore
from src.git.credentials import (
    CredentialProvisioner,
    TOKEN_PLACEHOLDER_CONFIG_VALUE,
    derive_basic_auth_header,
    read_user_known_hosts,
)
from src.git.git_source_settings import GitSourceSettings
from src.utils import CommandExecutionError, debug_log, log

SSH_COMMAND_KEY = "core.sshCommand"
DEFAULT_SERVER_URL = "https://github.com"
DEFAULT_PORTS = {"https": 443, "http": 80}


class AuthState(Enum):
    UNCONFIGURED = "unconfigured"
    SSH_CONFIGURED = "ssh_configured"
    TOKEN_CONFIGURED = "token_configured"
    ACTIVE = "active"
    REMOVED = "removed"


class GitAuthHelper:
    """
    Owns the credential state injected into git config during a run.

    Typical use:
        helper = GitAuthHelper(GitConfigStore(GitCommandManager(workspace)), settings)
        try:
            helper.configure_auth()
            ...
        finally:
            helper.remove_auth()
            helper.remove_global_config()
    """

    def __init__(self, config_store: GitConfigStore, settings: Optional[GitSourceSettings] = None,
                 provisioner: Optional[CredentialProvisioner] = None):
        self._store = config_store
        self._settings = settings or GitSourceSettings()
        self._environment = config_store.environment
        self._provisioner = provisioner or CredentialProvisioner(self._environment)
        self.state = AuthState.UNCONFIGURED

        # Token auth header
        server_url = self._get_server_url(self._settings.github_server_url)
        origin = self._origin(server_url)
        self.token_config_key = f"http.{origin}/.extraheader"
        self.token_placeholder_config_value = TOKEN_PLACEHOLDER_CONFIG_VALUE
        self.token_config_value = derive_basic_auth_header(self._settings.auth_token)

        # Instead of SSH URL
        self.insteadof_key = f"url.{origin}/.insteadOf"
        self.insteadof_values: List[str] = [f"git@{server_url.hostname}:"]
        if self._settings.workflow_organization_id:
            self.insteadof_values.append(f"org-{self._settings.workflow_organization_id}@github.com:")

        self.ssh_command = ""
        self.temporary_home_path = ""

    @property
    def settings(self) -> GitSourceSettings:
        return self._settings

    @property
    def ssh_key_path(self) -> str:
        return self._provisioner.ssh_key_path

    @property
    def ssh_known_hosts_path(self) -> str:
        return self._provisioner.ssh_known_hosts_path

    def _get_server_url(self, url: Optional[str]):
        if url and url.strip():
            value = url.strip()
        else:
            value = self._environment.get("GITHUB_SERVER_URL") or DEFAULT_SERVER_URL
        return urlparse(value)

    @staticmethod
    def _origin(server_url) -> str:
        """SCHEME://HOSTNAME[:PORT], host lower-cased and a default port dropped."""
        scheme = server_url.scheme.lower()
        origin = f"{scheme}://{(server_url.hostname or '').lower()}"
        if server_url.port and DEFAULT_PORTS.get(scheme) != server_url.port:
            origin += f":{server_url.port}"
        return origin

    # --- Configure ---

    def configure_auth(self) -> None:
        # Remove possible previous values
        self.remove_auth()
        self.state = AuthState.UNCONFIGURED

        self._configure_ssh()
        self._configure_token()
        self.state = AuthState.ACTIVE

    def configure_temp_global_config(self) -> str:
        """Points HOME at a fresh temporary directory holding a copy of the user's .gitconfig."""
        if self.temporary_home_path:
            return os.path.join(self.temporary_home_path, ".gitconfig")

        runner_temp = self._provisioner.runner_temp()
        self.temporary_home_path = os.path.join(runner_temp, str(uuid.uuid4()))
        os.makedirs(self.temporary_home_path, exist_ok=True)

        git_config_path = os.path.join(self._environment.get("HOME") or os.path.expanduser("~"), ".gitconfig")
        new_git_config_path = os.path.join(self.temporary_home_path, ".gitconfig")
        if os.path.exists(git_config_path):
            log(f"Copying '{git_config_path}' to '{new_git_config_path}'")
            shutil.copyfile(git_config_path, new_git_config_path)
        else:
            with open(new_git_config_path, "w", encoding="utf-8"):
                pass

        log(f"Temporarily overriding HOME='{self.temporary_home_path}' before making global git config changes")
        self._environment.set("HOME", self.temporary_home_path)
        return new_git_config_path

    def configure_global_auth(self) -> None:
        new_git_config_path = self.configure_temp_global_config()
        try:
            self._configure_token(new_git_config_path, global_config=True)

            # Configure HTTPS instead of SSH
            self._store.unset(self.insteadof_key, ConfigScope.GLOBAL)
            if not self._settings.ssh_key:
                for insteadof_value in self.insteadof_values:
                    self._store.set(self.insteadof_key, insteadof_value, ConfigScope.GLOBAL, append=True)
        except Exception:
            # Unset in case somehow written to the real global config
            log("Encountered an error when attempting to configure token. Attempting unconfigure.")
            self._store.unset(self.token_config_key, ConfigScope.GLOBAL)
            raise
        self.state = AuthState.ACTIVE

    def configure_submodule_auth(self) -> None:
        # Remove possible previous HTTPS instead of SSH
        self._remove_git_config(self.insteadof_key, submodule_only=True)

        if not self._settings.persist_credentials:
            return

        recursive = self._settings.nested_submodules
        config_paths = self._store.set_placeholder_in_submodules(
            self.token_config_key, self.token_placeholder_config_value, recursive
        )
        for config_path in config_paths:
            debug_log(f"Replacing token placeholder in '{config_path}'")
            self.replace_token_placeholder(config_path)

        if self._settings.ssh_key:
            self._store.set_in_submodules(SSH_COMMAND_KEY, self.ssh_command, recursive)
        else:
            for insteadof_value in self.insteadof_values:
                self._store.set_in_submodules(self.insteadof_key, insteadof_value, recursive, append=True)

    def _configure_ssh(self) -> None:
        if not self._settings.ssh_key:
            return

        self._provisioner.provision_ssh_key(self._settings.ssh_key)
        user_known_hosts_path, user_known_hosts = read_user_known_hosts()
        self._provisioner.provision_known_hosts(
            user_known_hosts, self._settings.ssh_known_hosts, existing_source=user_known_hosts_path
        )

        self.ssh_command = self._provisioner.build_ssh_command(self._settings.ssh_strict)
        log(f"Temporarily overriding GIT_SSH_COMMAND={self.ssh_command}")
        self._environment.set("GIT_SSH_COMMAND", self.ssh_command)

        if self._settings.persist_credentials:
            self._store.set(SSH_COMMAND_KEY, self.ssh_command)
        self.state = AuthState.SSH_CONFIGURED

    def _configure_token(self, config_path: Optional[str] = None, global_config: bool = False) -> None:
        if bool(config_path) != global_config:
            raise ValueError("Unexpected _configure_token parameter combinations")

        scope = ConfigScope.GLOBAL if global_config else ConfigScope.LOCAL
        if not config_path:
            config_path = self._store.config_path(ConfigScope.LOCAL)

        # Placeholder first so the credential never appears in a process argument list
        self._store.set(self.token_config_key, self.token_placeholder_config_value, scope)
        self.replace_token_placeholder(config_path)
        self.state = AuthState.TOKEN_CONFIGURED

    def replace_token_placeholder(self, config_path: str) -> None:
        """Swaps the single placeholder occurrence in the file for the real header value."""
        if not config_path:
            raise PreconditionError("configPath is not defined")

        with open(config_path, "r", encoding="utf-8") as f:
            content = f.read()

        occurrences = content.count(self.token_placeholder_config_value)
        if occurrences != 1:
            raise IntegrityError(
                f"Unable to replace auth placeholder in {config_path}",
                config_path=config_path,
                occurrences=occurrences
            )

        content = content.replace(self.token_placeholder_config_value, self.token_config_value, 1)
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(content)

    # --- Remove ---

    def remove_auth(self) -> CleanupResult:
        result = CleanupResult()
        self._remove_ssh(result)
        self._remove_token(result)
        self.state = AuthState.REMOVED
        return result

    def remove_global_config(self) -> CleanupResult:
        result = CleanupResult()
        if not self.temporary_home_path:
            return result

        debug_log("Unsetting HOME override")
        self._environment.remove("HOME")
        try:
            shutil.rmtree(self.temporary_home_path)
            result.record_removed(self.temporary_home_path)
        except FileNotFoundError:
            result.record_removed(self.temporary_home_path)
        except OSError as e:
            debug_log(str(e))
            result.record_warning(
                self.temporary_home_path,
                f"Failed to remove temporary HOME '{self.temporary_home_path}'"
            )
        self.temporary_home_path = ""
        return result

    def _remove_ssh(self, result: CleanupResult) -> None:
        result.merge(self._provisioner.remove())
        self._environment.remove("GIT_SSH_COMMAND")
        self._remove_git_config(SSH_COMMAND_KEY, result=result)

    def _remove_token(self, result: CleanupResult) -> None:
        # HTTP extra header
        self._remove_git_config(self.token_config_key, result=result)

    def _remove_git_config(self, config_key: str, submodule_only: bool = False,
                           result: Optional[CleanupResult] = None) -> None:
        result = result if result is not None else CleanupResult()

        if not submodule_only:
            if self._store.exists(config_key) and not self._store.unset(config_key):
                result.record_warning(config_key, f"Failed to remove '{config_key}' from the git config")

        try:
            self._store.unset_in_submodules(config_key, recursive=True)
        except CommandExecutionError as e:
            debug_log(str(e))
            result.record_warning(config_key, f"Failed to remove '{config_key}' from submodule git config")
