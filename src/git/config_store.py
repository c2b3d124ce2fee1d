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

"""Key/value access to git config files, local or global, including submodules.

GitConfigStore is the only way the auth helper touches git config. Tests swap
in an in-memory implementation with the same public methods.
"""

import os
import re
from dataclasses import dataclass
from enum import Enum
from typing import List

from src.utils import debug_log
from src.git.environment import EnvironmentOverrideScope
from src.git.git_command_manager import GitCommandManager, escape_config_pattern

# Matches `file:<path>\tremote.origin.url` lines printed by --show-origin --name-only
_SHOW_ORIGIN_PATH = re.compile(r"(?:^|\n)file:([^\t\n]+)\tremote\.origin\.url")


class ConfigScope(Enum):
    LOCAL = "local"
    GLOBAL = "global"


@dataclass(frozen=True)
class ConfigEntry:
    key: str
    value: str
    scope: ConfigScope


class GitConfigStore:
    """Git config operations backed by the git CLI."""

    def __init__(self, git: GitCommandManager):
        self._git = git

    @property
    def git(self) -> GitCommandManager:
        return self._git

    @property
    def environment(self) -> EnvironmentOverrideScope:
        return self._git.environment

    def config_path(self, scope: ConfigScope = ConfigScope.LOCAL) -> str:
        """Path of the file that backs the scope; the global file follows the HOME override."""
        if scope == ConfigScope.GLOBAL:
            home = self.environment.get("HOME") or os.path.expanduser("~")
            return os.path.join(home, ".gitconfig")
        return os.path.join(self._git.get_working_directory(), ".git", "config")

    def set(self, key: str, value: str, scope: ConfigScope = ConfigScope.LOCAL, append: bool = False) -> None:
        self._git.config(key, value, global_config=scope == ConfigScope.GLOBAL, add=append)

    def unset(self, key: str, scope: ConfigScope = ConfigScope.LOCAL) -> bool:
        return self._git.try_config_unset(key, global_config=scope == ConfigScope.GLOBAL)

    def exists(self, key: str, scope: ConfigScope = ConfigScope.LOCAL) -> bool:
        return self._git.config_exists(key, global_config=scope == ConfigScope.GLOBAL)

    def find_by_pattern(self, pattern: str, scope: ConfigScope = ConfigScope.LOCAL) -> List[ConfigEntry]:
        output = self._git.config_get_regexp(pattern, global_config=scope == ConfigScope.GLOBAL)
        entries = []
        for line in output.splitlines():
            if not line.strip():
                continue
            key, _, value = line.partition(" ")
            entries.append(ConfigEntry(key=key, value=value, scope=scope))
        return entries

    # --- Submodules ---

    def apply_to_submodules(self, command: str, recursive: bool, best_effort: bool = False) -> str:
        """
        Runs the same command inside every submodule and returns the combined stdout.

        With best_effort the command is wrapped so a failure in one submodule does not
        stop the walk (used for unset operations). Otherwise the first failure raises
        CommandExecutionError.
        """
        if best_effort:
            # wrap the pipeline in quotes so submodule foreach runs all of it, not just the first part
            command = f'sh -c "{command} || :"'
        return self._git.submodule_foreach(command, recursive)

    def set_in_submodules(self, key: str, value: str, recursive: bool, append: bool = False) -> None:
        add = "--add " if append else ""
        self.apply_to_submodules(f"git config --local {add}'{key}' '{value}'", recursive)

    def unset_in_submodules(self, key: str, recursive: bool = True) -> None:
        pattern = escape_config_pattern(key)
        self.apply_to_submodules(
            f"git config --local --name-only --get-regexp '{pattern}' && git config --local --unset-all '{key}'",
            recursive,
            best_effort=True
        )

    def set_placeholder_in_submodules(self, key: str, placeholder: str, recursive: bool) -> List[str]:
        """Writes the placeholder into each submodule's local config and returns those config file paths."""
        output = self.apply_to_submodules(
            f"sh -c \"git config --local '{key}' '{placeholder}' && "
            f"git config --local --show-origin --name-only --get-regexp remote.origin.url\"",
            recursive
        )
        paths = []
        for match in _SHOW_ORIGIN_PATH.finditer(output):
            path = match.group(1)
            if not os.path.isabs(path):
                path = os.path.join(self._git.get_working_directory(), path)
            paths.append(path)
        debug_log(f"Found {len(paths)} submodule config file(s)")
        return paths
