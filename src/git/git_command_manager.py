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

from typing import List, Optional

from src.utils import run_command, try_run_command, debug_log
from src.git.environment import EnvironmentOverrideScope


class GitCommandManager:
    """
    Thin wrapper over the git CLI for one working directory.

    Every git process gets the overrides held by the environment scope
    (HOME, GIT_SSH_COMMAND), so global config writes can be redirected
    without touching os.environ.
    """

    def __init__(self, working_directory: str, environment: Optional[EnvironmentOverrideScope] = None):
        self._working_directory = str(working_directory)
        self._environment = environment or EnvironmentOverrideScope()

    @property
    def environment(self) -> EnvironmentOverrideScope:
        return self._environment

    def get_working_directory(self) -> str:
        return self._working_directory

    def set_environment_variable(self, name: str, value: str) -> None:
        self._environment.set(name, value)

    def remove_environment_variable(self, name: str) -> None:
        self._environment.remove(name)

    def config(self, key: str, value: str, global_config: bool = False, add: bool = False) -> None:
        args = ["config", "--global" if global_config else "--local"]
        if add:
            args.append("--add")
        args.extend([key, value])
        self.exec_git(args)

    def config_exists(self, key: str, global_config: bool = False) -> bool:
        pattern = escape_config_pattern(key)
        return self.try_git([
            "config", "--global" if global_config else "--local", "--name-only", "--get-regexp", pattern
        ])

    def try_config_unset(self, key: str, global_config: bool = False) -> bool:
        return self.try_git(["config", "--global" if global_config else "--local", "--unset-all", key])

    def config_get_regexp(self, pattern: str, global_config: bool = False) -> str:
        """Returns `key value` lines for every entry matching the pattern, or an empty string."""
        return self.exec_git(
            ["config", "--global" if global_config else "--local", "--get-regexp", pattern],
            check=False
        )

    def submodule_foreach(self, command: str, recursive: bool = False) -> str:
        args = ["submodule", "foreach"]
        if recursive:
            args.append("--recursive")
        args.append(command)
        return self.exec_git(args)

    def exec_git(self, args: List[str], check: bool = True) -> str:
        return run_command(
            ["git"] + args,
            env=self._environment.as_env(),
            check=check,
            cwd=self._working_directory
        )

    def try_git(self, args: List[str]) -> bool:
        succeeded = try_run_command(["git"] + args, env=self._environment.as_env(), cwd=self._working_directory)
        debug_log(f"git {args[0]} succeeded: {succeeded}")
        return succeeded


def escape_config_pattern(value: str) -> str:
    """Escapes regular expression metacharacters so a config key can be used with --get-regexp."""
    special = set(".*+?^${}()|[]\\")
    return "".join(f"\\{c}" if c in special else c for c in value)
