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

import base64
import os
import platform
import shutil
import uuid
from pathlib import Path
from typing import Optional, Tuple

from src.errors import PreconditionError
from src.git.cleanup import CleanupResult
from src.git.environment import EnvironmentOverrideScope
from src.utils import add_mask, debug_log, log, run_command

TOKEN_PLACEHOLDER_CONFIG_VALUE = "AUTHORIZATION: basic ***"

GITHUB_KNOWN_HOST = (
    "github.com ssh-rsa AAAAB3NzaC1yc2EAAAADAQABAAABgQCj7ndNxQowgcQnjshcLrqPEiiphnt+VTTvDP6mHBL9j1aNUkY4Ue1gvwnGLVlOhGeYrnZaMgRK6+PKCUXaDbC7qtbW8gIkhL7aGCsOr/C56SJMy/BCZfxd1nWzAOxSDPgVsmerOBYfNqltV9/hWCqBywINIR+5dIg6JTJ72pcEpEjcYgXkE2YEFXV1JHnsKgbLWNlhScqb2UmyRkQyytRLtL+38TGxkxCflmO+5Z8CSSNY7GidjMIZ7Q4zMjA2n1nGrlTDkzwDCsw+wqFPGQA179cnfGWOWRVruj16z6XyvxvjJwbz0wQZ75XK5tKSb7FNyeIEs4TT4jk+S4dhPeAUC5y+bDYirYgM4GC7uEnztnZyaVWQ7B381AK4Qdrwt51ZqExKbQpTUNn+EjqoTwvqNj4kqx5QUCI0ThS/YkOxJCXmPUWZbhjpCg56i+2aB6CmK2JGhn57K5mj0MNdBXA4/WnwH6XoPWJzK5Nyu2zB3nAZp+S5hpQs+p1vN1/wsjk="
)


def derive_basic_auth_header(token: str) -> str:
    """
    Builds the http extraheader value for a token.

    The base64 credential is masked before it is returned, so it cannot show up
    in any later log line.

    Args:
        token: GitHub token

    Returns:
        str: `AUTHORIZATION: basic <base64 of x-access-token:<token>>`
    """
    basic_credential = base64.b64encode(f"x-access-token:{token}".encode("utf-8")).decode("ascii")
    add_mask(basic_credential)
    return f"AUTHORIZATION: basic {basic_credential}"


def read_user_known_hosts() -> Tuple[str, str]:
    """Returns the path and content of the real user's known_hosts file ('' when missing)."""
    known_hosts_path = str(Path.home() / ".ssh" / "known_hosts")
    try:
        with open(known_hosts_path, "r", encoding="utf-8") as f:
            return known_hosts_path, f.read()
    except FileNotFoundError:
        return known_hosts_path, ""


class CredentialProvisioner:
    """
    Creates the ephemeral SSH key and known hosts files under $RUNNER_TEMP
    and owns their removal.
    """

    def __init__(self, environment: Optional[EnvironmentOverrideScope] = None):
        self._environment = environment or EnvironmentOverrideScope()
        self._unique_id = ""
        self.ssh_key_path = ""
        self.ssh_known_hosts_path = ""

    def runner_temp(self) -> str:
        runner_temp = self._environment.get("RUNNER_TEMP", "")
        if not runner_temp:
            raise PreconditionError("RUNNER_TEMP is not defined")
        return runner_temp

    def _id(self) -> str:
        if not self._unique_id:
            self._unique_id = str(uuid.uuid4())
        return self._unique_id

    def provision_ssh_key(self, raw_key: str) -> str:
        """Writes the key to a uniquely named owner-only (0600) file and returns its path."""
        runner_temp = self.runner_temp()
        os.makedirs(runner_temp, exist_ok=True)
        self.ssh_key_path = os.path.join(runner_temp, self._id())

        fd = os.open(self.ssh_key_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(f"{raw_key.strip()}\n")
        # umask can only remove bits, but an existing file keeps its old mode
        os.chmod(self.ssh_key_path, 0o600)

        if platform.system() == "Windows":
            self._restrict_windows_acl(self.ssh_key_path)

        debug_log(f"Wrote SSH key to {self.ssh_key_path}")
        return self.ssh_key_path

    def _restrict_windows_acl(self, path: str) -> None:
        """Grants only the current user access and drops inherited ACL entries."""
        icacls = shutil.which("icacls.exe") or shutil.which("icacls")
        if not icacls:
            raise PreconditionError("icacls.exe was not found on PATH")
        user = f"{os.environ.get('USERDOMAIN', '')}\\{os.environ.get('USERNAME', '')}"
        run_command([icacls, path, "/grant:r", f"{user}:F"])
        run_command([icacls, path, "/inheritance:r"])

    def provision_known_hosts(self, existing_known_hosts: str = "", extra_hosts: Optional[str] = None,
                              existing_source: str = "~/.ssh/known_hosts") -> str:
        """
        Writes the known hosts file and returns its path.

        Sections, in order: the user's existing known hosts, the caller's extra
        hosts, then the built-in github.com entry. Only the last is always present.
        """
        runner_temp = self.runner_temp()
        os.makedirs(runner_temp, exist_ok=True)

        known_hosts = ""
        if existing_known_hosts:
            known_hosts += (
                f"# Begin from {existing_source}\n{existing_known_hosts}\n# End from {existing_source}\n"
            )
        if extra_hosts:
            known_hosts += f"# Begin from input known hosts\n{extra_hosts}\n# end from input known hosts\n"
        known_hosts += f"# Begin implicitly added github.com\n{GITHUB_KNOWN_HOST}\n# End implicitly added github.com\n"

        self.ssh_known_hosts_path = os.path.join(runner_temp, f"{self._id()}_known_hosts")
        with open(self.ssh_known_hosts_path, "w", encoding="utf-8") as f:
            f.write(known_hosts)
        return self.ssh_known_hosts_path

    def build_ssh_command(self, strict: bool = True) -> str:
        ssh_path = shutil.which("ssh")
        if not ssh_path:
            raise PreconditionError("Unable to locate executable file: ssh")

        command = f'"{ssh_path}" -i "$RUNNER_TEMP/{os.path.basename(self.ssh_key_path)}"'
        if strict:
            command += " -o StrictHostKeyChecking=yes -o CheckHostIP=no"
        command += f' -o "UserKnownHostsFile=$RUNNER_TEMP/{os.path.basename(self.ssh_known_hosts_path)}"'
        return command

    def remove(self) -> CleanupResult:
        """Deletes the key and known hosts files. Failures become warnings."""
        result = CleanupResult()

        if self.ssh_key_path:
            try:
                _remove_file(self.ssh_key_path)
                result.record_removed(self.ssh_key_path)
            except OSError as e:
                debug_log(str(e))
                result.record_warning(self.ssh_key_path, f"Failed to remove SSH key '{self.ssh_key_path}'")

        if self.ssh_known_hosts_path:
            try:
                _remove_file(self.ssh_known_hosts_path)
                result.record_removed(self.ssh_known_hosts_path)
            except OSError as e:
                debug_log(str(e))
                result.record_warning(
                    self.ssh_known_hosts_path,
                    f"Failed to remove SSH known hosts '{self.ssh_known_hosts_path}'"
                )

        if result.removed:
            log("Removed ephemeral SSH credentials")
        return result


def _remove_file(path: str) -> None:
    if os.path.isdir(path) and not os.path.islink(path):
        shutil.rmtree(path)
    else:
        Path(path).unlink(missing_ok=True)
