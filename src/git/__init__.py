"""Git Domain

Git command execution, config storage and the authentication lifecycle used
to run git inside a GitHub Actions runner.

Key Components:
- GitCommandManager: git CLI wrapper bound to one working directory
- GitConfigStore: key/value access to local, global and submodule config
- CredentialProvisioner: ephemeral SSH key, known hosts and token header
- GitAuthHelper: configures and removes credentials in git config
"""

from .auth_helper import AuthState, GitAuthHelper
from .cleanup import CleanupResult, CleanupWarning
from .config_store import ConfigEntry, ConfigScope, GitConfigStore
from .credentials import CredentialProvisioner, derive_basic_auth_header
from .environment import EnvironmentOverrideScope
from .git_command_manager import GitCommandManager
from .git_source_settings import GitSourceSettings

__all__ = [
    "AuthState",
    "CleanupResult",
    "CleanupWarning",
    "ConfigEntry",
    "ConfigScope",
    "CredentialProvisioner",
    "EnvironmentOverrideScope",
    "GitAuthHelper",
    "GitCommandManager",
    "GitConfigStore",
    "GitSourceSettings",
    "derive_basic_auth_header",
]
