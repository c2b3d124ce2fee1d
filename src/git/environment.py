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

import os
from typing import Dict, Mapping, Optional

from src.utils import debug_log


class EnvironmentOverrideScope:
    """
    Named environment variable overrides for the git processes this action spawns.

    The process environment (os.environ) is never mutated. Overrides are layered
    on top of the base environment when a command runs, and restore() drops them
    all, which returns every variable to its value before the scope was used.
    """

    def __init__(self, base: Optional[Mapping[str, str]] = None):
        self._base = base if base is not None else os.environ
        self._overrides: Dict[str, str] = {}

    def set(self, name: str, value: str) -> None:
        debug_log(f"Overriding environment variable {name}")
        self._overrides[name] = value

    def remove(self, name: str) -> None:
        if self._overrides.pop(name, None) is not None:
            debug_log(f"Removed environment override for {name}")

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        if name in self._overrides:
            return self._overrides[name]
        return self._base.get(name, default)

    def is_overridden(self, name: str) -> bool:
        return name in self._overrides

    @property
    def overrides(self) -> Dict[str, str]:
        return dict(self._overrides)

    def as_env(self) -> Dict[str, str]:
        """Only the overrides; run_command merges them over os.environ."""
        return dict(self._overrides)

    def restore(self) -> None:
        self._overrides.clear()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.restore()
        return False
