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

"""Per-resource outcome of best-effort credential cleanup."""

from dataclasses import dataclass, field
from typing import List

from src.utils import debug_log, warning


@dataclass(frozen=True)
class CleanupWarning:
    resource: str
    message: str


@dataclass
class CleanupResult:
    removed: List[str] = field(default_factory=list)
    warnings: List[CleanupWarning] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.warnings

    def record_removed(self, resource: str) -> None:
        debug_log(f"Removed {resource}")
        self.removed.append(resource)

    def record_warning(self, resource: str, message: str) -> None:
        """Logs a workflow warning; cleanup failures are reported, never raised."""
        warning(message)
        self.warnings.append(CleanupWarning(resource=resource, message=message))

    def merge(self, other: "CleanupResult") -> "CleanupResult":
        self.removed.extend(other.removed)
        self.warnings.extend(other.warnings)
        return self
