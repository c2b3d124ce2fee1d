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

"""Pull request data models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional


class PullRequestAction(Enum):
    CREATED = "created"
    UPDATED = "updated"
    FOUND = "found"


class MergeOutcome(Enum):
    MERGED = "merged"
    CONFLICT = "conflict"
    RATE_LIMITED = "rate_limited"
    TRANSIENT_ERROR = "transient_error"


@dataclass
class PullRequest:
    number: int
    html_url: str
    head_sha: str
    action: PullRequestAction
    created: bool = False
    merged: bool = False
    head_ref: str = ""
    base_ref: str = ""
    source_ref: str = ""
    middle_branch: Optional[str] = None

    @property
    def uses_middle_branch(self) -> bool:
        return bool(self.middle_branch)

    @classmethod
    def from_api(cls, data: dict, action: PullRequestAction, source_ref: str = "",
                 middle_branch: Optional[str] = None) -> "PullRequest":
        """Build from a GitHub REST pull request payload."""
        head = data.get("head") or {}
        base = data.get("base") or {}
        return cls(
            number=data["number"],
            html_url=data.get("html_url", ""),
            head_sha=head.get("sha", ""),
            action=action,
            created=action == PullRequestAction.CREATED,
            merged=bool(data.get("merged", False)),
            head_ref=head.get("ref", ""),
            base_ref=base.get("ref", ""),
            source_ref=source_ref or head.get("ref", ""),
            middle_branch=middle_branch,
        )


@dataclass(frozen=True)
class MergeAttempt:
    attempt_number: int
    outcome: MergeOutcome
    middle_branch_used: bool


@dataclass(frozen=True)
class MergeResponse:
    """Raw result of a merge request, before classification."""
    status_code: int
    merged: bool = False
    sha: Optional[str] = None
    message: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
