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

from typing import Iterable, Optional

from src.errors import GitHubApiError
from src.github.models import MergeOutcome, MergeResponse

DEFAULT_CONFLICT_STATUSES = (405, 422)
DEFAULT_TRANSIENT_STATUSES = (409, 500, 502, 503, 504)
# Messages GitHub sends with a 405 when the merge can simply be retried
DEFAULT_TRANSIENT_MESSAGES = (
    "base branch was modified",
    "head branch was modified",
    "merge already in progress",
    "merge method",
)


def is_rate_limited(status_code: int, headers: Optional[dict] = None, message: str = "") -> bool:
    """Primary and secondary rate limits come back as 403 or 429."""
    headers = headers or {}
    if status_code == 429:
        return True
    if status_code != 403:
        return False
    if str(headers.get("x-ratelimit-remaining", headers.get("X-RateLimit-Remaining", ""))) == "0":
        return True
    if "retry-after" in headers or "Retry-After" in headers:
        return True
    return "rate limit" in (message or "").lower()


class MergeClassifier:
    """
    Maps a merge API response to a MergeOutcome.

    The status code sets are configurable through the action inputs; the
    defaults follow the GitHub REST documentation for PUT .../pulls/{n}/merge.
    """

    def __init__(self, conflict_statuses: Optional[Iterable[int]] = None,
                 transient_statuses: Optional[Iterable[int]] = None,
                 transient_messages: Optional[Iterable[str]] = None):
        self.conflict_statuses = frozenset(conflict_statuses or DEFAULT_CONFLICT_STATUSES)
        self.transient_statuses = frozenset(transient_statuses or DEFAULT_TRANSIENT_STATUSES)
        self.transient_messages = tuple(m.lower() for m in (transient_messages or DEFAULT_TRANSIENT_MESSAGES))

    def classify(self, response: MergeResponse) -> MergeOutcome:
        if 200 <= response.status_code < 300:
            if response.merged:
                return MergeOutcome.MERGED
            return MergeOutcome.TRANSIENT_ERROR

        if is_rate_limited(response.status_code, response.headers, response.message):
            return MergeOutcome.RATE_LIMITED

        message = (response.message or "").lower()
        if any(marker in message for marker in self.transient_messages):
            return MergeOutcome.TRANSIENT_ERROR
        if response.status_code in self.transient_statuses:
            return MergeOutcome.TRANSIENT_ERROR
        if response.status_code in self.conflict_statuses:
            return MergeOutcome.CONFLICT

        raise GitHubApiError(
            f"Unexpected merge response {response.status_code}: {response.message}",
            status_code=response.status_code,
            response_text=response.message
        )
