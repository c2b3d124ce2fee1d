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

from enum import Enum


class FailureCategory(Enum):
    """Define failure categories as an enum to ensure consistency."""
    INVALID_CONFIGURATION = "INVALID_CONFIGURATION"
    GIT_AUTH_FAILURE = "GIT_AUTH_FAILURE"
    GIT_COMMAND_FAILURE = "GIT_COMMAND_FAILURE"
    GITHUB_API_FAILURE = "GITHUB_API_FAILURE"
    GENERATE_PR_FAILURE = "GENERATE_PR_FAILURE"
    EXCEEDED_MERGE_ATTEMPTS = "EXCEEDED_MERGE_ATTEMPTS"
    RELEASE_FAILURE = "RELEASE_FAILURE"
    GENERAL_FAILURE = "GENERAL_FAILURE"


class ActionError(Exception):
    """Base class for failures that end the action run."""
    failure_category = FailureCategory.GENERAL_FAILURE


class PreconditionError(ActionError, IOError):
    """A required environment value or input is missing. Fatal, never retried."""
    failure_category = FailureCategory.INVALID_CONFIGURATION


class IntegrityError(ActionError):
    """The auth placeholder was not found exactly once in a config file."""
    failure_category = FailureCategory.GIT_AUTH_FAILURE

    def __init__(self, message, config_path=None, occurrences=None):
        super().__init__(message)
        self.config_path = config_path
        self.occurrences = occurrences


class GitHubApiError(ActionError):
    """A GitHub REST call failed in a way that retrying will not fix."""
    failure_category = FailureCategory.GITHUB_API_FAILURE

    def __init__(self, message, status_code=None, response_text=None):
        super().__init__(message)
        self.status_code = status_code
        self.response_text = response_text


class TransientRemoteError(GitHubApiError):
    """Rate limiting or a concurrent update on the remote side; safe to retry after a delay."""

    def __init__(self, message, status_code=None, response_text=None, retry_after=None):
        super().__init__(message, status_code=status_code, response_text=response_text)
        self.retry_after = retry_after


class MergeConflictError(GitHubApiError):
    """The branches have genuine content conflicts."""
    failure_category = FailureCategory.GENERATE_PR_FAILURE


class MergeRetriesExhaustedError(ActionError):
    """Every merge attempt for a pull request failed."""
    failure_category = FailureCategory.EXCEEDED_MERGE_ATTEMPTS

    def __init__(self, pr_number: int, attempts: int, last_outcome=None):
        super().__init__(
            f"Unable to merge pull request #{pr_number} after {attempts} attempt(s)"
            + (f" (last outcome: {last_outcome})" if last_outcome else "")
        )
        self.pr_number = pr_number
        self.attempts = attempts
        self.last_outcome = last_outcome
