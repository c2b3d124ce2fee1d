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

import time
from typing import Callable, List, Optional

from src.errors import GitHubApiError, MergeConflictError, MergeRetriesExhaustedError, TransientRemoteError
from src.github.constants import MAX_RETRY_DELAY_SECONDS, MIDDLE_BRANCH_SEPARATOR
from src.github.merge_classifier import MergeClassifier
from src.github.models import MergeAttempt, MergeOutcome, MergeResponse, PullRequest, PullRequestAction
from src.utils import debug_log, log


class PullRequestService:
    """
    Creates a pull request between two branches and drives it to a merge.

    With require_middle_branch the pull request is opened from an intermediate
    branch `<source>-via-<target>` instead of the source. Conflicts are then
    resolved on that branch, and the target branch is never touched until the
    merge itself. The middle branch only ever moves forward, either by a
    fast-forward or by a merge commit.
    """

    def __init__(self, client, pr_title: str, pr_body: str = "", draft: bool = False,
                 require_middle_branch: bool = False, merge_method: str = "merge",
                 retry_delay_seconds: int = 10, max_retry_delay_seconds: int = MAX_RETRY_DELAY_SECONDS,
                 classifier: Optional[MergeClassifier] = None, sleep: Callable[[float], None] = time.sleep):
        self.client = client
        self.pr_title = pr_title
        self.pr_body = pr_body
        self.draft = draft
        self.require_middle_branch = require_middle_branch
        self.merge_method = merge_method
        self.retry_delay_seconds = retry_delay_seconds
        self.max_retry_delay_seconds = max_retry_delay_seconds
        self.classifier = classifier or MergeClassifier()
        self.sleep = sleep
        self.attempts: List[MergeAttempt] = []

    @classmethod
    def from_config(cls, config, client) -> "PullRequestService":
        return cls(
            client,
            pr_title=config.pr_title,
            pr_body=config.pr_body,
            draft=config.draft,
            require_middle_branch=config.require_middle_branch,
            merge_method=config.merge_method,
            retry_delay_seconds=config.merge_retry_delay,
            classifier=MergeClassifier(
                conflict_statuses=config.merge_conflict_statuses,
                transient_statuses=config.merge_transient_statuses,
            ),
        )

    @staticmethod
    def middle_branch_name(source: str, target: str) -> str:
        return f"{source}{MIDDLE_BRANCH_SEPARATOR}{target}"

    # --- Create ---

    def create_pull_request(self, source: str, target: str) -> PullRequest:
        """
        Finds or creates the pull request that brings source into target.

        Returns:
            PullRequest: action is `created`, `updated` (existing PR whose title/body
            were refreshed) or `found`.
        """
        middle_branch = None
        head = source
        if self.require_middle_branch:
            middle_branch = self.sync_middle_branch(source, target)
            head = middle_branch

        existing = self.client.find_open_pull_request(head, target)
        if existing:
            action = PullRequestAction.FOUND
            if self._needs_update(existing):
                fields = {"title": self.pr_title}
                if self.pr_body:
                    fields["body"] = self.pr_body
                existing = self.client.update_pull_request(existing["number"], **fields)
                action = PullRequestAction.UPDATED
            log(f"Pull request #{existing['number']} already exists for {head} -> {target} ({action.value})")
            return PullRequest.from_api(existing, action, source_ref=source, middle_branch=middle_branch)

        pull = self.client.create_pull_request(head, target, self.pr_title, self.pr_body, self.draft)
        return PullRequest.from_api(pull, PullRequestAction.CREATED, source_ref=source, middle_branch=middle_branch)

    def _needs_update(self, existing: dict) -> bool:
        if existing.get("title") != self.pr_title:
            return True
        return bool(self.pr_body) and (existing.get("body") or "") != self.pr_body

    def sync_middle_branch(self, source: str, target: str) -> str:
        """Creates or advances `<source>-via-<target>` so it holds target's tip plus source."""
        middle_branch = self.middle_branch_name(source, target)

        target_sha = self.client.get_branch_sha(target)
        if target_sha is None:
            raise GitHubApiError(f"Target branch '{target}' does not exist", status_code=404)

        if self.client.get_branch_sha(middle_branch) is None:
            log(f"Creating intermediate branch {middle_branch} from {target}")
            self.client.create_branch(middle_branch, target_sha)
        else:
            self.advance_branch(middle_branch, target)

        self.advance_branch(middle_branch, source)
        return middle_branch

    def advance_branch(self, branch: str, from_ref: str) -> Optional[str]:
        """
        Brings from_ref into branch without discarding anything on branch.

        Fast-forwards when branch is an ancestor of from_ref, merges when the two
        diverged, and does nothing when branch already contains from_ref.

        Returns:
            The new tip sha, or None when the branch did not move.

        Raises:
            MergeConflictError: If a merge is needed and conflicts
        """
        comparison = self.client.compare(branch, from_ref)
        status = comparison.get("status")
        debug_log(f"{from_ref} is {status} relative to {branch}")

        if status in ("identical", "behind"):
            return None
        if status == "ahead":
            sha = self.client.get_branch_sha(from_ref)
            self.client.fast_forward_branch(branch, sha)
            return sha
        return self.client.merge_branches(branch, from_ref, commit_message=f"Merge {from_ref} into {branch}")

    # --- Merge ---

    def merge_pull_request_with_retries(self, pr: PullRequest, max_retries: int) -> PullRequest:
        """
        Merges the pull request, retrying up to max_retries attempts.

        A max_retries of 0 still makes one attempt. Failed attempts back off
        exponentially. Before each retry of a middle-branch PR the middle branch
        takes in the current target tip, and after a conflict the source as well.

        Raises:
            MergeRetriesExhaustedError: If no attempt merged the pull request
        """
        if max_retries is None or max_retries < 0:
            raise ValueError(f"max_retries must be a non-negative integer, got {max_retries}")

        self.attempts = []
        if pr.merged:
            log(f"Pull request #{pr.number} is already merged")
            return pr
        if self._refresh(pr):
            return pr

        total_attempts = max(1, max_retries)
        last_outcome = None
        for attempt_number in range(1, total_attempts + 1):
            response = None
            retry_after = None
            try:
                response = self.client.merge_pull_request(pr.number, self.merge_method, sha=pr.head_sha or None)
                outcome = self.classifier.classify(response)
            except TransientRemoteError as e:
                debug_log(f"Merge request failed: {e}")
                outcome = MergeOutcome.RATE_LIMITED if e.status_code in (403, 429) else MergeOutcome.TRANSIENT_ERROR
                retry_after = e.retry_after

            self.attempts.append(MergeAttempt(attempt_number, outcome, pr.uses_middle_branch))

            if outcome == MergeOutcome.MERGED:
                pr.merged = True
                pr.head_sha = response.sha or pr.head_sha
                log(f"Merged pull request #{pr.number} on attempt {attempt_number}/{total_attempts}")
                return pr

            last_outcome = outcome
            log(f"Merge attempt {attempt_number}/{total_attempts} for pull request #{pr.number} failed: "
                f"{outcome.value}" + (f" ({response.message})" if response and response.message else ""))
            if attempt_number == total_attempts:
                break

            if outcome == MergeOutcome.CONFLICT and not pr.uses_middle_branch:
                log(f"Pull request #{pr.number} has conflicts and no intermediate branch; retrying as is",
                    is_warning=True)
            self.sleep(self._backoff_delay(attempt_number, response, retry_after))
            if pr.uses_middle_branch:
                self._resync_middle_branch(pr, include_source=outcome == MergeOutcome.CONFLICT)
            if self._refresh(pr):
                return pr

        raise MergeRetriesExhaustedError(pr.number, len(self.attempts), last_outcome.value if last_outcome else None)

    def _resync_middle_branch(self, pr: PullRequest, include_source: bool = False) -> None:
        """Brings the current target tip (and after a conflict, the source tip) into the middle branch."""
        debug_log(f"Re-synchronizing {pr.middle_branch} with {pr.base_ref}")
        try:
            self.advance_branch(pr.middle_branch, pr.base_ref)
            if include_source:
                self.advance_branch(pr.middle_branch, pr.source_ref)
        except MergeConflictError as e:
            log(f"Unable to re-synchronize {pr.middle_branch}: {e}", is_warning=True)
        except TransientRemoteError as e:
            debug_log(f"Re-synchronization interrupted: {e}")

    def _refresh(self, pr: PullRequest) -> bool:
        """Reloads head sha and merged flag. Returns True when the PR turned out to be merged."""
        try:
            current = self.client.get_pull_request(pr.number)
        except TransientRemoteError as e:
            debug_log(f"Could not refresh pull request #{pr.number}: {e}")
            return False

        if current.get("merged"):
            pr.merged = True
            pr.head_sha = current.get("merge_commit_sha") or pr.head_sha
            log(f"Pull request #{pr.number} is already merged")
            return True
        pr.head_sha = (current.get("head") or {}).get("sha", pr.head_sha)
        return False

    def _backoff_delay(self, attempt_number: int, response: Optional[MergeResponse] = None,
                       retry_after: Optional[int] = None) -> float:
        if retry_after is None and response is not None:
            try:
                retry_after = int(response.headers.get("retry-after"))
            except (TypeError, ValueError):
                retry_after = None
        if retry_after is not None:
            return min(retry_after, self.max_retry_delay_seconds)
        return min(self.retry_delay_seconds * (2 ** (attempt_number - 1)), self.max_retry_delay_seconds)
