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

"""GitHub API Client Implementation

This module provides the GitHub REST calls the pull request service needs:
pull request create/find/update/merge and branch ref synchronization.
"""

import json
from typing import Optional
from urllib.parse import quote

import requests

from src.errors import GitHubApiError, MergeConflictError, TransientRemoteError
from src.github.constants import DEFAULT_API_URL, GITHUB_API_VERSION, GITHUB_PR_LIST_LIMIT, REQUEST_TIMEOUT_SECONDS
from src.github.merge_classifier import is_rate_limited
from src.github.models import MergeResponse
from src.utils import debug_log, log


class GitHubApiClient:
    """
    GitHub API client for one repository.

    Non-2xx answers become exceptions: rate limiting and 5xx raise
    TransientRemoteError, everything else GitHubApiError. The merge endpoint is
    the exception; merge_pull_request returns the raw MergeResponse so the
    caller can classify it.
    """

    def __init__(self, token: str, owner: str, repo: str, base_url: Optional[str] = None,
                 user_agent: str = "github-pull-request-action", session: Optional[requests.Session] = None,
                 timeout: int = REQUEST_TIMEOUT_SECONDS):
        """
        Initialize GitHub API client.

        Args:
            token: GitHub authentication token
            owner: Repository owner (user or organization)
            repo: Repository name
            base_url: GitHub API base URL (for Enterprise support)
            user_agent: User agent string to identify the client
            session: Optional requests session (tests pass a mock)
            timeout: Per-request timeout in seconds
        """
        self.token = token
        self.owner = owner
        self.repo = repo
        self.base_url = (base_url or DEFAULT_API_URL).rstrip("/")
        self.user_agent = user_agent
        self.session = session or requests.Session()
        self.timeout = timeout

    def _get_headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
            "User-Agent": self.user_agent,
        }

    def _repo_url(self, path: str) -> str:
        return f"{self.base_url}/repos/{self.owner}/{self.repo}{path}"

    def _send(self, method: str, path: str, **kwargs) -> requests.Response:
        url = self._repo_url(path)
        debug_log(f"Making {method} request to: {url}")
        if "json" in kwargs:
            debug_log(f"Payload: {json.dumps(kwargs['json'])}")
        try:
            response = self.session.request(method, url, headers=self._get_headers(), timeout=self.timeout, **kwargs)
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            raise TransientRemoteError(f"{method} {path} failed: {e}") from e
        except requests.exceptions.RequestException as e:
            raise GitHubApiError(f"{method} {path} failed: {e}") from e
        debug_log(f"Response Status Code: {response.status_code}")
        return response

    def _request(self, method: str, path: str, expected=(200,), **kwargs) -> requests.Response:
        response = self._send(method, path, **kwargs)
        if response.status_code in expected:
            return response
        self._raise_for_response(method, path, response)

    def _raise_for_response(self, method: str, path: str, response: requests.Response) -> None:
        message = _error_message(response)
        headers = _lower_headers(response)
        if is_rate_limited(response.status_code, headers, message):
            raise TransientRemoteError(
                f"Rate limited on {method} {path}: {message}",
                status_code=response.status_code,
                response_text=response.text,
                retry_after=_retry_after(headers)
            )
        if response.status_code >= 500:
            raise TransientRemoteError(
                f"Server error {response.status_code} on {method} {path}: {message}",
                status_code=response.status_code,
                response_text=response.text
            )
        raise GitHubApiError(
            f"Unexpected status code {response.status_code} on {method} {path}: {message}",
            status_code=response.status_code,
            response_text=response.text
        )

    # --- Pull requests ---

    def find_open_pull_request(self, head: str, base: str) -> Optional[dict]:
        response = self._request(
            "GET", "/pulls",
            params={"state": "open", "head": f"{self.owner}:{head}", "base": base, "per_page": GITHUB_PR_LIST_LIMIT}
        )
        pulls = response.json()
        if not pulls:
            debug_log(f"No open pull request found for {head} -> {base}")
            return None
        debug_log(f"Found open pull request #{pulls[0]['number']} for {head} -> {base}")
        return pulls[0]

    def create_pull_request(self, head: str, base: str, title: str, body: str = "", draft: bool = False) -> dict:
        response = self._request(
            "POST", "/pulls", expected=(201,),
            json={"head": head, "base": base, "title": title, "body": body, "draft": draft}
        )
        pull = response.json()
        log(f"Created pull request #{pull['number']}: {pull.get('html_url')}")
        return pull

    def update_pull_request(self, number: int, **fields) -> dict:
        return self._request("PATCH", f"/pulls/{number}", json=fields).json()

    def get_pull_request(self, number: int) -> dict:
        return self._request("GET", f"/pulls/{number}").json()

    def merge_pull_request(self, number: int, merge_method: str = "merge", sha: Optional[str] = None,
                           commit_title: Optional[str] = None) -> MergeResponse:
        payload = {"merge_method": merge_method}
        if sha:
            payload["sha"] = sha
        if commit_title:
            payload["commit_title"] = commit_title

        response = self._send("PUT", f"/pulls/{number}/merge", json=payload)
        data = _json_or_empty(response)
        return MergeResponse(
            status_code=response.status_code,
            merged=bool(data.get("merged", False)),
            sha=data.get("sha"),
            message=data.get("message", "") or response.text or "",
            headers=_lower_headers(response),
        )

    # --- Branches ---

    def get_branch_sha(self, branch: str) -> Optional[str]:
        response = self._send("GET", f"/git/ref/heads/{quote(branch)}")
        if response.status_code == 404:
            return None
        if response.status_code != 200:
            self._raise_for_response("GET", f"/git/ref/heads/{branch}", response)
        return response.json()["object"]["sha"]

    def create_branch(self, branch: str, sha: str) -> None:
        self._request("POST", "/git/refs", expected=(201,), json={"ref": f"refs/heads/{branch}", "sha": sha})
        log(f"Created branch {branch} at {sha[:7]}")

    def fast_forward_branch(self, branch: str, sha: str) -> None:
        """Moves the branch to sha. GitHub rejects the update (422) unless it is a fast-forward."""
        self._request("PATCH", f"/git/refs/heads/{quote(branch)}", json={"sha": sha, "force": False})
        log(f"Fast-forwarded {branch} to {sha[:7]}")

    def merge_branches(self, base: str, head: str, commit_message: Optional[str] = None) -> Optional[str]:
        """
        Merges head into base on the server.

        Returns:
            The merge commit sha, or None when base already contains head.

        Raises:
            MergeConflictError: If the branches conflict (409)
        """
        payload = {"base": base, "head": head}
        if commit_message:
            payload["commit_message"] = commit_message

        response = self._send("POST", "/merges", json=payload)
        if response.status_code == 201:
            sha = response.json()["sha"]
            log(f"Merged {head} into {base} ({sha[:7]})")
            return sha
        if response.status_code == 204:
            debug_log(f"{base} already contains {head}")
            return None
        if response.status_code == 409:
            raise MergeConflictError(
                f"Merge conflict between {head} and {base}",
                status_code=409,
                response_text=response.text
            )
        self._raise_for_response("POST", "/merges", response)

    def compare(self, base: str, head: str) -> dict:
        """Compare two refs; `status` is one of ahead, behind, identical, diverged (head relative to base)."""
        return self._request("GET", f"/compare/{quote(base)}...{quote(head)}").json()


def _json_or_empty(response) -> dict:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _error_message(response) -> str:
    return _json_or_empty(response).get("message") or response.text or ""


def _lower_headers(response) -> dict:
    return {str(k).lower(): v for k, v in (response.headers or {}).items()}


def _retry_after(headers: dict) -> Optional[int]:
    try:
        return int(headers.get("retry-after"))
    except (TypeError, ValueError):
        return None
