"""GitHub Provider Implementation

This package contains the GitHub REST side of the pull request action.

Key Components:
- GitHubApiClient: GitHub API integration for pulls, refs and merges
- MergeClassifier: Maps merge responses to retry decisions
- PullRequestService: Creates pull requests and merges them with bounded retries
"""

from .github_api_client import GitHubApiClient
from .merge_classifier import MergeClassifier
from .models import MergeAttempt, MergeOutcome, MergeResponse, PullRequest, PullRequestAction
from .pull_request_service import PullRequestService

__all__ = [
    "GitHubApiClient",
    "MergeAttempt",
    "MergeClassifier",
    "MergeOutcome",
    "MergeResponse",
    "PullRequest",
    "PullRequestAction",
    "PullRequestService",
]
