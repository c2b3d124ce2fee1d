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

"""
GitHub-specific constants for the pull request action.
"""

DEFAULT_API_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"
REQUEST_TIMEOUT_SECONDS = 30

# GitHub API Query Limits
GITHUB_PR_LIST_LIMIT = 100

# Merge methods accepted by PUT /repos/{owner}/{repo}/pulls/{n}/merge
VALID_MERGE_METHODS = ("merge", "squash", "rebase")

# Suffix joining source and target in the intermediate branch name: <source>-via-<target>
MIDDLE_BRANCH_SEPARATOR = "-via-"

# Upper bound for a single backoff sleep between merge attempts
MAX_RETRY_DELAY_SECONDS = 120
