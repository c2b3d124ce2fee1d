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

from dataclasses import dataclass
from typing import Optional


@dataclass
class GitSourceSettings:
    """Inputs that drive git authentication for the workspace."""
    auth_token: str = ""
    ssh_key: str = ""
    ssh_known_hosts: str = ""
    ssh_strict: bool = True
    persist_credentials: bool = False
    nested_submodules: bool = False
    github_server_url: Optional[str] = None
    workflow_organization_id: Optional[str] = None
