"""
dabridge version. `DABRIDGE_VERSION` overrides the release string for dev builds.
"""

from __future__ import annotations

import os

RELEASE = "0.1.0"

__version__ = os.environ.get("DABRIDGE_VERSION") or RELEASE


def get_version() -> str:
    return __version__
