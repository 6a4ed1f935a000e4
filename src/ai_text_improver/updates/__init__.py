"""
Update checks against the GitHub release feed.
"""

from ai_text_improver.updates.update_checker import (
    Release,
    ReleaseAsset,
    UpdateChecker,
    UpdateInfo,
    compare_versions,
    is_newer_version_available,
    select_asset,
)

__all__ = [
    "Release",
    "ReleaseAsset",
    "UpdateChecker",
    "UpdateInfo",
    "compare_versions",
    "is_newer_version_available",
    "select_asset",
]
