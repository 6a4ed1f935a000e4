"""
Release feed update checks.

Fetches the latest GitHub release, compares it with the running version,
and picks the download matching this machine's architecture.
"""

from __future__ import annotations

import logging
import platform

import httpx
from pydantic import BaseModel, Field, ValidationError

from ai_text_improver.config import get_settings

logger = logging.getLogger(__name__)

APPLE_SILICON_ASSET = "MacAITextImprover-Apple-Silicon.dmg"
INTEL_ASSET = "MacAITextImprover-Intel.dmg"


class ReleaseAsset(BaseModel):
    """A downloadable file attached to a release."""

    name: str
    browser_download_url: str


class Release(BaseModel):
    """Latest-release metadata from the feed."""

    tag_name: str
    name: str = ""
    body: str = ""
    assets: list[ReleaseAsset] = Field(default_factory=list)

    @property
    def version(self) -> str:
        """Tag without a leading ``v``."""
        return self.tag_name[1:] if self.tag_name.startswith("v") else self.tag_name


class UpdateInfo(BaseModel):
    """A newer version that can be offered to the user."""

    version: str
    release_notes: str = ""
    download_url: str | None = None


def _components(version: str) -> list[int]:
    return [int(part) for part in version.split(".") if part.isdigit()]


def compare_versions(a: str, b: str) -> int:
    """
    Compare dot-separated versions.

    Non-numeric components are ignored and the shorter version is padded
    with zeros, so ``"1.1"`` equals ``"1.1.0"``.

    Returns:
        1 if ``a`` is greater, -1 if smaller, 0 if equal.
    """
    left, right = _components(a), _components(b)
    width = max(len(left), len(right))
    left += [0] * (width - len(left))
    right += [0] * (width - len(right))
    for x, y in zip(left, right):
        if x != y:
            return 1 if x > y else -1
    return 0


def is_newer_version_available(current: str, candidate: str) -> bool:
    return compare_versions(candidate, current) > 0


def select_asset(release: Release, machine: str | None = None) -> ReleaseAsset | None:
    """Pick the disk image built for the given (or current) architecture."""
    machine = (machine or platform.machine()).lower()
    wanted = APPLE_SILICON_ASSET if machine in ("arm64", "aarch64") else INTEL_ASSET
    return next((asset for asset in release.assets if asset.name == wanted), None)


class UpdateChecker:
    """Polls a GitHub repository's latest release."""

    def __init__(
        self,
        owner: str | None = None,
        repo: str | None = None,
        current_version: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self._owner = owner or settings.update_owner
        self._repo = repo or settings.update_repo
        self._current_version = current_version or settings.app_version
        self._base_url = settings.update_api_url
        self._timeout = timeout or settings.request_timeout
        self._transport = transport

    @property
    def current_version(self) -> str:
        return self._current_version

    async def fetch_latest_release(self) -> Release:
        """
        Fetch the latest release metadata.

        Raises:
            httpx.HTTPError: On transport failure or non-2xx status.
            ValidationError: If the payload does not look like a release.
        """
        async with httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
        ) as client:
            response = await client.get(
                f"/repos/{self._owner}/{self._repo}/releases/latest",
                headers={"Accept": "application/vnd.github.v3+json"},
            )
            response.raise_for_status()
            return Release.model_validate(response.json())

    async def check_for_updates(self, machine: str | None = None) -> UpdateInfo | None:
        """
        Check whether a newer release exists.

        Errors are logged and treated as "no update".

        Returns:
            UpdateInfo for a newer release, else None.
        """
        if not (self._owner and self._repo):
            logger.debug("Update feed not configured, skipping check")
            return None

        try:
            release = await self.fetch_latest_release()
        except (httpx.HTTPError, ValidationError, ValueError) as e:
            logger.warning(f"Error checking for updates: {e}")
            return None

        if not is_newer_version_available(self._current_version, release.version):
            logger.debug(f"Up to date ({self._current_version}, latest {release.version})")
            return None

        asset = select_asset(release, machine)
        logger.info(f"Update available: {self._current_version} -> {release.version}")
        return UpdateInfo(
            version=release.version,
            release_notes=release.body,
            download_url=asset.browser_download_url if asset else None,
        )
