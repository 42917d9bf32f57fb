"""GitHub release deployer.

Creates a release tagged with the manifest version and uploads the manifest,
its detached signature and every artifact as release assets.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

import httpx

from releaseseal.errors import DeployError
from releaseseal.identity.signee import DEFAULT_GITHUB_API_ENDPOINT, GITHUB_ACCEPT

if TYPE_CHECKING:
    from releaseseal.core.artifact import Artifact
    from releaseseal.models.manifest import Manifest

logger = logging.getLogger(__name__)


class GitHubDeployer:
    """Publishes a signed release to a GitHub repository.

    Parameters
    ----------
    owner, repository:
        The repository to release into.
    token:
        A token allowed to create releases.  Never logged.
    endpoint:
        API root.  Upload URLs come from the API's response.
    client:
        Optional ``httpx.Client``; injected in tests.
    """

    def __init__(
        self,
        owner: str,
        repository: str,
        token: str,
        *,
        endpoint: str = DEFAULT_GITHUB_API_ENDPOINT,
        client: httpx.Client | None = None,
        timeout: float | None = 30.0,
    ) -> None:
        self.owner = owner
        self.repository = repository
        self._token = token
        self._endpoint = endpoint.rstrip("/")
        self._client = client
        self._timeout = timeout

    def _headers(self) -> dict[str, str]:
        return {"Accept": GITHUB_ACCEPT, "Authorization": f"Bearer {self._token}"}

    def deploy(self, signature: bytes, manifest: Manifest, artifacts: Sequence[Artifact]) -> None:
        assets = [
            (manifest.normalised_name, manifest.serialize()),
            (manifest.signature_name, signature),
            *(
                (a.normalised_name(manifest.version), a.content().getvalue())
                for a in artifacts
            ),
        ]
        if self._client is not None:
            self._publish(self._client, manifest, assets)
        else:
            with httpx.Client(timeout=self._timeout) as client:
                self._publish(client, manifest, assets)

    def _publish(
        self, client: httpx.Client, manifest: Manifest, assets: list[tuple[str, bytes]]
    ) -> None:
        url = f"{self._endpoint}/repos/{self.owner}/{self.repository}/releases"
        try:
            response = client.post(
                url,
                headers=self._headers(),
                json={
                    "tag_name": manifest.version,
                    "name": f"{manifest.name} {manifest.version}",
                },
            )
            response.raise_for_status()
            upload_url = response.json()["upload_url"].split("{", 1)[0]
        except (httpx.HTTPError, KeyError, ValueError) as exc:
            raise DeployError(f"failed to create github release: {exc}") from exc

        for name, data in assets:
            try:
                client.post(
                    upload_url,
                    params={"name": name},
                    headers={**self._headers(), "Content-Type": "application/octet-stream"},
                    content=data,
                ).raise_for_status()
            except httpx.HTTPError as exc:
                raise DeployError(f"failed to upload release asset: {name}: {exc}") from exc
            logger.debug("Uploaded %s (%d bytes)", name, len(data))

        logger.info(
            "Deployed %s %s to github.com/%s/%s",
            manifest.name,
            manifest.version,
            self.owner,
            self.repository,
        )
