"""
Mux video service: direct uploads, asset polling, composition and cleanup.
"""

from typing import Any, Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
import asyncio
import httpx
import logging

from flowestate.config import get_settings
from flowestate.repositories.property import PropertyRepository
from flowestate.utils.exceptions import (
    BadRequestError,
    ExternalServiceError,
    InternalServerError,
    NotFoundError,
    ServiceUnavailableError,
)

logger = logging.getLogger(__name__)

STREAM_URL = "https://stream.mux.com"
ASSET_SETTINGS = {"playback_policy": ["public"], "encoding_tier": "baseline"}


def playback_id_of(asset: Dict[str, Any]) -> Optional[str]:
    playback_ids = asset.get("playback_ids") or []
    return playback_ids[0].get("id") if playback_ids else None


class MuxService:
    """
    Thin client for the Mux Video API.
    """

    def __init__(self, http_client: httpx.AsyncClient, poll_interval: Optional[float] = None):
        self.http = http_client
        self.settings = get_settings()
        self.poll_interval = (
            self.settings.mux_poll_interval_seconds if poll_interval is None else poll_interval
        )

    async def _request(self, method: str, path: str, **kwargs) -> Optional[Dict[str, Any]]:
        """
        Call the Mux API and return the "data" member of the response.

        Raises:
            ServiceUnavailableError: If Mux credentials are not configured
            NotFoundError: If Mux answers 404
            ExternalServiceError: On any other failure
        """
        if not self.settings.mux_token_id or not self.settings.mux_token_secret:
            raise ServiceUnavailableError("Video service is not configured")

        url = f"{self.settings.mux_api_url.rstrip('/')}/video/v1/{path.lstrip('/')}"
        try:
            response = await self.http.request(
                method,
                url,
                auth=(self.settings.mux_token_id, self.settings.mux_token_secret),
                **kwargs
            )
        except httpx.HTTPError as e:
            logger.error(f"Mux request {method} {path} failed: {e}")
            raise ExternalServiceError("Mux", str(e))

        if response.status_code == 404:
            raise NotFoundError("Video resource", path.rsplit("/", 1)[-1])
        if response.status_code >= 400:
            logger.error(f"Mux error on {path}: HTTP {response.status_code} {response.text}")
            raise ExternalServiceError("Mux", f"HTTP {response.status_code}")
        if response.status_code == 204 or not response.content:
            return None
        return response.json().get("data")

    async def create_upload(self) -> Dict[str, str]:
        """Create a direct upload URL for the browser."""
        upload = await self._request("POST", "uploads", json={
            "new_asset_settings": ASSET_SETTINGS,
            "cors_origin": self.settings.app_url or "*",
        })
        logger.info(f"Created Mux upload {upload['id']}")
        return {"uploadUrl": upload["url"], "uploadId": upload["id"]}

    async def get_asset(self, asset_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"assets/{asset_id}")

    async def get_upload(self, upload_id: str) -> Dict[str, Optional[str]]:
        """
        Status of a direct upload and, once processed, its asset.

        Returns:
            status, assetId and playbackId
        """
        upload = await self._request("GET", f"uploads/{upload_id}")
        asset_id = upload.get("asset_id")
        playback_id = None
        if asset_id:
            playback_id = playback_id_of(await self.get_asset(asset_id))
        return {"status": upload.get("status"), "assetId": asset_id, "playbackId": playback_id}

    async def wait_for_asset(self, asset_id: str) -> Dict[str, Any]:
        """
        Poll an asset until it is ready.

        Raises:
            InternalServerError: If the asset errors or never becomes ready
        """
        attempts = self.settings.mux_poll_attempts
        for attempt in range(attempts):
            asset = await self.get_asset(asset_id)
            status = asset.get("status")
            if status == "ready":
                return asset
            if status == "errored":
                raise InternalServerError(f"Video asset {asset_id} failed to process")
            logger.debug(f"Asset {asset_id}: {status} ({attempt + 1}/{attempts})")
            await asyncio.sleep(self.poll_interval)
        raise InternalServerError(f"Timed out waiting for video asset {asset_id}")

    async def compose(self, asset_ids: List[str]) -> Dict[str, Optional[str]]:
        """
        Concatenate ready assets into a new asset.

        Args:
            asset_ids: Assets to join, in order

        Returns:
            assetId and playbackId of the composed video

        Raises:
            BadRequestError: If no assets are given
            InternalServerError: If a source asset fails or lacks a playback ID
        """
        if not asset_ids:
            raise BadRequestError("No asset IDs provided")

        assets = []
        for asset_id in asset_ids:
            assets.append(await self.wait_for_asset(asset_id))

        inputs = []
        for asset in assets:
            playback_id = playback_id_of(asset)
            if not playback_id:
                raise InternalServerError(f"Video asset {asset.get('id')} has no playback ID")
            inputs.append({"url": f"{STREAM_URL}/{playback_id}.m3u8"})

        composed = await self._request("POST", "assets", json={"input": inputs, **ASSET_SETTINGS})
        logger.info(f"Composed {len(inputs)} assets into {composed['id']}")
        return {"assetId": composed["id"], "playbackId": playback_id_of(composed)}

    async def download_url(self, playback_id: str) -> str:
        """
        Static rendition URL for a playback ID.

        Raises:
            NotFoundError: If no asset has the playback ID or it has no static renditions
        """
        assets = await self._request("GET", "assets") or []
        asset = next(
            (a for a in assets if any(p.get("id") == playback_id for p in a.get("playback_ids") or [])),
            None
        )
        if not asset:
            raise NotFoundError("Asset", playback_id)

        files = (asset.get("static_renditions") or {}).get("files") or []
        if not files:
            raise NotFoundError("Static rendition", playback_id)
        return f"{STREAM_URL}/{playback_id}/{files[0]['name']}"

    async def cleanup_orphans(self, db_session: AsyncSession) -> int:
        """
        Delete Mux assets of properties that recorded uploads but never got a video URL.

        Returns:
            Number of properties cleaned
        """
        property_repo = PropertyRepository(db_session)
        orphans = await property_repo.list_with_orphaned_videos()

        for prop in orphans:
            logger.info(f"Cleaning orphaned uploads of property {prop.slug}")
            for upload_id in prop.mux_upload_ids:
                try:
                    upload = await self._request("GET", f"uploads/{upload_id}")
                    if upload.get("asset_id"):
                        await self._request("DELETE", f"assets/{upload['asset_id']}")
                        logger.info(f"Deleted asset {upload['asset_id']}")
                except NotFoundError:
                    logger.info(f"Upload {upload_id} no longer exists")
            await property_repo.update(prop.id, {"mux_upload_ids": []}, exclude_none=False)

        return len(orphans)
