import logging
from typing import Any, Dict, List, Optional

import httpx

from core.exceptions import UploadError
from client.upload_orchestrator import AnalysisRequestError, SelectedFile

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response, default: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return default
    if isinstance(body, dict):
        return str(body.get("error") or body.get("detail") or default)
    return default


class InventoryApiClient:
    """Async HTTP client for the inventory API; serves as uploader and analyzer"""

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        *,
        api_prefix: str = "/api",
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_prefix = api_prefix.rstrip("/")
        self.token = token
        self.client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=httpx.Timeout(timeout, connect=10.0),
            transport=transport,
        )

    async def __aenter__(self) -> "InventoryApiClient":
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        await self.client.aclose()

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    async def login(self, email: str, password: str) -> str:
        response = await self.client.post(
            f"{self.api_prefix}/auth/login",
            json={"email": email, "password": password},
        )
        response.raise_for_status()
        self.token = response.json()["access_token"]
        return self.token

    async def upload_image(self, file: SelectedFile) -> str:
        """Upload one photo and return its public URL"""
        try:
            response = await self.client.post(
                f"{self.api_prefix}/uploads",
                headers=self._headers(),
                files={"file": (file.name, file.data, file.content_type or "application/octet-stream")},
            )
        except httpx.HTTPError as e:
            raise UploadError(f"Upload of {file.name} failed: {e}")

        if not response.is_success:
            raise UploadError(_error_message(response, f"Upload of {file.name} failed"))

        try:
            url = response.json()["url"]
        except (ValueError, KeyError, TypeError):
            raise UploadError(f"Upload of {file.name} returned an unreadable response")
        logger.info(f"Uploaded {file.name} -> {url}")
        return url

    async def analyze_items(self, image_urls: List[str]) -> List[Dict[str, Any]]:
        """Run AI analysis on uploaded photos; any non-2xx is a full-batch failure"""
        try:
            response = await self.client.post(
                f"{self.api_prefix}/analyze-items",
                headers=self._headers(),
                json={"imageUrls": list(image_urls)},
            )
        except httpx.HTTPError as e:
            raise AnalysisRequestError(f"Analysis request failed: {e}")

        if not response.is_success:
            raise AnalysisRequestError(_error_message(response, "Analysis failed"), response.status_code)

        try:
            items = response.json()["items"]
        except (ValueError, KeyError, TypeError):
            raise AnalysisRequestError("Analysis returned an unreadable response", response.status_code)
        if not isinstance(items, list):
            raise AnalysisRequestError("Analysis returned an unreadable response", response.status_code)
        return items
