"""Cache invalidation webhook for the public storefront.

After a visible change (price update, hide, unhide) the product page of
the public site is revalidated. The webhook is best effort: failures are
logged and never interrupt a batch.
"""

from typing import Optional

import httpx
import structlog

from pricewatch.config import settings

logger = structlog.get_logger(__name__)


class RevalidationService:
    """Posts ``{"productId": id}`` to ``{base_url}/api/revalidate/product``.

    Disabled when no base URL is configured.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        secret: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize revalidation service.

        Args:
            base_url: Public site root (defaults to REVALIDATE_BASE_URL)
            secret: Bearer token (defaults to REVALIDATION_SECRET)
            timeout_seconds: Request timeout
            client: Shared httpx client (one client per call if None)
        """
        base_url = settings.REVALIDATE_BASE_URL if base_url is None else base_url
        self.base_url = base_url.rstrip("/")
        self.secret = settings.REVALIDATION_SECRET if secret is None else secret
        self.timeout_seconds = (
            settings.REVALIDATE_TIMEOUT_SECONDS if timeout_seconds is None else timeout_seconds
        )
        self.client = client
        self.logger = logger.bind(service="revalidation_service")

    @property
    def enabled(self) -> bool:
        return bool(self.base_url)

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/api/revalidate/product"

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.secret:
            headers["Authorization"] = f"Bearer {self.secret}"
        return headers

    async def _post(self, client: httpx.AsyncClient, product_id: int) -> httpx.Response:
        return await client.post(
            self.endpoint,
            json={"productId": product_id},
            headers=self._headers(),
            timeout=self.timeout_seconds,
        )

    async def revalidate_product(self, product_id: int) -> bool:
        """Ask the public site to drop its cached page for a product.

        Returns:
            True if the webhook accepted the request
        """
        if not self.enabled:
            return False

        try:
            if self.client is not None:
                response = await self._post(self.client, product_id)
            else:
                async with httpx.AsyncClient() as client:
                    response = await self._post(client, product_id)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            self.logger.error("revalidate_request_failed", product_id=product_id, error=str(e))
            return False

        if not response.is_success:
            self.logger.error("revalidate_rejected", product_id=product_id, status=response.status_code)
            return False

        self.logger.debug("product_revalidated", product_id=product_id)
        return True
