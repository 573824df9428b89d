"""Tests for the cache invalidation webhook."""

import json

import httpx

from pricewatch.services.revalidation import RevalidationService


class Recorder:
    def __init__(self, status: int = 200, error: Exception = None):
        self.status = status
        self.error = error
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error:
            raise self.error
        return httpx.Response(self.status, json={"revalidated": True})


def make_service(handler, **kwargs) -> RevalidationService:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    kwargs.setdefault("base_url", "https://site.example/")
    return RevalidationService(client=client, **kwargs)


class TestRevalidationService:

    async def test_posts_product_id(self):
        handler = Recorder()
        service = make_service(handler, secret="s3cret")

        assert await service.revalidate_product(42) is True

        request = handler.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://site.example/api/revalidate/product"
        assert json.loads(request.content) == {"productId": 42}
        assert request.headers["Authorization"] == "Bearer s3cret"

    async def test_no_secret_no_authorization_header(self):
        handler = Recorder()
        service = make_service(handler, secret="")

        await service.revalidate_product(1)

        assert "Authorization" not in handler.requests[0].headers

    async def test_disabled_without_base_url(self):
        handler = Recorder()
        service = make_service(handler, base_url="")

        assert service.enabled is False
        assert await service.revalidate_product(1) is False
        assert handler.requests == []

    async def test_rejected_status_is_reported_not_raised(self):
        service = make_service(Recorder(status=401), secret="wrong")

        assert await service.revalidate_product(1) is False

    async def test_transport_error_is_swallowed(self):
        service = make_service(Recorder(error=httpx.ConnectError("refused")))

        assert await service.revalidate_product(1) is False
