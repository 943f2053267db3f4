from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, Callable, Iterator

from pydantic import BaseModel, ConfigDict

from .client import FalClient, default_client
from .pagination import DEFAULT_PAGE_SIZE, Page, iter_items
from .price import Price
from .request import Request
from .util.validation import get_model_from_payload

MODELS_PATH = "/models"


class ModelEntry(BaseModel):
    """One entry of GET /models. `metadata` is kept as returned."""

    model_config = ConfigDict(extra="ignore")

    endpoint_id: str
    metadata: dict[str, Any] | None = None
    openapi: dict[str, Any] | None = None


class ModelsPage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    models: list[ModelEntry] = []
    next_cursor: str | None = None


@dataclass
class Model:
    """A model endpoint discoverable through the Models API."""

    endpoint_id: str
    metadata: dict[str, Any] = field(default_factory=dict)
    openapi: dict[str, Any] | None = None

    client: FalClient = field(default_factory=default_client, repr=False, compare=False)

    @classmethod
    def from_entry(cls, entry: ModelEntry, client: FalClient) -> "Model":
        return cls(
            endpoint_id=entry.endpoint_id,
            metadata=entry.metadata or {},
            openapi=entry.openapi,
            client=client,
        )

    @cached_property
    def price(self) -> Price | None:
        # fetched on first access and never refreshed; not safe to share the
        # first access across threads
        return Price.find_by(self.endpoint_id, client=self.client)

    def run(self, input: dict | None = None, webhook_url: str | None = None) -> Request:
        """Submit a queued request to this endpoint."""
        return Request.create(
            self.endpoint_id, input=input, webhook_url=webhook_url, client=self.client
        )

    def stream(
        self, input: dict | None = None, callback: Callable[[Any], Any] | None = None
    ) -> Request:
        return Request.stream(
            self.endpoint_id, input=input, callback=callback, client=self.client
        )

    # listing -----------------------------------------------------------------
    @classmethod
    def find_by(cls, endpoint_id: str, client: FalClient | None = None) -> "Model | None":
        client = client or default_client()
        data = client.get_api(MODELS_PATH, query={"endpoint_id": endpoint_id})
        payload = get_model_from_payload(data, ModelsPage, "models")
        for entry in payload.models:
            if entry.endpoint_id == endpoint_id:
                return cls.from_entry(entry, client)
        return None

    @classmethod
    def each(
        cls,
        client: FalClient | None = None,
        query: str | None = None,
        category: str | None = None,
        status: str | None = None,
        expand: list[str] | str | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> Iterator["Model"]:
        """
        Lazily iterate models matching the filters, page by page.

        Args:
            query: free-text search (`q`)
            category: e.g. "text-to-image"
            status: e.g. "active"
            expand: extra fields to include, e.g. "openapi-3.0"
        """
        client = client or default_client()

        def fetch_page(params: dict) -> Page["Model"]:
            data = client.get_api(MODELS_PATH, query=params)
            payload = get_model_from_payload(data, ModelsPage, "models")
            return Page(
                items=[cls.from_entry(entry, client) for entry in payload.models],
                next_cursor=payload.next_cursor,
            )

        return iter_items(
            fetch_page,
            page_size=page_size,
            q=query,
            category=category,
            status=status,
            expand=expand,
        )

    @classmethod
    def all(
        cls,
        client: FalClient | None = None,
        query: str | None = None,
        category: str | None = None,
        status: str | None = None,
        expand: list[str] | str | None = None,
    ) -> list["Model"]:
        return list(
            cls.each(
                client=client,
                query=query,
                category=category,
                status=status,
                expand=expand,
            )
        )

    @classmethod
    def search(
        cls,
        query: str | None = None,
        category: str | None = None,
        status: str | None = None,
        expand: list[str] | str | None = None,
        client: FalClient | None = None,
    ) -> list["Model"]:
        """Convenience wrapper returning every match as a list."""
        return cls.all(
            client=client, query=query, category=category, status=status, expand=expand
        )
