from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator

from pydantic import BaseModel, ConfigDict

from .client import FalClient, default_client
from .pagination import DEFAULT_PAGE_SIZE, Page, iter_batched
from .util.validation import get_model_from_payload

MODELS_PATH = "/models"
PRICING_PATH = "/models/pricing"


class Unit(str, Enum):
    """Billing units returned by the pricing service."""

    # output-based
    IMAGES = "image"
    VIDEOS = "video"
    MEGAPIXELS = "megapixels"

    # compute-based (provider-specific)
    GPU_SECONDS = "gpu_second"
    GPU_MINUTES = "gpu_minute"
    GPU_HOURS = "gpu_hour"


class PriceEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    endpoint_id: str
    unit_price: float | None = None
    unit: str | None = None  # usually a Unit value, kept open for new units
    currency: str | None = None


class PricesPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    prices: list[PriceEntry] = []
    next_cursor: str | None = None


class _EndpointRef(BaseModel):
    model_config = ConfigDict(extra="ignore")

    endpoint_id: str | None = None


class _ModelsPage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    models: list[_EndpointRef] = []
    next_cursor: str | None = None


@dataclass
class Price:
    endpoint_id: str
    unit_price: float | None = None
    unit: str | None = None
    currency: str | None = None

    client: FalClient = field(default_factory=default_client, repr=False, compare=False)

    @classmethod
    def from_entry(cls, entry: PriceEntry, client: FalClient) -> "Price":
        return cls(
            endpoint_id=entry.endpoint_id,
            unit_price=entry.unit_price,
            unit=entry.unit,
            currency=entry.currency,
            client=client,
        )

    @classmethod
    def find_by(cls, endpoint_id: str, client: FalClient | None = None) -> "Price | None":
        """Pricing for one endpoint, or None if the service has no entry for it."""
        client = client or default_client()
        for price in cls._lookup([endpoint_id], client):
            if price.endpoint_id == endpoint_id:
                return price
        return None

    @classmethod
    def each(
        cls, client: FalClient | None = None, page_size: int = DEFAULT_PAGE_SIZE
    ) -> Iterator["Price"]:
        """
        Page through /models and fetch pricing for each page in one batched call.
        Lazy: a page of models is requested only when the previous page's
        prices have been consumed.
        """
        client = client or default_client()

        def fetch_page(query: dict) -> Page[_EndpointRef]:
            data = client.get_api(MODELS_PATH, query=query)
            payload = get_model_from_payload(data, _ModelsPage, "models")
            return Page(items=payload.models, next_cursor=payload.next_cursor)

        return iter_batched(
            fetch_page,
            lambda ids: cls._lookup(ids, client),
            key=lambda ref: ref.endpoint_id,
            page_size=page_size,
        )

    @classmethod
    def all(cls, client: FalClient | None = None) -> list["Price"]:
        return list(cls.each(client=client))

    @classmethod
    def _lookup(cls, endpoint_ids: list[str], client: FalClient) -> list["Price"]:
        # GET /models/pricing?endpoint_id=a&endpoint_id=b
        data = client.get_api(PRICING_PATH, query={"endpoint_id": endpoint_ids})
        payload = get_model_from_payload(data, PricesPayload, "pricing")
        return [cls.from_entry(entry, client) for entry in payload.prices]
