from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from pydantic import BaseModel, ConfigDict

from .client import FalClient, default_client
from .util.validation import get_model_from_payload

ESTIMATE_PATH = "/models/pricing/estimate"


class EstimateType(str, Enum):
    HISTORICAL_API_PRICE = "historical_api_price"
    UNIT_PRICE = "unit_price"


@dataclass
class Endpoint:
    endpoint_id: str
    call_quantity: int | None = None
    unit_quantity: float | None = None


class EstimatePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    estimate_type: str | None = None
    total_cost: float | None = None
    currency: str | None = None


@dataclass
class PriceEstimate:
    estimate_type: str | None = None
    total_cost: float | None = None
    currency: str | None = None

    client: FalClient = field(default_factory=default_client, repr=False, compare=False)

    @classmethod
    def create(
        cls,
        estimate_type: EstimateType | str,
        endpoints: Iterable[Endpoint | dict],
        client: FalClient | None = None,
    ) -> "PriceEstimate":
        """POST https://api.fal.ai/v1/models/pricing/estimate"""
        client = client or default_client()
        estimate_type = EstimateType(estimate_type)

        endpoint_map: dict[str, dict[str, float | int | None]] = {}
        for ep in endpoints:
            endpoint = ep if isinstance(ep, Endpoint) else Endpoint(**ep)
            quantity = (
                endpoint.unit_quantity
                if endpoint.unit_quantity is not None
                else endpoint.call_quantity
            )
            if estimate_type is EstimateType.UNIT_PRICE:
                # call_quantity is accepted as an alias for units here
                endpoint_map[endpoint.endpoint_id] = {"unit_quantity": quantity}
            else:
                endpoint_map[endpoint.endpoint_id] = {"call_quantity": quantity}

        data = client.post_api(
            ESTIMATE_PATH,
            {"estimate_type": estimate_type.value, "endpoints": endpoint_map},
        )
        payload = get_model_from_payload(data, EstimatePayload, "estimate")
        return cls(
            estimate_type=payload.estimate_type,
            total_cost=payload.total_cost,
            currency=payload.currency,
            client=client,
        )
