"""Cost Explorer query for a linked account, aggregated by service."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Mapping

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from sandbox_bridge.config import settings
from sandbox_bridge.errors import UpstreamServiceError
from sandbox_bridge.schemas.costs import CostQuery

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")


def _round(amount: Decimal) -> float:
    return float(amount.quantize(_CENT, rounding=ROUND_HALF_UP))


@dataclass
class CostReport:
    linked_account_id: str
    start_date: str
    end_date: str
    total_cost: float
    breakdown: list[dict[str, Any]] = field(default_factory=list)
    currency: str = "USD"

    def to_payload(self) -> dict[str, Any]:
        return {
            "linkedAccountId": self.linked_account_id,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "totalCost": self.total_cost,
            "currency": self.currency,
            "breakdown": self.breakdown,
        }


def aggregate_costs(line_items: Iterable[Mapping[str, Any]]) -> tuple[float, list[dict[str, Any]]]:
    """Sum ``{service, cost}`` items per service.

    Returns the rounded total and the per-service breakdown sorted by cost,
    highest first. Sums are exact decimals; rounding is half-up to cents.
    """
    per_service: dict[str, Decimal] = defaultdict(Decimal)
    total = Decimal(0)
    for item in line_items:
        amount = Decimal(str(item.get("cost") or 0))
        per_service[item.get("service") or "Unknown"] += amount
        total += amount

    breakdown = [{"service": service, "cost": _round(amount)} for service, amount in per_service.items()]
    breakdown.sort(key=lambda entry: entry["cost"], reverse=True)
    return _round(total), breakdown


def line_items_from_response(response: Mapping[str, Any]) -> list[dict[str, Any]]:
    items = []
    for result in response.get("ResultsByTime", []):
        for group in result.get("Groups", []):
            keys = group.get("Keys") or ["Unknown"]
            amount = group.get("Metrics", {}).get("UnblendedCost", {}).get("Amount", "0")
            items.append({"service": keys[0], "cost": amount})
    return items


def build_filter(query: CostQuery) -> dict[str, Any]:
    filters: list[dict[str, Any]] = [
        {"Dimensions": {"Key": "LINKED_ACCOUNT", "Values": [query.linked_account_id]}}
    ]
    if query.region:
        filters.append({"Dimensions": {"Key": "REGION", "Values": [query.region]}})
    if len(filters) == 1:
        return filters[0]
    return {"And": filters}


class CostService:
    def __init__(self, ce_client: Any | None = None) -> None:
        self._client = ce_client

    def _cost_explorer(self):
        return self._client or boto3.client("ce", region_name=settings.aws_region)

    def _fetch(self, query: CostQuery) -> list[dict[str, Any]]:
        client = self._cost_explorer()
        request: dict[str, Any] = {
            "TimePeriod": {"Start": query.start_date, "End": query.end_date},
            "Granularity": query.granularity,
            "Metrics": ["UnblendedCost"],
            "Filter": build_filter(query),
            "GroupBy": [{"Type": "DIMENSION", "Key": "SERVICE"}],
        }
        items: list[dict[str, Any]] = []
        while True:
            response = client.get_cost_and_usage(**request)
            items.extend(line_items_from_response(response))
            token = response.get("NextPageToken")
            if not token:
                return items
            request["NextPageToken"] = token

    async def cost_information(self, query: CostQuery) -> CostReport:
        logger.info(
            "querying cost explorer",
            extra={"linked_account_id": query.linked_account_id, "region": query.region},
        )
        try:
            items = await asyncio.to_thread(self._fetch, query)
        except (ClientError, BotoCoreError) as exc:
            raise UpstreamServiceError(str(exc)) from exc

        total, breakdown = aggregate_costs(items)
        return CostReport(
            linked_account_id=query.linked_account_id,
            start_date=query.start_date,
            end_date=query.end_date,
            total_cost=total,
            breakdown=breakdown,
        )
