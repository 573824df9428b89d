"""Pydantic schemas for the ``pricewatch scrape`` batch file.

The input file is a JSON array of ``{id?, shopId, url, api?}`` rows; the
output is the same rows merged with their scrape result fields.
"""

import json
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError, field_validator

from pricewatch.core.exceptions import InvalidInputError
from pricewatch.scrapers.types import ScrapeInput, ScrapeResult, is_shop_id


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class ScrapeBatchRow(BaseModel):
    """One product locator submitted for scraping."""

    model_config = ConfigDict(populate_by_name=True)

    id: Optional[Union[StrictInt, str]] = Field(
        None,
        description="Caller's identifier, echoed back in the output",
        examples=[1042],
    )
    shop_id: StrictInt = Field(
        ...,
        alias="shopId",
        description="Shop id (1 Sirena .. 6 Bravo)",
        examples=[2],
    )
    url: str = Field(
        ...,
        min_length=1,
        description="Product page URL",
        examples=["https://supermercadosnacional.com/leche-entera-1l"],
    )
    api: Optional[str] = Field(
        None,
        description="Vendor API locator (endpoint or SKU) for API-backed shops",
    )

    @field_validator("shop_id")
    @classmethod
    def validate_shop_id(cls, v: int) -> int:
        if not is_shop_id(v):
            raise ValueError(f"unknown shop id {v}")
        return v

    def to_input(self) -> ScrapeInput:
        return ScrapeInput(shop_id=self.shop_id, url=self.url, api=self.api)


def parse_batch(payload: Any) -> List[ScrapeBatchRow]:
    """Validate a decoded batch file.

    Raises:
        InvalidInputError: Not a list, or a row with an invalid shopId/url
    """
    if not isinstance(payload, list):
        raise InvalidInputError("input file must be a JSON array")

    rows = []
    for index, entry in enumerate(payload):
        if not isinstance(entry, dict):
            raise InvalidInputError(f"row {index} must be an object")
        try:
            rows.append(ScrapeBatchRow.model_validate(entry))
        except ValidationError as e:
            fields = sorted({str(error["loc"][0]) for error in e.errors() if error["loc"]})
            raise InvalidInputError(f"row {index} has invalid {', '.join(fields) or 'data'}") from e
    return rows


def load_batch_file(path: str) -> List[ScrapeBatchRow]:
    """Read and validate a batch file from disk."""
    try:
        with open(path, encoding="utf-8") as f:
            payload = json.load(f)
    except json.JSONDecodeError as e:
        raise InvalidInputError(f"input file is not valid JSON: {e}") from e
    return parse_batch(payload)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


def merge_result(row: ScrapeBatchRow, result: ScrapeResult) -> Dict[str, Any]:
    """Output row: caller's id and locators followed by the result fields."""
    return {
        "id": row.id,
        "url": row.url,
        "api": row.api,
        **result.to_dict(),
    }
