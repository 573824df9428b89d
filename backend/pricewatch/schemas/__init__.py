"""Pydantic schemas for PriceWatch batch files.

All request/response models are defined here for easy import.
"""

from pricewatch.schemas.scrape_batch import (
    ScrapeBatchRow,
    load_batch_file,
    merge_result,
    parse_batch,
)

__all__ = [
    # Batch input
    "ScrapeBatchRow",
    "parse_batch",
    "load_batch_file",
    # Batch output
    "merge_result",
]
