"""Services module for persistence and reconciliation.

Services handle data access, the reconciliation of scrape results into
stored price records, and cache invalidation of the public site.
"""

from pricewatch.services.price_repository import ShopPriceRepository
from pricewatch.services.reconciliation import ReconcileEffect, ReconciliationService
from pricewatch.services.revalidation import RevalidationService

__all__ = [
    "ShopPriceRepository",
    "ReconcileEffect",
    "ReconciliationService",
    "RevalidationService",
]
