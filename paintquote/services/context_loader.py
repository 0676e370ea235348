"""Contractor Context Loader.

Assembles a ContractorContext from four independent data-source reads.
Each read degrades to its own default on failure, so load() never raises.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Dict, Any, List, Optional, Callable

import structlog

from paintquote.config.settings import Settings, settings as default_settings
from paintquote.models.contractor_context import (
    BusinessMetrics,
    ContractorContext,
    ContractorSettings,
    PaintProduct,
    RecentQuoteSummary,
    DEFAULT_BUSINESS_TYPE,
    DEFAULT_COMPANY_NAME,
    DEFAULT_CONTACT_NAME,
)
from paintquote.models.quote_data import coerce_number
from paintquote.services.data_source import ContractorDataSource

logger = structlog.get_logger()

METRICS_LOOKBACK_DAYS = 30
RECENT_QUOTE_SUMMARIES = 5


def _parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 created_at value into an aware datetime."""
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _quote_amount(quote: Dict[str, Any]) -> float:
    return coerce_number(quote.get("final_price")) or coerce_number(quote.get("total_revenue")) or 0.0


def compute_business_metrics(
    quotes: List[Dict[str, Any]],
    now: datetime,
    preferred_margin: float
) -> BusinessMetrics:
    """Aggregate the last 30 days of quotes.

    Win rate is accepted/total x 100; revenue sums final_price (or
    total_revenue); both ratios are 0 when there are no quotes in the window.
    """
    cutoff = now - timedelta(days=METRICS_LOOKBACK_DAYS)
    monthly = []
    for quote in quotes:
        created = _parse_timestamp(quote.get("created_at"))
        if created is not None and created > cutoff:
            monthly.append(quote)

    accepted = [q for q in monthly if q.get("status") == "accepted"]
    total = len(monthly)
    revenue = sum(_quote_amount(q) for q in monthly)

    return BusinessMetrics(
        average_job_size=revenue / total if total else 0.0,
        win_rate=len(accepted) / total * 100 if total else 0.0,
        total_quotes_this_month=total,
        revenue_this_month=revenue,
        preferred_margin=preferred_margin
    )


def summarize_recent_quotes(quotes: List[Dict[str, Any]], now: datetime) -> List[RecentQuoteSummary]:
    """Summaries of the five most recent quotes for conversational context."""
    summaries = []
    for quote in quotes[:RECENT_QUOTE_SUMMARIES]:
        created = _parse_timestamp(quote.get("created_at"))
        days_ago = max(0, (now - created).days) if created else 0
        summaries.append(RecentQuoteSummary(
            customer_name=quote.get("customer_name") or quote.get("client_name") or "",
            address=quote.get("address") or quote.get("property_address") or "",
            amount=_quote_amount(quote),
            status=quote.get("status") or "",
            days_ago=days_ago,
            project_type=quote.get("project_type") or ""
        ))
    return summaries


class ContractorContextLoader:
    """Loads one contractor's context snapshot from the data source."""

    def __init__(
        self,
        data_source: Optional[ContractorDataSource] = None,
        settings: Optional[Settings] = None,
        now: Optional[Callable[[], datetime]] = None
    ):
        """Initialize ContractorContextLoader.

        Args:
            data_source: Data source client (default: built from settings).
            settings: Settings instance (default: module settings).
            now: Clock returning an aware datetime (injectable for tests).
        """
        self.settings = settings or default_settings
        self.data_source = data_source or ContractorDataSource(settings=self.settings)
        self._now = now or (lambda: datetime.now(timezone.utc))

    async def load(self, company_id: str) -> ContractorContext:
        """Load the full contractor context.

        Never raises: a failed sub-resource read falls back to that
        sub-resource's default only.

        Args:
            company_id: Company identifier.

        Returns:
            Fully populated ContractorContext.
        """
        try:
            company, raw_settings, paints, quotes = await asyncio.gather(
                self.data_source.get_company(company_id),
                self.data_source.get_settings(company_id),
                self.data_source.get_paint_products(company_id),
                self.data_source.get_recent_quotes(company_id, limit=self.settings.recent_quotes_limit),
                return_exceptions=True
            )

            failed = []
            if isinstance(company, Exception):
                failed.append("company")
                company = {}
            if isinstance(raw_settings, Exception):
                failed.append("settings")
                raw_settings = {}
            if isinstance(paints, Exception):
                failed.append("paints")
                paints = []
            if isinstance(quotes, Exception):
                failed.append("quotes")
                quotes = []

            if failed:
                logger.warning(
                    "contractor_context_partial_load",
                    company_id=company_id,
                    failed_resources=failed
                )

            contractor_settings = ContractorSettings.from_raw(raw_settings)
            now = self._now()

            context = ContractorContext(
                company_id=company_id,
                company_name=company.get("company_name") or company.get("name") or DEFAULT_COMPANY_NAME,
                contact_name=company.get("contact_name") or company.get("contactName") or DEFAULT_CONTACT_NAME,
                business_type=company.get("business_type") or DEFAULT_BUSINESS_TYPE,
                settings=contractor_settings,
                paint_products=self._parse_products(paints),
                recent_quotes=summarize_recent_quotes(quotes, now),
                metrics=compute_business_metrics(
                    quotes, now, contractor_settings.default_markup_percentage
                )
            )

            logger.info(
                "contractor_context_loaded",
                company_id=company_id,
                paint_products=len(context.paint_products),
                recent_quotes=len(context.recent_quotes),
                quotes_this_month=context.metrics.total_quotes_this_month
            )
            return context

        except Exception as e:
            logger.error("contractor_context_load_failed", company_id=company_id, error=str(e))
            return ContractorContext.default(company_id)

    def _parse_products(self, paints: List[Any]) -> List[PaintProduct]:
        products = []
        for raw in paints:
            if not isinstance(raw, dict):
                continue
            try:
                products.append(PaintProduct.model_validate(raw))
            except ValueError as e:
                logger.warning("paint_product_skipped", error=str(e))
        return products
