"""Read-only dashboard queries.

Every function takes the process :class:`~dashboard.database.Database` handle
and degrades to a safe default instead of raising:

- no connection URL configured -> log a warning, return the default;
- query or row mapping fails -> log the error with traceback, return the default.

Callers therefore cannot tell an empty table from an unreachable database.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Callable, List, Optional, TypeVar

from sqlalchemy import text
from sqlalchemy.engine import Connection

from .database import Database
from .definitions import (
    CardData,
    CustomerField,
    CustomerTableRow,
    InvoiceForm,
    InvoiceTableRow,
    LatestInvoice,
    Revenue,
)
from .utils.currency import cents_to_dollars, format_currency

logger = logging.getLogger(__name__)

T = TypeVar("T")

ITEMS_PER_PAGE = 6
LATEST_INVOICES_LIMIT = 5


def _safe_card_data() -> CardData:
    return CardData(
        number_of_customers=0,
        number_of_invoices=0,
        total_paid_invoices=format_currency(0),
        total_pending_invoices=format_currency(0),
    )


def _fallback(
    database: Database,
    operation: str,
    default: Callable[[], T],
    run: Callable[[Connection], T],
) -> T:
    if not database.configured:
        logger.warning("data.%s.unconfigured", operation, extra={"operation": operation})
        return default()

    try:
        # Building the engine can fail too (bad URL, missing driver).
        engine = database.engine
        with engine.connect() as connection:
            return run(connection)
    except Exception:
        logger.exception("data.%s.failed", operation, extra={"operation": operation})
        return default()


def _search_pattern(query: Optional[str]) -> str:
    return f"%{query or ''}%"


def _to_int(value: Any) -> int:
    return int(value) if value is not None else 0


_INVOICE_SEARCH = """
    customers.name ILIKE :pattern OR
    customers.email ILIKE :pattern OR
    CAST(invoices.amount AS TEXT) ILIKE :pattern OR
    CAST(invoices.date AS TEXT) ILIKE :pattern OR
    invoices.status ILIKE :pattern
"""


def fetch_revenue(database: Database) -> List[Revenue]:
    def run(connection: Connection) -> List[Revenue]:
        rows = connection.execute(text("SELECT month, revenue FROM revenue")).mappings().all()
        return [Revenue(month=row["month"], revenue=_to_int(row["revenue"])) for row in rows]

    return _fallback(database, "fetch_revenue", list, run)


def fetch_latest_invoices(database: Database) -> List[LatestInvoice]:
    def run(connection: Connection) -> List[LatestInvoice]:
        rows = connection.execute(
            text(
                """
                SELECT invoices.amount, customers.name, customers.image_url, customers.email, invoices.id
                FROM invoices
                JOIN customers ON invoices.customer_id = customers.id
                ORDER BY invoices.date DESC
                LIMIT :limit
                """
            ),
            {"limit": LATEST_INVOICES_LIMIT},
        ).mappings().all()

        return [
            LatestInvoice(
                id=str(row["id"]),
                name=row["name"],
                image_url=row["image_url"],
                email=row["email"],
                amount=format_currency(_to_int(row["amount"])),
            )
            for row in rows
        ]

    return _fallback(database, "fetch_latest_invoices", list, run)


def fetch_card_data(database: Database) -> CardData:
    def run(connection: Connection) -> CardData:
        number_of_invoices = connection.execute(text("SELECT COUNT(*) FROM invoices")).scalar()
        number_of_customers = connection.execute(text("SELECT COUNT(*) FROM customers")).scalar()
        totals = connection.execute(
            text(
                """
                SELECT
                  SUM(CASE WHEN status = 'paid' THEN amount ELSE 0 END) AS paid,
                  SUM(CASE WHEN status = 'pending' THEN amount ELSE 0 END) AS pending
                FROM invoices
                """
            )
        ).mappings().first() or {}

        return CardData(
            number_of_customers=_to_int(number_of_customers),
            number_of_invoices=_to_int(number_of_invoices),
            total_paid_invoices=format_currency(_to_int(totals.get("paid"))),
            total_pending_invoices=format_currency(_to_int(totals.get("pending"))),
        )

    return _fallback(database, "fetch_card_data", _safe_card_data, run)


def fetch_filtered_invoices(database: Database, query: Optional[str], current_page: int) -> List[InvoiceTableRow]:
    """Return one page of invoices matching ``query``, newest first."""

    offset = (max(current_page, 1) - 1) * ITEMS_PER_PAGE

    def run(connection: Connection) -> List[InvoiceTableRow]:
        rows = connection.execute(
            text(
                f"""
                SELECT
                  invoices.id,
                  invoices.customer_id,
                  invoices.amount,
                  invoices.date,
                  invoices.status,
                  customers.name,
                  customers.email,
                  customers.image_url
                FROM invoices
                JOIN customers ON invoices.customer_id = customers.id
                WHERE {_INVOICE_SEARCH}
                ORDER BY invoices.date DESC
                LIMIT :limit OFFSET :offset
                """
            ),
            {"pattern": _search_pattern(query), "limit": ITEMS_PER_PAGE, "offset": offset},
        ).mappings().all()

        return [
            InvoiceTableRow(
                id=str(row["id"]),
                customer_id=str(row["customer_id"]),
                name=row["name"],
                email=row["email"],
                image_url=row["image_url"],
                date=row["date"],
                amount=_to_int(row["amount"]),
                status=row["status"],
            )
            for row in rows
        ]

    return _fallback(database, "fetch_filtered_invoices", list, run)


def fetch_invoices_pages(database: Database, query: Optional[str]) -> int:
    """Return how many pages of ``ITEMS_PER_PAGE`` invoices match ``query``."""

    def run(connection: Connection) -> int:
        count = connection.execute(
            text(
                f"""
                SELECT COUNT(*)
                FROM invoices
                JOIN customers ON invoices.customer_id = customers.id
                WHERE {_INVOICE_SEARCH}
                """
            ),
            {"pattern": _search_pattern(query)},
        ).scalar()
        return math.ceil(_to_int(count) / ITEMS_PER_PAGE)

    return _fallback(database, "fetch_invoices_pages", int, run)


def fetch_invoice_by_id(database: Database, invoice_id: str) -> Optional[InvoiceForm]:
    def run(connection: Connection) -> Optional[InvoiceForm]:
        row = connection.execute(
            text(
                """
                SELECT invoices.id, invoices.customer_id, invoices.amount, invoices.status
                FROM invoices
                WHERE invoices.id = :id
                """
            ),
            {"id": invoice_id},
        ).mappings().first()
        if row is None:
            return None

        return InvoiceForm(
            id=str(row["id"]),
            customer_id=str(row["customer_id"]),
            amount=cents_to_dollars(row["amount"]),
            status=row["status"],
        )

    return _fallback(database, "fetch_invoice_by_id", lambda: None, run)


def fetch_customers(database: Database) -> List[CustomerField]:
    def run(connection: Connection) -> List[CustomerField]:
        rows = connection.execute(text("SELECT id, name FROM customers ORDER BY name ASC")).mappings().all()
        return [CustomerField(id=str(row["id"]), name=row["name"]) for row in rows]

    return _fallback(database, "fetch_customers", list, run)


def fetch_filtered_customers(database: Database, query: Optional[str]) -> List[CustomerTableRow]:
    """Customers matching ``query`` by name or email, with invoice totals."""

    def run(connection: Connection) -> List[CustomerTableRow]:
        rows = connection.execute(
            text(
                """
                SELECT
                  customers.id,
                  customers.name,
                  customers.email,
                  customers.image_url,
                  COUNT(invoices.id) AS total_invoices,
                  SUM(CASE WHEN invoices.status = 'pending' THEN invoices.amount ELSE 0 END) AS total_pending,
                  SUM(CASE WHEN invoices.status = 'paid' THEN invoices.amount ELSE 0 END) AS total_paid
                FROM customers
                LEFT JOIN invoices ON customers.id = invoices.customer_id
                WHERE
                  customers.name ILIKE :pattern OR
                  customers.email ILIKE :pattern
                GROUP BY customers.id, customers.name, customers.email, customers.image_url
                ORDER BY customers.name ASC
                """
            ),
            {"pattern": _search_pattern(query)},
        ).mappings().all()

        return [
            CustomerTableRow(
                id=str(row["id"]),
                name=row["name"],
                email=row["email"],
                image_url=row["image_url"],
                total_invoices=_to_int(row["total_invoices"]),
                total_pending=format_currency(_to_int(row["total_pending"])),
                total_paid=format_currency(_to_int(row["total_paid"])),
            )
            for row in rows
        ]

    return _fallback(database, "fetch_filtered_customers", list, run)
