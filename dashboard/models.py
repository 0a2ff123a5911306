"""Table definitions for the dashboard schema.

Request handlers issue raw parameterized SQL against these tables; the
metadata here is only used to create the schema for local and demo databases.
"""

from __future__ import annotations

from sqlalchemy import CheckConstraint, Column, Date, ForeignKey, Integer, MetaData, String, Table

from .definitions import INVOICE_STATUSES

metadata = MetaData()

customers = Table(
    "customers",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("name", String(255), nullable=False),
    Column("email", String(255), nullable=False),
    Column("image_url", String(255), nullable=False),
)

invoices = Table(
    "invoices",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("customer_id", String(36), ForeignKey("customers.id"), nullable=False),
    # Stored in cents.
    Column("amount", Integer, nullable=False),
    Column("status", String(255), nullable=False),
    Column("date", Date, nullable=False),
    CheckConstraint(
        "status IN (%s)" % ", ".join(f"'{status}'" for status in INVOICE_STATUSES),
        name="invoices_status_check",
    ),
)

revenue = Table(
    "revenue",
    metadata,
    Column("month", String(4), primary_key=True),
    Column("revenue", Integer, nullable=False),
)
