"""Seed the dashboard database with demo customers, invoices and revenue.

The script creates the ``customers``, ``invoices`` and ``revenue`` tables when
they are missing and fills them with plausible demo rows so every dashboard
endpoint has something to return.

Usage:
    POSTGRES_URL=postgres://... python -m scripts.seed_dashboard_data

``SEED_DAYS`` controls how far back invoice dates go (default 90).
"""
from __future__ import annotations

import os
import random
import sys
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence
from uuid import uuid4

from dotenv import load_dotenv
from sqlalchemy import create_engine, func, select
from sqlalchemy.engine import Engine

from dashboard.config import ConfigurationError, DatabaseConfig, resolve_database_config
from dashboard.definitions import INVOICE_STATUSES
from dashboard.models import customers, invoices, metadata, revenue

DEMO_CUSTOMERS = (
    ("Evil Rabbit", "evil@rabbit.com", "/customers/evil-rabbit.png"),
    ("Delba de Oliveira", "delba@oliveira.com", "/customers/delba-de-oliveira.png"),
    ("Lee Robinson", "lee@robinson.com", "/customers/lee-robinson.png"),
    ("Michael Novotny", "michael@novotny.com", "/customers/michael-novotny.png"),
    ("Amy Burns", "amy@burns.com", "/customers/amy-burns.png"),
    ("Balazs Orban", "balazs@orban.com", "/customers/balazs-orban.png"),
)

MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


@dataclass
class SeedConfig:
    database: DatabaseConfig
    days: int = 90
    invoices_per_customer: int = 3


def _resolve_config() -> SeedConfig:
    load_dotenv()
    try:
        database = resolve_database_config(os.environ)
    except ConfigurationError as exc:
        raise SystemExit(str(exc)) from exc
    days = int(os.getenv("SEED_DAYS", "90"))
    return SeedConfig(database=database, days=days)


def build_customers() -> List[Dict[str, str]]:
    return [
        {"id": str(uuid4()), "name": name, "email": email, "image_url": image_url}
        for name, email, image_url in DEMO_CUSTOMERS
    ]


def build_invoices(
    customer_rows: Sequence[Dict[str, str]],
    days: int,
    per_customer: int = 3,
    rng: Optional[random.Random] = None,
    today: Optional[date] = None,
) -> List[Dict[str, object]]:
    rng = rng or random.Random()
    today = today or date.today()
    entries = []
    for customer in customer_rows:
        for _ in range(per_customer):
            entries.append(
                {
                    "id": str(uuid4()),
                    "customer_id": customer["id"],
                    "amount": rng.randint(500, 50000) * 100 + rng.choice([0, 25, 50, 99]),
                    "status": rng.choice(INVOICE_STATUSES),
                    "date": today - timedelta(days=rng.randint(0, max(days - 1, 0))),
                }
            )
    return entries


def build_revenue(rng: Optional[random.Random] = None) -> List[Dict[str, object]]:
    rng = rng or random.Random()
    return [{"month": month, "revenue": rng.randint(1000, 5000)} for month in MONTHS]


def seed(engine: Engine, config: SeedConfig, rng: Optional[random.Random] = None) -> Dict[str, int]:
    """Create the schema if needed and insert demo rows; returns inserted counts."""

    rng = rng or random.Random()
    metadata.create_all(engine)

    customer_rows = build_customers()
    invoice_rows = build_invoices(customer_rows, config.days, config.invoices_per_customer, rng)

    with engine.begin() as connection:
        existing_months = set(connection.execute(select(revenue.c.month)).scalars())
        revenue_rows = [row for row in build_revenue(rng) if row["month"] not in existing_months]

        connection.execute(customers.insert(), customer_rows)
        connection.execute(invoices.insert(), invoice_rows)
        if revenue_rows:
            connection.execute(revenue.insert(), revenue_rows)

        total_invoices = connection.execute(select(func.count()).select_from(invoices)).scalar_one()

    return {
        "customers": len(customer_rows),
        "invoices": len(invoice_rows),
        "revenue": len(revenue_rows),
        "total_invoices": total_invoices,
    }


def main() -> None:
    config = _resolve_config()
    engine = create_engine(config.database.url, **config.database.engine_options())

    print(f"Seeding dashboard data ({config.days} day window)")
    try:
        counts = seed(engine, config)
    except Exception as exc:
        print(f"[!] seed failed: {exc}")
        sys.exit(1)
    finally:
        engine.dispose()

    for name in ("customers", "invoices", "revenue"):
        print(f"Inserted {counts[name]} {name} rows")
    print(f"Seed complete. {counts['total_invoices']} invoices in total.")


if __name__ == "__main__":
    main()
