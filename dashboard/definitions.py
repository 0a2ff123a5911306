"""Public record shapes returned by :mod:`dashboard.data`."""

from __future__ import annotations

from dataclasses import asdict, dataclass
import datetime
from typing import Any, Dict, Literal, Union, get_args

InvoiceStatus = Literal["pending", "paid"]
INVOICE_STATUSES = get_args(InvoiceStatus)


class _Record:
    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)  # type: ignore[call-overload]
        for key, value in payload.items():
            if isinstance(value, (datetime.date, datetime.datetime)):
                payload[key] = value.isoformat()
        return payload


@dataclass(frozen=True)
class Revenue(_Record):
    month: str
    revenue: int


@dataclass(frozen=True)
class LatestInvoice(_Record):
    id: str
    name: str
    image_url: str
    email: str
    amount: str


@dataclass(frozen=True)
class InvoiceTableRow(_Record):
    id: str
    customer_id: str
    name: str
    email: str
    image_url: str
    date: Union[datetime.date, str]
    amount: int
    status: InvoiceStatus


@dataclass(frozen=True)
class InvoiceForm(_Record):
    id: str
    customer_id: str
    amount: float
    status: InvoiceStatus


@dataclass(frozen=True)
class CustomerField(_Record):
    id: str
    name: str


@dataclass(frozen=True)
class CustomerTableRow(_Record):
    id: str
    name: str
    email: str
    image_url: str
    total_invoices: int
    total_pending: str
    total_paid: str


@dataclass(frozen=True)
class CardData(_Record):
    number_of_customers: int
    number_of_invoices: int
    total_paid_invoices: str
    total_pending_invoices: str
