"""
Data models for the demo studio CRM tool server.

This module contains the dataclasses used to represent clients, leads,
invoices and outgoing emails in the in-memory CRM store.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Client:
    """Represents a studio client."""
    id: str
    name: str
    email: str = ""
    phone: str = ""


@dataclass
class Lead:
    """Represents a prospective client captured from an enquiry."""
    id: str
    name: str
    email: str = ""
    source: str = ""
    notes: str = ""


@dataclass
class Invoice:
    """Represents a draft invoice for a client."""
    id: str
    client_id: str
    sku: str
    amount: float
    currency: str = "EUR"
    notes: str = ""
    status: str = "draft"


@dataclass
class EmailMessage:
    """Represents an email queued for delivery to a client."""
    id: str
    to: str
    subject: str
    body: str
    status: str = "queued"
