# -*- coding: utf-8 -*-
import itertools

from .models import Client, EmailMessage, Invoice, Lead


# In-memory storage for the demo CRM
# The real application keeps these in its own database


clients: list[Client] = [
    Client(id="c1", name="Simon Parrott", email="simon.parrott@example.com"),
    Client(id="c2", name="Anna Huber", email="anna.huber@example.com"),
]
leads: list[Lead] = []
invoices: list[Invoice] = []
emails: list[EmailMessage] = []

_ids = itertools.count(1)


def next_id(prefix: str) -> str:
    """Returns a new identifier such as ``inv-3``.

    :param prefix: Prefix naming the record kind.
    """
    return f"{prefix}-{next(_ids)}"


def find_client(client_id: str) -> Client | None:
    """Looks up a client by id.

    :param client_id: The client identifier.
    """
    for client in clients:
        if client.id == client_id:
            return client
    return None


def search_clients(term: str) -> list[Client]:
    """Case-insensitive match against client names and emails.

    :param term: Search term.
    """
    needle = term.strip().lower()
    if not needle:
        return []
    return [
        client for client in clients
        if needle in client.name.lower() or needle in client.email.lower()
    ]
