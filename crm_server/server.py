# -*- coding: utf-8 -*-
from dataclasses import asdict

from fastmcp import FastMCP

from crm_server.models import EmailMessage, Invoice, Lead
from crm_server.store import (
    emails, find_client, invoices, leads, next_id, search_clients,
)

mcp = FastMCP("StudioCRM")


@mcp.tool()
def global_search(term: str) -> dict:
    """Search clients by name or email.

    :param term: Free-text search term, e.g. a client's name.
    :return: ``{"clients": [...]}`` with the matching client records.
    """
    return {"clients": [asdict(client) for client in search_clients(term)]}


@mcp.tool()
def create_lead(name: str, email: str = "", source: str = "", notes: str = "") -> Lead:
    """Creates a lead for a new enquiry.

    :param name: Full name of the prospective client.
    :param email: Contact email (optional).
    :param source: Where the enquiry came from (optional).
    :param notes: Free-text notes (optional).
    :return: The created Lead.
    """
    lead = Lead(id=next_id("lead"), name=name, email=email, source=source, notes=notes)
    leads.append(lead)
    return lead


@mcp.tool()
def create_invoice(
        client_id: str,
        sku: str,
        amount: float,
        currency: str = "EUR",
        notes: str = ""
) -> Invoice:
    """Creates a draft invoice for an existing client.

    :param client_id: Id of the client to bill.
    :param sku: Price list item, e.g. FAMILY-BASIC.
    :param amount: Gross amount.
    :param currency: ISO currency code (default EUR).
    :param notes: Line item notes (optional).
    :return: The created Invoice.
    """
    if find_client(client_id) is None:
        raise ValueError(f"Unknown client: {client_id}")
    invoice = Invoice(
        id=next_id("inv"),
        client_id=client_id,
        sku=sku,
        amount=float(amount),
        currency=currency,
        notes=notes,
    )
    invoices.append(invoice)
    return invoice


@mcp.tool()
def send_email(to: str, subject: str, body: str) -> EmailMessage:
    """Queues an email to a client.

    :param to: Recipient address, or a client id.
    :param subject: Subject line.
    :param body: Plain-text body.
    :return: The queued EmailMessage.
    """
    client = find_client(to)
    message = EmailMessage(
        id=next_id("mail"),
        to=client.email if client else to,
        subject=subject,
        body=body,
    )
    emails.append(message)
    return message


@mcp.tool()
def list_invoices(client_id: str = "") -> list[Invoice]:
    """Lists invoices, optionally for a single client.

    :param client_id: Restrict to this client (optional).
    :return: A list of Invoice objects.
    """
    if not client_id:
        return list(invoices)
    return [invoice for invoice in invoices if invoice.client_id == client_id]


if __name__ == "__main__":
    mcp.run()
