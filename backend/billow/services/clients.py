"""Client statistics - recomputed from the client's own invoices."""

from collections.abc import Iterable

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from billow.models.client import Client
from billow.models.invoice import Invoice, InvoiceStatus

logger = structlog.get_logger()


def compute_client_statistics(invoices: Iterable[Invoice]) -> dict:
    total_invoiced = 0.0
    total_paid = 0.0
    count = 0
    for inv in invoices:
        count += 1
        total_invoiced += inv.amount
        if inv.status == InvoiceStatus.PAID:
            total_paid += inv.amount

    return {
        "total_invoiced": total_invoiced,
        "total_paid": total_paid,
        "invoice_count": count,
        "average_invoice": total_invoiced / count if count else 0.0,
    }


async def recompute_client_statistics(db: AsyncSession, client: Client) -> Client:
    """Refresh the denormalized totals on ``client``. Caller commits."""
    result = await db.execute(
        select(Invoice).where(Invoice.client_id == client.id, Invoice.user_id == client.user_id)
    )
    stats = compute_client_statistics(result.scalars().all())
    for field, value in stats.items():
        setattr(client, field, value)
    await db.flush()
    logger.debug("client_statistics_recomputed", client_id=client.id, **stats)
    return client


async def recompute_for_client_ids(db: AsyncSession, user_id: str, client_ids: Iterable[str]) -> None:
    ids = {cid for cid in client_ids if cid}
    if not ids:
        return
    result = await db.execute(select(Client).where(Client.id.in_(ids), Client.user_id == user_id))
    for client in result.scalars().all():
        await recompute_client_statistics(db, client)


async def get_owned_client(db: AsyncSession, user_id: str, client_id: str) -> Client | None:
    result = await db.execute(select(Client).where(Client.id == client_id, Client.user_id == user_id))
    return result.scalar_one_or_none()


async def get_client_by_name(db: AsyncSession, user_id: str, name: str) -> Client | None:
    result = await db.execute(
        select(Client).where(Client.name == name, Client.user_id == user_id).limit(1)
    )
    return result.scalars().first()


async def list_user_clients(db: AsyncSession, user_id: str) -> list[Client]:
    result = await db.execute(select(Client).where(Client.user_id == user_id).order_by(Client.created_at))
    return list(result.scalars().all())


async def list_user_invoices(db: AsyncSession, user_id: str) -> list[Invoice]:
    result = await db.execute(select(Invoice).where(Invoice.user_id == user_id))
    return list(result.scalars().all())
