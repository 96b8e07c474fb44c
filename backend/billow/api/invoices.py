"""Invoice endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from billow.billing.models import FeatureType
from billow.billing.rate_limit import enforce_rate_limit
from billow.billing.service import check_plan_limit, record_daily_activity, record_usage
from billow.database import get_db
from billow.dependencies import get_current_user
from billow.ids import new_client_id, new_invoice_id
from billow.models.client import Client
from billow.models.invoice import Invoice
from billow.models.user import User
from billow.schemas.invoice import InvoiceCreate, InvoiceOut, InvoiceUpdate
from billow.services.clients import get_client_by_name, get_owned_client, recompute_for_client_ids
from billow.services.currency import convert_to_usd

router = APIRouter(prefix="/invoices", tags=["invoices"], dependencies=[Depends(enforce_rate_limit)])


def _limit_denied(reason: str) -> HTTPException:
    return HTTPException(
        status_code=403,
        detail={"error": "Plan limit reached", "message": reason, "upgrade_required": True},
    )


async def _client_by_legacy_name(db: AsyncSession, user: User, name: str) -> Client:
    """Find the caller's client called ``name``, creating it when missing."""
    client = await get_client_by_name(db, user.id, name)
    if client:
        return client

    allowed, reason = await check_plan_limit(db, user.id, "client")
    if not allowed:
        raise _limit_denied(reason)

    client = Client(id=new_client_id(), user_id=user.id, name=name, email="")
    db.add(client)
    await record_usage(db, user.id, FeatureType.CLIENT_CREATED, metadata={"client_id": client.id, "source": "invoice"})
    await record_daily_activity(db, user.id, clients=1)
    await db.flush()
    return client


async def _resolve_client(db: AsyncSession, user: User, client_id: str | None, client_name: str | None) -> Client:
    if client_id:
        client = await get_owned_client(db, user.id, client_id)
        if not client:
            raise HTTPException(status_code=400, detail="Invalid client selected")
        return client
    if client_name:
        return await _client_by_legacy_name(db, user, client_name)
    raise HTTPException(status_code=400, detail="Client is required")


async def _get_invoice_or_404(db: AsyncSession, user: User, invoice_id: str) -> Invoice:
    result = await db.execute(select(Invoice).where(Invoice.id == invoice_id, Invoice.user_id == user.id))
    invoice = result.scalar_one_or_none()
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return invoice


def _with_client_name(invoice: Invoice, name: str | None) -> InvoiceOut:
    out = InvoiceOut.model_validate(invoice)
    if name:
        out = out.model_copy(update={"client_name": name})
    return out


@router.post("", response_model=InvoiceOut, status_code=201)
async def create_invoice(
    body: InvoiceCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    allowed, reason = await check_plan_limit(db, user.id, "invoice")
    if not allowed:
        raise _limit_denied(reason)

    client = await _resolve_client(db, user, body.client_id, body.client_name)

    invoice = Invoice(
        id=new_invoice_id(),
        user_id=user.id,
        client_id=client.id,
        client_name=client.name,
        invoice_date=body.invoice_date,
        due_date=body.due_date,
        amount=body.amount,
        currency_type=body.currency_type,
        status=body.status,
    )
    db.add(invoice)
    await record_usage(
        db, user.id, FeatureType.INVOICE_CREATED,
        metadata={"invoice_id": invoice.id, "amount": invoice.amount, "currency": invoice.currency_type},
    )
    await record_daily_activity(db, user.id, invoices=1, revenue=convert_to_usd(invoice.amount, invoice.currency_type))
    await db.flush()

    await recompute_for_client_ids(db, user.id, [client.id])
    await db.commit()
    return InvoiceOut.model_validate(invoice)


@router.get("", response_model=list[InvoiceOut])
async def list_invoices(
    limit: int | None = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    query = (
        select(Invoice, Client.name)
        .outerjoin(Client, Client.id == Invoice.client_id)
        .where(Invoice.user_id == user.id)
        .order_by(Invoice.created_at.desc())
    )
    # Non-positive limits are ignored
    if limit and limit > 0:
        query = query.limit(limit)

    result = await db.execute(query)
    return [_with_client_name(invoice, name) for invoice, name in result.all()]


@router.get("/{invoice_id}", response_model=InvoiceOut)
async def get_invoice(
    invoice_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    invoice = await _get_invoice_or_404(db, user, invoice_id)
    client = await get_owned_client(db, user.id, invoice.client_id)
    return _with_client_name(invoice, client.name if client else None)


@router.put("/{invoice_id}", response_model=InvoiceOut)
async def update_invoice(
    invoice_id: str,
    body: InvoiceUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    invoice = await _get_invoice_or_404(db, user, invoice_id)
    previous_client_id = invoice.client_id
    changes = body.model_dump(exclude_unset=True, exclude={"client_id", "client_name"})

    if body.client_id or body.client_name:
        client = await _resolve_client(db, user, body.client_id, body.client_name)
        invoice.client_id = client.id
        invoice.client_name = client.name

    for field, value in changes.items():
        if value is not None:
            setattr(invoice, field, value)
    await db.flush()

    await recompute_for_client_ids(db, user.id, [previous_client_id, invoice.client_id])
    await db.commit()
    return InvoiceOut.model_validate(invoice)


@router.delete("/{invoice_id}")
async def delete_invoice(
    invoice_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    invoice = await _get_invoice_or_404(db, user, invoice_id)
    client_id = invoice.client_id

    await db.delete(invoice)
    await db.flush()
    await recompute_for_client_ids(db, user.id, [client_id])
    await db.commit()
    return {"message": "Invoice deleted successfully"}
