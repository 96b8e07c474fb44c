"""Client management endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from billow.billing.models import FeatureType
from billow.billing.rate_limit import enforce_rate_limit
from billow.billing.service import check_plan_limit, record_daily_activity, record_usage
from billow.database import get_db
from billow.dependencies import get_current_user
from billow.ids import new_client_id
from billow.models.client import Client
from billow.models.invoice import Invoice, InvoiceStatus
from billow.models.user import User
from billow.schemas.client import ClientCreate, ClientOut, ClientRevenueData, ClientUpdate
from billow.services.clients import get_owned_client, recompute_client_statistics

router = APIRouter(prefix="/clients", tags=["clients"], dependencies=[Depends(enforce_rate_limit)])


async def _get_client_or_404(db: AsyncSession, user: User, client_id: str) -> Client:
    client = await get_owned_client(db, user.id, client_id)
    if not client:
        raise HTTPException(status_code=404, detail="Client not found")
    return client


@router.post("", response_model=ClientOut, status_code=201)
async def create_client(
    body: ClientCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    allowed, reason = await check_plan_limit(db, user.id, "client")
    if not allowed:
        raise HTTPException(
            status_code=403,
            detail={"error": "Plan limit reached", "message": reason, "upgrade_required": True},
        )

    client = Client(
        id=new_client_id(),
        user_id=user.id,
        name=body.name,
        email=body.email,
        payment_delay=body.payment_delay,
        avatar=body.avatar,
    )
    db.add(client)
    await record_usage(db, user.id, FeatureType.CLIENT_CREATED, metadata={"client_id": client.id})
    await record_daily_activity(db, user.id, clients=1)
    await db.commit()
    return ClientOut.model_validate(client)


@router.get("", response_model=list[ClientOut])
async def list_clients(
    search: str | None = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    query = select(Client).where(Client.user_id == user.id).order_by(Client.created_at.desc())
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(Client.name.ilike(pattern), Client.email.ilike(pattern)))

    result = await db.execute(query)
    clients = result.scalars().all()
    for client in clients:
        await recompute_client_statistics(db, client)
    await db.commit()
    return [ClientOut.model_validate(c) for c in clients]


@router.get("/{client_id}", response_model=ClientOut)
async def get_client(
    client_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    client = await _get_client_or_404(db, user, client_id)
    await recompute_client_statistics(db, client)
    await db.commit()
    return ClientOut.model_validate(client)


@router.put("/{client_id}", response_model=ClientOut)
async def update_client(
    client_id: str,
    body: ClientUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    client = await _get_client_or_404(db, user, client_id)
    for field, value in body.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(client, field, value)

    await recompute_client_statistics(db, client)
    await db.commit()
    return ClientOut.model_validate(client)


@router.delete("/{client_id}")
async def delete_client(
    client_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    client = await _get_client_or_404(db, user, client_id)

    invoice_count = (await db.execute(
        select(func.count()).select_from(Invoice)
        .where(Invoice.client_id == client.id, Invoice.user_id == user.id)
    )).scalar_one()
    if invoice_count > 0:
        raise HTTPException(status_code=400, detail="Cannot delete client with existing invoices")

    await db.delete(client)
    await db.commit()
    return {"message": "Client deleted successfully"}


@router.get("/{client_id}/revenue-data", response_model=ClientRevenueData)
async def get_client_revenue_data(
    client_id: str,
    months: int = Query(default=7, ge=1, le=120),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Amounts of the most recent paid invoices, zero padded to ``months`` entries."""
    client = await _get_client_or_404(db, user, client_id)

    result = await db.execute(
        select(Invoice.amount)
        .where(
            Invoice.client_id == client.id,
            Invoice.user_id == user.id,
            Invoice.status == InvoiceStatus.PAID,
        )
        .order_by(Invoice.invoice_date.desc())
        .limit(months)
    )
    amounts = [float(a) for a in result.scalars().all()]
    amounts.extend([0.0] * (months - len(amounts)))

    return ClientRevenueData(client_id=client.id, months=months, revenue_data=amounts)
