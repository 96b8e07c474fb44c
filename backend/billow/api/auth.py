"""Identity provider sync endpoints."""

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from billow.database import get_db
from billow.schemas.user import SyncUserRequest, SyncUserResponse, UserOut, WebhookEvent
from billow.services.auth import (
    delete_user, get_user_by_clerk_id, sync_user, webhook_display_name,
)

router = APIRouter(prefix="/auth", tags=["auth"])
logger = structlog.get_logger()


@router.post("/sync-user", response_model=SyncUserResponse)
async def sync_user_endpoint(body: SyncUserRequest, db: AsyncSession = Depends(get_db)):
    if not body.clerk_id:
        raise HTTPException(status_code=400, detail="Clerk ID is required")
    if not body.email:
        raise HTTPException(status_code=400, detail="Email is required")

    user, is_new = await sync_user(
        db, body.clerk_id, body.email, body.display_name, body.profile_image,
    )
    await db.commit()

    return SyncUserResponse(
        message="User created successfully" if is_new else "User updated successfully",
        user=UserOut.model_validate(user),
        is_new=is_new,
    )


@router.post("/webhook")
async def provider_webhook(event: WebhookEvent, db: AsyncSession = Depends(get_db)):
    data = event.data
    logger.info("webhook_received", type=event.type, clerk_id=data.id)

    if event.type == "user.created":
        if not data.primary_email:
            raise HTTPException(status_code=400, detail="Email is required")
        await sync_user(
            db, data.id, data.primary_email,
            webhook_display_name(data.first_name, data.last_name), data.image_url or "",
        )

    elif event.type == "user.updated":
        user = await get_user_by_clerk_id(db, data.id)
        if user is None:
            raise HTTPException(status_code=404, detail="User not found")
        if data.primary_email:
            user.email = data.primary_email
        user.display_name = webhook_display_name(data.first_name, data.last_name)
        user.profile_image = data.image_url or ""

    elif event.type == "user.deleted":
        user = await get_user_by_clerk_id(db, data.id)
        if user is not None:
            await delete_user(db, user)

    else:
        logger.info("webhook_ignored", type=event.type)

    await db.commit()
    return {"message": "Webhook processed successfully"}
