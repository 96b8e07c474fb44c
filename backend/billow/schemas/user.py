"""User, sync, webhook and preference schemas."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator


class UserOut(BaseModel):
    id: str
    clerk_id: str | None = None
    email: str
    display_name: str
    profile_image: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class SyncUserRequest(BaseModel):
    """Presence of clerk_id and email is checked by the endpoint (400, not 422)."""
    clerk_id: str = ""
    email: str = ""
    display_name: str = ""
    profile_image: str = ""


class SyncUserResponse(BaseModel):
    message: str
    user: UserOut
    is_new: bool


class WebhookEmail(BaseModel):
    id: str = ""
    email_address: str = ""


class WebhookUserData(BaseModel):
    id: str
    first_name: str | None = None
    last_name: str | None = None
    image_url: str | None = None
    email_addresses: list[WebhookEmail] = Field(default_factory=list)

    @property
    def primary_email(self) -> str:
        return self.email_addresses[0].email_address if self.email_addresses else ""


class WebhookEvent(BaseModel):
    type: str
    data: WebhookUserData


class ProfileUpdate(BaseModel):
    display_name: str = ""
    email: EmailStr | None = None
    profile_image: str = ""

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_unset(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class ProfileUpdateResponse(BaseModel):
    message: str
    user: UserOut


class PreferencesOut(BaseModel):
    id: str
    user_id: str
    theme: str
    language: str
    email_notifications: bool
    push_notifications: bool
    marketing_emails: bool
    weekly_reports: bool
    security_alerts: bool
    currency: str
    timezone: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PreferencesUpdate(BaseModel):
    """Blank strings and omitted flags leave the stored value unchanged."""
    theme: str = ""
    language: str = ""
    email_notifications: bool | None = None
    push_notifications: bool | None = None
    marketing_emails: bool | None = None
    weekly_reports: bool | None = None
    security_alerts: bool | None = None
    currency: str = ""
    timezone: str = ""


class PreferencesUpdateResponse(BaseModel):
    message: str
    preferences: PreferencesOut
