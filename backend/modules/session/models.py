"""
Session module data models.

Profile documents are stored with camelCase field names; the models use
snake_case attributes with camelCase aliases.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from shared.models import Document
from modules.identity.models import Identity


class SessionStatus(str, Enum):
    """Lifecycle of the client session."""

    INITIALIZING = "initializing"
    READY = "ready"
    ERROR = "error"


class Profile(BaseModel):
    """
    Application-level user record, one per identity, keyed by identity id.

    Extra fields written by other parts of the app are preserved.
    """

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "extra": "allow",
    }

    id: str = Field(..., description="Identity ID")
    email: Optional[str] = Field(None, description="Email address")
    full_name: str = Field(default="", description="Full name")
    username: str = Field(default="", description="Public handle")
    registration_no: str = Field(default="", description="Registration number")
    phone_number: str = Field(default="", description="Phone number")
    profile_picture: str = Field(default="", description="Profile picture URL")
    rating: float = Field(default=5.0, description="Trader rating")
    total_trades: int = Field(default=0, ge=0, description="Completed trades")
    created_at: Optional[datetime] = Field(None, description="Creation time (store-assigned)")
    updated_at: Optional[datetime] = Field(None, description="Last update time (store-assigned)")

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "Profile":
        return cls.model_validate(dict(document))

    def to_document(self, include_timestamps: bool = True) -> Document:
        exclude = None if include_timestamps else {"created_at", "updated_at"}
        return self.model_dump(by_alias=True, exclude=exclude)

    def merged(self, fields: Mapping[str, Any]) -> "Profile":
        """Return a copy with ``fields`` (document field names) applied. The id never changes."""
        return Profile.from_document(
            {**self.to_document(), **self.document_fields(fields), "id": self.id}
        )

    @classmethod
    def document_fields(cls, fields: Mapping[str, Any]) -> Document:
        """Rename snake_case attribute names in ``fields`` to stored field names."""
        return {
            (to_camel(key) if key in cls.model_fields else key): value
            for key, value in fields.items()
        }


class ProfileInput(BaseModel):
    """Caller-supplied profile data used when a profile is first created."""

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "extra": "ignore",
    }

    full_name: Optional[str] = None
    username: Optional[str] = None
    registration_no: Optional[str] = None
    phone_number: Optional[str] = None
    profile_picture: Optional[str] = None


class Session(BaseModel):
    """
    Snapshot of the client session.

    Only the reconciler produces snapshots and it sets ``identity`` and
    ``profile`` together. ``profile`` stays None when it could not be
    loaded or created.
    """

    model_config = {"frozen": True}

    identity: Optional[Identity] = None
    profile: Optional[Profile] = None
    status: SessionStatus = SessionStatus.INITIALIZING
    last_error: Optional[str] = None
    loading: bool = False

    @property
    def authenticated(self) -> bool:
        return self.identity is not None
