"""
app/models/user.py

Purpose: User account document model

- Telegram user id (document _id)
- Profile fields (informational only)
- Credit balance and usage counters
- Referral statistics
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class UserProfile(BaseModel):
    """Identity of the sender as reported by the chat transport."""
    id: int
    first_name: Optional[str] = None
    username: Optional[str] = None


class Account(BaseModel):
    """
    One account per chat identity, stored as a document in `users`.

    `credits` is never persisted below zero; `searches` only goes down when a
    failed lookup is refunded.
    """
    id: int = Field(..., alias="_id")
    first_name: Optional[str] = None
    username: Optional[str] = None
    credits: int = 0
    searches: int = 0
    join_date: datetime = Field(default_factory=datetime.utcnow)
    referrals: int = 0
    credits_earned: int = 0

    class Config:
        populate_by_name = True

    @classmethod
    def new(cls, profile: UserProfile, initial_credits: int) -> "Account":
        return cls(
            _id=profile.id,
            first_name=profile.first_name,
            username=profile.username,
            credits=initial_credits,
        )

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Account":
        return cls.model_validate(doc)

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)
