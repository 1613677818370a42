#
# SPDX-License-Identifier: AGPL-3.0-only
# Copyright (c) 2026 m2-eng
# Author: m2-eng
# Co-Author: GitHub Copilot
# License: GNU Affero General Public License v3.0 (AGPL-3.0-only)
# Purpose: Pydantic models for wire envelope and payload validation.
#
"""
Pydantic models for wire envelope and payload validation
"""

from dataclasses import asdict
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr, TypeAdapter

from domain.user import User


PayloadKind = Literal["user", "strings", "error", "none"]


class Envelope(BaseModel):
    """Outer JSON object of every frame"""
    type: StrictStr
    payload_kind: PayloadKind = "none"
    payload: Any = None


class UserPayload(BaseModel):
    """User as sent on the wire; ``zip_code`` travels as ``zip``"""
    model_config = ConfigDict(populate_by_name=True)

    login: Optional[StrictStr] = None
    password: Optional[StrictStr] = None
    name: Optional[StrictStr] = None
    street: Optional[StrictStr] = None
    zip_code: Optional[StrictStr] = Field(default=None, alias="zip")
    city: Optional[StrictStr] = None
    active: StrictBool = True
    user_id: Optional[StrictInt] = None

    @classmethod
    def from_user(cls, user: User) -> "UserPayload":
        return cls.model_validate(asdict(user))

    def to_user(self) -> User:
        return User(**self.model_dump())

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


# payload validators by kind; "none" carries nothing
PAYLOAD_ADAPTERS: dict[str, TypeAdapter] = {
    "user": TypeAdapter(UserPayload),
    "strings": TypeAdapter(list[StrictStr]),
    "error": TypeAdapter(StrictStr),
}
