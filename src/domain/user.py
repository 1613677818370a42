from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class User:
    login: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None
    street: Optional[str] = None
    zip_code: Optional[str] = None
    city: Optional[str] = None
    active: bool = True
    user_id: Optional[int] = None
