from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Union

from domain.user import User


class MessageType(Enum):
    # requests
    SIGN_UP_REQUEST = "SIGN_UP_REQUEST"
    SIGN_IN_REQUEST = "SIGN_IN_REQUEST"
    GET_USER = "GET_USER"
    COUNTRIES_REQUEST = "COUNTRIES_REQUEST"

    # sign-up
    OK_RESPONSE = "OK_RESPONSE"
    LOGIN_EXIST_ERROR = "LOGIN_EXIST_ERROR"
    SQL_ERROR = "SQL_ERROR"

    # sign-in
    LOGIN_OK = "LOGIN_OK"
    NON_ACTIVE = "NON_ACTIVE"
    SIGNIN_ERROR = "SIGNIN_ERROR"

    # profile
    GET_OK = "GET_OK"
    GET_FAIL = "GET_FAIL"

    # directory
    COUNTRIES_OK = "COUNTRIES_OK"
    COUNTRIES_ERROR = "COUNTRIES_ERROR"

    # shared
    CONNECTION_ERROR = "CONNECTION_ERROR"
    BAD_RESPONSE = "BAD_RESPONSE"

    @property
    def is_request(self) -> bool:
        return self in REQUEST_TYPES


REQUEST_TYPES = frozenset({
    MessageType.SIGN_UP_REQUEST,
    MessageType.SIGN_IN_REQUEST,
    MessageType.GET_USER,
    MessageType.COUNTRIES_REQUEST,
})


Payload = Union[User, tuple[str, ...], str, None]


@dataclass(frozen=True)
class Message:
    """
    Request/response envelope, one per connection direction.

    ``payload`` is a :class:`User`, a sequence of strings (stored as a tuple),
    an error marker string or ``None``.
    """
    type: MessageType
    payload: Payload = None

    def __post_init__(self):
        # lists arrive from callers and from JSON; keep the envelope immutable
        if isinstance(self.payload, list):
            object.__setattr__(self, "payload", tuple(self.payload))

    @property
    def user(self) -> Optional[User]:
        return self.payload if isinstance(self.payload, User) else None

    @property
    def strings(self) -> Optional[Sequence[str]]:
        return self.payload if isinstance(self.payload, tuple) else None

    @property
    def error(self) -> Optional[str]:
        return self.payload if isinstance(self.payload, str) else None
