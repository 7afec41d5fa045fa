from __future__ import annotations

import jwt

from network_chat.application.dto.principal import Principal

# Claim names accepted for the user id, in order of preference
_SUBJECT_CLAIMS = ("sub", "id", "userId")


class HS256Verifier:
    """Verify session JWTs signed with a shared HS256 secret."""

    def __init__(self, secret: str, algorithm: str = "HS256") -> None:
        self._secret = secret
        self._algorithm = algorithm

    async def verify(self, token: str) -> Principal:
        payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        subject = next(
            (payload[claim] for claim in _SUBJECT_CLAIMS if payload.get(claim) is not None),
            None,
        )
        if subject is None:
            raise jwt.InvalidTokenError("Token carries no user id")
        return Principal(user_id=int(subject))
