"""Token records persisted by tokenstore."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# Tokens this close to expiry are treated as stale by callers deciding
# whether a stored token can still be reused.
DEFAULT_REFRESH_WINDOW = timedelta(minutes=5)

CLI_EXPIRES_ON_FORMATS = ("%Y-%m-%d %H:%M:%S.%f", "%Y-%m-%d %H:%M:%S")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Token(BaseModel):
    """OAuth token as returned by an identity provider.

    Numeric fields accept JSON numbers or numeric strings. Keys that are not
    declared here are ignored when decoding.
    """

    model_config = ConfigDict(extra="ignore")

    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    expires_on: Optional[int] = None
    not_before: Optional[int] = None
    resource: Optional[str] = None
    token_type: Optional[str] = None

    def expires_at(self) -> Optional[datetime]:
        """Return the expiry as an aware UTC datetime.

        ``None`` when unset or not representable (e.g. milliseconds written
        where seconds are expected).
        """
        if self.expires_on is None:
            return None
        try:
            return datetime.fromtimestamp(self.expires_on, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    def will_expire_in(self, delta: timedelta, now: Optional[datetime] = None) -> bool:
        """True if the token is expired at ``now + delta``.

        A token without ``expires_on`` is always considered expired.
        """
        expiry = self.expires_at()
        if expiry is None:
            return True
        reference = (now or _utcnow()) + delta
        return expiry <= reference

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return self.will_expire_in(timedelta(0), now=now)


class CLIToken(BaseModel):
    """One entry from a CLI-managed token cache such as ``accessTokens.json``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    access_token: str = Field(alias="accessToken")
    refresh_token: Optional[str] = Field(None, alias="refreshToken")
    expires_on: Optional[str] = Field(None, alias="expiresOn")
    authority: Optional[str] = Field(None, alias="_authority")
    client_id: Optional[str] = Field(None, alias="_clientId")
    identity_provider: Optional[str] = Field(None, alias="identityProvider")
    is_mrrt: Optional[bool] = Field(None, alias="isMRRT")
    resource: Optional[str] = None
    token_type: Optional[str] = Field(None, alias="tokenType")
    user_id: Optional[str] = Field(None, alias="userId")

    def expires_at(self) -> Optional[datetime]:
        """Parse ``expiresOn`` (local wall-clock time) into an aware UTC datetime."""
        if not self.expires_on:
            return None
        for fmt in CLI_EXPIRES_ON_FORMATS:
            try:
                return datetime.strptime(self.expires_on, fmt).astimezone(timezone.utc)
            except (OverflowError, OSError, ValueError):
                continue
        return None

    def will_expire_in(self, delta: timedelta, now: Optional[datetime] = None) -> bool:
        """Same rule as :meth:`Token.will_expire_in`, applied to ``expiresOn``."""
        expiry = self.expires_at()
        if expiry is None:
            return True
        return expiry <= (now or _utcnow()) + delta

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return self.will_expire_in(timedelta(0), now=now)

    def to_token(self) -> Token:
        expiry = self.expires_at()
        return Token(
            access_token=self.access_token,
            refresh_token=self.refresh_token,
            expires_on=int(expiry.timestamp()) if expiry is not None else None,
            resource=self.resource,
            token_type=self.token_type,
        )


__all__ = ["CLIToken", "DEFAULT_REFRESH_WINDOW", "Token"]
