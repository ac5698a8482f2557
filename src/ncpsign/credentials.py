"""Credential value object and providers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from ncpsign.common.errors import CredentialsError
from ncpsign.common.settings import Settings


@dataclass(frozen=True)
class Credentials:
    """NCP API key pair. The secret key is kept out of ``repr``."""

    access_key: str
    secret_key: str = field(repr=False)


class CredentialProvider(Protocol):
    """Anything that can hand out credentials for a signing call."""

    def get_credentials(self) -> Credentials: ...


class StaticCredentialProvider:
    """Provider returning a fixed key pair."""

    def __init__(self, access_key: str, secret_key: str):
        self._credentials = _checked(access_key, secret_key)

    def get_credentials(self) -> Credentials:
        return self._credentials


class SettingsCredentialProvider:
    """Provider reading ``NCP_ACCESS_KEY`` / ``NCP_SECRET_KEY`` via settings."""

    def __init__(self, settings: Settings):
        self._settings = settings

    def get_credentials(self) -> Credentials:
        secret = self._settings.secret_key
        return _checked(
            self._settings.access_key or "",
            secret.get_secret_value() if secret is not None else "",
        )


def _checked(access_key: str, secret_key: str) -> Credentials:
    missing = [
        name
        for name, value in (("access_key", access_key), ("secret_key", secret_key))
        if not value
    ]
    if missing:
        raise CredentialsError(
            f"Missing credentials: {', '.join(missing)}",
            details={"missing": missing},
        )
    return Credentials(access_key=access_key, secret_key=secret_key)
