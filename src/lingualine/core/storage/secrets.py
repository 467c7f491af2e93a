from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Protocol

logger = logging.getLogger(__name__)


class SecretStore(Protocol):
    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...
    def delete(self, key: str) -> None: ...


@dataclass(slots=True)
class InMemorySecretStore:
    _items: dict[str, str]

    def __init__(self, items: Mapping[str, str] | None = None) -> None:
        self._items = dict(items or {})

    def get(self, key: str) -> str | None:
        return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        self._items[key] = value

    def delete(self, key: str) -> None:
        self._items.pop(key, None)


@dataclass(slots=True)
class KeyringSecretStore:
    service_name: str = "lingualine"

    def _keyring(self):
        import keyring  # type: ignore
        import keyring.errors  # type: ignore

        return keyring

    def get(self, key: str) -> str | None:
        keyring = self._keyring()
        try:
            return keyring.get_password(self.service_name, key)
        except keyring.errors.KeyringError as exc:
            logger.warning(f"[Secrets] Keyring lookup for '{key}' failed: {exc}")
            return None

    def set(self, key: str, value: str) -> None:
        self._keyring().set_password(self.service_name, key, value)

    def delete(self, key: str) -> None:
        keyring = self._keyring()
        try:
            keyring.delete_password(self.service_name, key)
        except keyring.errors.PasswordDeleteError:
            return


def mask_secret(value: str, *, unmasked_prefix: int = 3) -> str:
    if not value:
        return value
    if len(value) <= unmasked_prefix:
        return "*" * len(value)
    return value[:unmasked_prefix] + "****"
