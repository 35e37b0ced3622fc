"""SSL settings for database connections."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class SSLMode(StrEnum):
    REQUIRE = "require"
    DISABLE = "disable"
    VERIFY_CA = "verify-ca"
    VERIFY_FULL = "verify-full"


@dataclass
class SSLConfig:
    """SSL mode and certificates for a connection."""

    mode: str = ""
    server_ca: str = ""
    client_cert: str = ""
    client_key: str = ""

    def validate(self) -> None:
        """Raise ValueError if a required setting is missing."""
        if not self.mode:
            raise ValueError("'ssl.mode' is required parameter")
        if self.mode in (SSLMode.VERIFY_CA, SSLMode.VERIFY_FULL):
            if not self.server_ca:
                raise ValueError("'ssl.server_ca' is required parameter")
            if not self.client_cert:
                raise ValueError("'ssl.client_cert' is required parameter")
            if not self.client_key:
                raise ValueError("'ssl.client_key' is required parameter")