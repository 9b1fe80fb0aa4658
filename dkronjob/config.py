from dataclasses import dataclass
from typing import Optional

import requests

from .client import DkronClient
from .env import DEFAULT_HOST, DEFAULT_TIMEOUT, env_host, env_timeout


@dataclass
class ProviderConfig:
    """Settings every resource operation receives as `meta`."""

    host: str = DEFAULT_HOST
    timeout: float = DEFAULT_TIMEOUT
    session: Optional[requests.Session] = None

    @classmethod
    def from_env(cls, host: Optional[str] = None) -> "ProviderConfig":
        """DKRON_HOST / DKRON_TIMEOUT, with an explicit host taking precedence."""
        return cls(host=host or env_host(), timeout=env_timeout())

    def new_client(self) -> DkronClient:
        return DkronClient(self.host, timeout=self.timeout, session=self.session)
