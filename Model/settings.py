# Model/settings.py
from __future__ import annotations
import os
from dataclasses import dataclass

# Environment keys
ENV_USER_AGENT = "LOCATIONMAP_USER_AGENT"
ENV_TIMEOUT = "LOCATIONMAP_GEOCODER_TIMEOUT"
ENV_DOMAIN = "LOCATIONMAP_GEOCODER_DOMAIN"

DEFAULT_USER_AGENT = "LocationMapDemo/0.1 (set your email)"
DEFAULT_TIMEOUT = 10.0
DEFAULT_DOMAIN = "nominatim.openstreetmap.org"


@dataclass(frozen=True)
class GeocoderSettings:
    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = DEFAULT_TIMEOUT
    domain: str = DEFAULT_DOMAIN

    @classmethod
    def from_env(cls, environ=None) -> "GeocoderSettings":
        env = os.environ if environ is None else environ
        user_agent = (env.get(ENV_USER_AGENT) or "").strip() or DEFAULT_USER_AGENT
        domain = (env.get(ENV_DOMAIN) or "").strip() or DEFAULT_DOMAIN
        return cls(user_agent=user_agent, timeout=_parse_timeout(env.get(ENV_TIMEOUT)), domain=domain)

    @property
    def has_default_user_agent(self) -> bool:
        # Nominatim may reject the placeholder agent
        return "set your email" in self.user_agent.lower()


def _parse_timeout(raw) -> float:
    if raw is None or not str(raw).strip():
        return DEFAULT_TIMEOUT
    try:
        val = float(raw)
    except ValueError:
        print(f"[CONFIG] Invalid {ENV_TIMEOUT}={raw!r}, using {DEFAULT_TIMEOUT}")
        return DEFAULT_TIMEOUT
    if val <= 0:
        print(f"[CONFIG] Invalid {ENV_TIMEOUT}={raw!r}, using {DEFAULT_TIMEOUT}")
        return DEFAULT_TIMEOUT
    return val
