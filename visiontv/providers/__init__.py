"""Providers package."""

import httpx

from visiontv.config import Config
from visiontv.providers.base import Provider
from visiontv.providers.filmix import FilmixProvider
from visiontv.providers.rezka import RezkaProvider

__all__ = [
    "Provider",
    "FilmixProvider",
    "RezkaProvider",
]

# Provider registry for easy access
PROVIDERS: dict[str, type[Provider]] = {
    "filmix": FilmixProvider,
    "rezka": RezkaProvider,
}


def get_provider_names() -> list[str]:
    """Get all registered provider names."""
    return list(PROVIDERS)


def create_provider(name: str, config: Config | None = None, client: httpx.AsyncClient | None = None) -> Provider | None:
    """Build a provider by name; each call returns a new instance with its own client."""
    provider_cls = PROVIDERS.get(name.lower())
    if provider_cls is None:
        return None
    return provider_cls(config, client)
