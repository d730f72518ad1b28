"""Provider factory — one cached adapter per payment gateway."""

from __future__ import annotations

from nextmove.models.enums import PaymentProvider
from nextmove.modules.payments.providers.base import PaymentProviderBase
from nextmove.modules.payments.providers.cinetpay import CinetPayProvider
from nextmove.modules.payments.providers.paytech import PayTechProvider
from nextmove.modules.payments.providers.wave import WaveProvider

_instances: dict[PaymentProvider, PaymentProviderBase] = {}


def get_provider(provider: PaymentProvider) -> PaymentProviderBase:
    if provider not in _instances:
        if provider == PaymentProvider.WAVE:
            _instances[provider] = WaveProvider()
        elif provider == PaymentProvider.CINETPAY:
            _instances[provider] = CinetPayProvider()
        elif provider == PaymentProvider.PAYTECH:
            _instances[provider] = PayTechProvider()
        else:
            raise ValueError(f"No adapter for provider: {provider}")
    return _instances[provider]


async def close_all_providers() -> None:
    """Close httpx clients on all cached providers. Called on application shutdown."""
    for provider in _instances.values():
        if provider._client is not None:
            if not provider._client.is_closed:
                await provider._client.aclose()
            provider._client = None
