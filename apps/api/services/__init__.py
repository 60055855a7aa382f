from .provider import ProviderService

provider_service = ProviderService()


def get_provider() -> ProviderService:
    return provider_service


__all__ = ["ProviderService", "provider_service", "get_provider"]
