from .modules import ExchangeApiModule, build_exchange_api_module

__all__ = ["ExchangeApiModule", "build_exchange_api_module"]
