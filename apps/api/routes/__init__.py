from .exchange import build_exchange_router

__all__ = ["build_exchange_router"]
