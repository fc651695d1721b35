from .broker_error import BrokerError

__all__ = ["BrokerError"]
