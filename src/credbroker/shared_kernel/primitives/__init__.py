"""
Shared Kernel primitives.

    from credbroker.shared_kernel.primitives import UserId
"""

from .user_id import UserId

__all__ = ["UserId"]
