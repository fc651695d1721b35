from .current_user import USER_ID_HEADER, require_user_id
from .errors import register_api_error_handlers

__all__ = ["USER_ID_HEADER", "register_api_error_handlers", "require_user_id"]
