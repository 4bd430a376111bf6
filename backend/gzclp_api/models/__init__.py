from gzclp_api.models.password_reset_token import PasswordResetToken
from gzclp_api.models.refresh_token import RefreshToken
from gzclp_api.models.user import User

__all__ = [
    "PasswordResetToken",
    "RefreshToken",
    "User",
]
