from secureauth.models.refresh_token import RefreshToken
from secureauth.models.user import User

__all__ = ["RefreshToken", "User"]
