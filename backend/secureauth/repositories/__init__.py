from secureauth.repositories.refresh_token import RefreshTokenRepository
from secureauth.repositories.user import UserRepository

__all__ = ["RefreshTokenRepository", "UserRepository"]
