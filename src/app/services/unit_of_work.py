from abc import ABC, abstractmethod

from src.app.repositories.password_reset_token_repository import IPasswordResetTokenRepository
from src.app.repositories.session_repository import ISessionRepository
from src.app.repositories.user_repository import IUserRepository


class UnitOfWork(ABC):
    """
    Abstract UnitOfWork - repository access plus one transaction.

    Leaving the context without commit() must discard every write made through
    the repositories. Token claim, password change, token invalidation and
    session revocation rely on this to land together or not at all.
    """

    # Repository properties (initialized in __aenter__)
    users: IUserRepository
    sessions: ISessionRepository
    password_reset_tokens: IPasswordResetTokenRepository

    @abstractmethod
    async def __aenter__(self):
        pass

    @abstractmethod
    async def __aexit__(self, *args):
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass
