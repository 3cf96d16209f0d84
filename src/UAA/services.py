from sqlalchemy.exc import IntegrityError
from sqlmodel.ext.asyncio.session import AsyncSession
import structlog

from src.exceptions import ConflictError, InvalidCredentialsError
from .models import User
from .repository import UserRepository
from .schemas import SignupRequest
from . import utils

logger = structlog.get_logger(__name__)

class UserService:
    def __init__(self, repo: UserRepository, session: AsyncSession):
        self.repo = repo
        self.session = session

    async def register_user(self, user_in: SignupRequest) -> User:
        existing = await self.repo.get_by_email_or_username(user_in.email, user_in.username)
        if existing:
            logger.debug("register_user_exists", email=user_in.email, username=user_in.username)
            raise ConflictError("User with this email or username already exists")

        hashed = utils.hash_password(user_in.password)
        user = User(email=user_in.email, username=user_in.username, hashed_password=hashed)
        try:
            created = await self.repo.create(user)
        except IntegrityError:
            # lost a race with a concurrent signup for the same email or username
            await self.session.rollback()
            raise ConflictError("User with this email or username already exists")
        logger.info("user_registered", user_id=str(created.id), email=created.email)
        return created

    async def authenticate_user(self, email: str, password: str) -> User:
        user = await self.repo.get_by_email(email)
        if not user:
            utils.verify_password(password, utils.DUMMY_PASSWORD_HASH)
            logger.debug("auth_failed_unknown_email", email=email)
            raise InvalidCredentialsError()

        if not utils.verify_password(password, user.hashed_password):
            logger.info("auth_failed_wrong_password", user_id=str(user.id))
            raise InvalidCredentialsError()

        if not user.is_active:
            logger.warning("auth_attempt_on_inactive_user", user_id=str(user.id))
            raise InvalidCredentialsError()

        await self.repo.update_last_login(user)
        logger.info("auth_success", user_id=str(user.id), email=user.email)
        return user

    def issue_token(self, user: User) -> dict:
        access = utils.create_access_token(str(user.id), user.email)
        logger.info("token_issued", user_id=str(user.id), jti=access["jti"])
        return access
