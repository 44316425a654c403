"""Account and session lifecycle for the companion's email identity."""

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from companion.core.config import settings
from companion.core.exceptions import (
    AccountLockedError,
    AppException,
    AuthenticationError,
    InvalidCredentialsError,
    InvalidTokenError,
    TokenBlacklistedError,
    UserAlreadyExistsError,
)
from companion.core.security import DUMMY_HASH, hash_password, verify_password
from companion.models.user import User
from companion.repositories.user_repo import UserRepository
from companion.schemas.auth_schema import (
    LoginRequest,
    LogoutRequest,
    MessageResponse,
    RefreshRequest,
    RegisterRequest,
    RegisterResponse,
    TokenPayload,
    TokenResponse,
    UserResponse,
)
from companion.services.token_service import MAX_LOGIN_ATTEMPTS, TokenService

logger = structlog.get_logger()


class AuthService:
    """Issues and revokes the sessions the companion clients hold.

    Sign-up signs the new account in at once; there is no verification
    step. A session is an access/refresh JWT pair. Rotation spends the
    presented refresh token, so a replayed one is rejected.
    """

    def __init__(
        self,
        user_repo: UserRepository,
        token_service: TokenService,
        session: AsyncSession,
    ) -> None:
        self._user_repo = user_repo
        self._token_service = token_service
        self._session = session

    async def register(self, request: RegisterRequest) -> RegisterResponse:
        """Create the account and open its first session."""
        if await self._user_repo.exists_by_email(request.email):
            raise UserAlreadyExistsError

        hashed = await hash_password(request.password)
        user = await self._user_repo.create(
            email=request.email,
            hashed_password=hashed,
        )
        await self._session.commit()

        tokens = self._issue_tokens(user.id, user.email)
        logger.info("Account created", user_id=user.id)

        return RegisterResponse(
            user=UserResponse.model_validate(user),
            tokens=tokens,
        )

    async def login(self, request: LoginRequest) -> TokenResponse:
        """Open a session for an email and password pair.

        Repeated failures lock the address for a while, whichever part of
        the pair was wrong.
        """
        attempts = await self._token_service.get_login_attempts(request.email)
        if attempts >= MAX_LOGIN_ATTEMPTS:
            logger.warning("Sign-in refused while locked", attempts=attempts)
            raise AccountLockedError

        user = await self._check_credentials(request.email, request.password)
        if user is None:
            await self._token_service.record_failed_login(request.email)
            raise InvalidCredentialsError

        if not user.is_active:
            raise AuthenticationError(message="Account is disabled")

        await self._token_service.reset_login_attempts(request.email)
        logger.info("Session opened", user_id=user.id)

        return self._issue_tokens(user.id, user.email)

    async def _check_credentials(self, email: str, password: str) -> User | None:
        user = await self._user_repo.find_by_email(email)
        if user is None:
            # Same bcrypt cost as a wrong password.
            await verify_password(password, DUMMY_HASH)
            return None
        if not await verify_password(password, user.hashed_password):
            return None
        return user

    async def logout(
        self, access_payload: TokenPayload, request: LogoutRequest
    ) -> MessageResponse:
        """End the caller's session.

        The presented access token is revoked. The refresh token is revoked
        too when the client sends it; an unusable one is only logged.
        """
        await self._token_service.blacklist_token(
            access_payload.jti, access_payload.exp
        )

        if request.refresh_token:
            try:
                refresh_payload = self._token_service.decode_token(
                    request.refresh_token
                )
                if refresh_payload.type != "refresh":
                    raise InvalidTokenError
                await self._token_service.blacklist_token(
                    refresh_payload.jti, refresh_payload.exp
                )
            except AppException as exc:
                logger.warning(
                    "Ignoring unusable refresh token on logout",
                    user_id=access_payload.sub,
                    code=exc.code,
                )

        logger.info("Session closed", user_id=access_payload.sub)
        return MessageResponse(message="Successfully logged out")

    async def refresh(self, request: RefreshRequest) -> TokenResponse:
        """Spend a refresh token and hand back a fresh pair for the same user."""
        payload = self._token_service.decode_token(request.refresh_token)
        if payload.type != "refresh":
            raise InvalidTokenError

        if await self._token_service.is_blacklisted(payload.jti):
            logger.warning("Spent refresh token replayed", user_id=payload.sub)
            raise TokenBlacklistedError

        # Another request is rotating this token right now.
        if not await self._token_service.acquire_refresh_lock(payload.jti):
            raise InvalidTokenError

        try:
            await self._token_service.blacklist_token(payload.jti, payload.exp)

            user = await self._user_repo.find_by_id(payload.sub)
            if user is None or not user.is_active:
                raise AuthenticationError(message="Account is disabled")

            logger.info("Session rotated", user_id=user.id)
            return self._issue_tokens(user.id, user.email)
        finally:
            await self._token_service.release_refresh_lock(payload.jti)

    def _issue_tokens(self, user_id: str, email: str) -> TokenResponse:
        return TokenResponse(
            access_token=self._token_service.create_access_token(user_id, email),
            refresh_token=self._token_service.create_refresh_token(user_id, email),
            expires_in=settings.auth.access_token_expire_minutes * 60,
        )
