"""
セッションマネージャー
認証状態（トークン・ユーザー・初期化フラグ）とログインライフサイクルの管理
"""

import asyncio
from contextvars import ContextVar
from typing import Any, Callable, Dict, Optional
import httpx
import logging

from .models import AuthResult, SessionState, UserProfile
from ..config.settings import (
    AUTH_TOKEN_KEY,
    LOGIN_ENDPOINT,
    PROFILE_ENDPOINT,
    REGISTER_ENDPOINT,
    ClientConfig,
)
from ..transport.http_client import RequestsClient
from ..transport.interceptors import ForcedLogoutInterceptor
from ..transport.models import RequestArgs, TransportConfig
from ..utils.storage import TokenStorage

logger = logging.getLogger(__name__)

LOGIN_FAILED_MESSAGE = "Invalid email or password"
REGISTRATION_FAILED_MESSAGE = "Registration failed"


class SessionManager:
    """認証セッション管理クラス

    状態遷移: ANONYMOUS -> PENDING_VALIDATION -> AUTHENTICATED。
    プロフィール検証の失敗とlogout()は常にANONYMOUSへ戻す。

    自身がトークンソースとなる専用のRequestsClientを持ち、
    そのクライアントで401を受信した場合は強制ログアウトする。
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        storage: Optional[TokenStorage] = None,
        on_unauthorized: Optional[Callable[[str], Any]] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        """セッションマネージャーを初期化

        Args:
            config: クライアント設定
            storage: 永続ストレージ。Noneの場合は永続化とinitialize()を行わない
            on_unauthorized: 401受信時に遷移先パスを受け取るコールバック
            http_client: 使用するhttpx.AsyncClient
        """
        self.config = config or ClientConfig()
        self.storage = storage

        self._token: Optional[str] = None
        self._user: Optional[UserProfile] = None
        self._initialized = False
        self._init_task: Optional[asyncio.Future] = None

        # login/registerの処理中だけ有効な、そのフロー固有のトークン
        self._flow_token: ContextVar[Optional[str]] = ContextVar(
            f"hookfeed_flow_token_{id(self)}", default=None
        )

        self.forced_logout = ForcedLogoutInterceptor(lambda: self.logout(), on_unauthorized)

        # login/register用（トークンなし・強制ログアウトなし）
        self._public_client = RequestsClient(
            config=TransportConfig.from_client_config(self.config),
            http_client=http_client
        )
        self.requests = (
            self._public_client.derive()
            .with_token_source(self)
            .with_response_interceptor(self.forced_logout)
        )

        logger.info(f"SessionManager initialized for {self.config.api_base_url} (persistent storage: {storage is not None})")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """リソースのクリーンアップ"""
        await self.requests.aclose()
        await self._public_client.aclose()

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def user(self) -> Optional[UserProfile]:
        return self._user

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def is_authenticated(self) -> bool:
        return bool(self._token) and self._user is not None

    @property
    def state(self) -> SessionState:
        if not self._token:
            return SessionState.ANONYMOUS
        if self._user is None:
            return SessionState.PENDING_VALIDATION
        return SessionState.AUTHENTICATED

    def current_token(self) -> Optional[str]:
        """トークンソース実装

        Returns:
            Optional[str]: 処理中のlogin/registerフローのトークン、なければ確定済みトークン
        """
        return self._flow_token.get() or self._token

    async def initialize(self) -> None:
        """永続化されたトークンからセッションを復元

        プロセス中に一度だけ実行される。並行呼び出しは同じ処理の完了を待つ。
        永続ストレージがない環境では何もしない。
        """
        if self._initialized or self.storage is None:
            return

        if self._init_task is None:
            self._init_task = asyncio.ensure_future(self._restore_session())

        await self._init_task

    async def _restore_session(self) -> None:
        try:
            saved_token = self.storage.get(AUTH_TOKEN_KEY)
            if saved_token:
                logger.info("Restoring persisted session token")
                self._token = saved_token
                await self.fetch_profile()
            else:
                logger.debug("No persisted session token")
        finally:
            self._initialized = True

    async def login(self, email: str, password: str) -> AuthResult:
        """メールアドレスとパスワードでログイン

        Args:
            email: メールアドレス
            password: パスワード

        Returns:
            AuthResult: 失敗時はerrorに利用者向けメッセージ
        """
        return await self._authenticate(
            LOGIN_ENDPOINT,
            {"email": email, "password": password},
            LOGIN_FAILED_MESSAGE
        )

    async def register(self, username: str, email: str, password: str) -> AuthResult:
        """新規ユーザー登録

        Args:
            username: ユーザー名
            email: メールアドレス
            password: パスワード

        Returns:
            AuthResult: 失敗時はerrorに利用者向けメッセージ
        """
        return await self._authenticate(
            REGISTER_ENDPOINT,
            {"username": username, "email": email, "password": password},
            REGISTRATION_FAILED_MESSAGE
        )

    async def _authenticate(self, endpoint: str, payload: Dict[str, str], failure_message: str) -> AuthResult:
        response = await self._public_client.post(
            RequestArgs(url=self.config.route(endpoint), body=payload)
        )

        token = response.data.get("token") if isinstance(response.data, dict) else None
        if response.error or not token:
            # ステータスコードは利用者に返さない
            logger.warning(f"Authentication against {endpoint} failed (HTTP {response.status}, token present: {bool(token)})")
            return AuthResult(success=False, error=failure_message)

        flow = self._flow_token.set(token)
        try:
            profile = await self._request_profile()
        finally:
            self._flow_token.reset(flow)

        if profile is not None:
            self._commit(token, profile)
            logger.info(f"Authenticated as {profile.email or profile.id}")

        return AuthResult(success=True)

    async def fetch_profile(self) -> bool:
        """現在のトークンでプロフィールを取得して検証

        Returns:
            bool: プロフィールを取得できた場合True。失敗時はセッションをクリアする
        """
        token = self.current_token()
        if not token:
            return False

        profile = await self._request_profile()
        if profile is None:
            return False

        # 取得中にlogout()や別フローでトークンが変わった場合は結果を破棄
        if self.current_token() != token:
            logger.info("Session changed during profile fetch, discarding result")
            return False

        self._commit(token, profile)
        return True

    async def _request_profile(self) -> Optional[UserProfile]:
        response = await self.requests.get(
            RequestArgs(url=self.config.route(PROFILE_ENDPOINT))
        )

        if response.error or not isinstance(response.data, dict):
            logger.warning(f"Profile fetch failed (HTTP {response.status}), clearing session")
            # 401は強制ログアウトインターセプターで処理済み
            if response.status not in self.forced_logout.status_codes:
                self.logout()
            return None

        return UserProfile.from_dict(response.data)

    def _commit(self, token: str, user: UserProfile) -> None:
        """トークンとユーザーを同時に確定して永続化"""
        self._token = token
        self._user = user
        if self.storage is not None:
            self.storage.set(AUTH_TOKEN_KEY, token)

    def logout(self) -> None:
        """セッションをクリア（ネットワーク呼び出しは行わない）"""
        self._user = None
        self._token = None
        if self.storage is not None:
            self.storage.remove(AUTH_TOKEN_KEY)
        logger.info("Session cleared")
