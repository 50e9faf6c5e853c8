"""
アプリケーションコンテキスト
プロセス起動時に一度だけ作成し、利用側へ参照で渡す
"""

import logging
from typing import Any, Callable, Optional

import httpx

from .api_client import ApiClient
from .auth.session_manager import SessionManager
from .config.settings import ClientConfig, configure_logging
from .utils.storage import TokenStorage

logger = logging.getLogger(__name__)


class AppContext:
    """設定・ストレージ・セッション・APIクライアントを束ねるコンテキスト"""

    def __init__(
        self,
        config: ClientConfig,
        storage: Optional[TokenStorage],
        session: SessionManager,
        api: ApiClient
    ):
        self.config = config
        self.storage = storage
        self.session = session
        self.api = api

    @classmethod
    def create(
        cls,
        config: Optional[ClientConfig] = None,
        on_unauthorized: Optional[Callable[[str], Any]] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        storage: Optional[TokenStorage] = None,
        setup_logging: bool = False
    ) -> "AppContext":
        """コンテキストを作成

        Args:
            config: クライアント設定。Noneの場合は環境変数から作成
            on_unauthorized: 401受信時の遷移コールバック
            http_client: 共有するhttpx.AsyncClient
            storage: 永続ストレージ。Noneでpersist_tokenが有効な場合は設定から作成
            setup_logging: Trueの場合は設定のログレベルでロギングを初期化

        Returns:
            AppContext: 作成されたコンテキスト
        """
        config = config or ClientConfig()

        if setup_logging:
            configure_logging(config.log_level)

        if storage is None and config.persist_token:
            storage = TokenStorage(config.storage_base_path, config.crypto_password)

        session = SessionManager(
            config=config,
            storage=storage,
            on_unauthorized=on_unauthorized,
            http_client=http_client
        )
        api = ApiClient(session)

        logger.info(f"AppContext created for {config.api_base_url}")
        return cls(config, storage, session, api)

    async def __aenter__(self):
        await self.session.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        await self.api.requests.aclose()
        await self.session.close()
