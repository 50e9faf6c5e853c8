"""
設定管理システム
Hookfeed APIクライアントの設定とコンフィギュレーション管理
"""

import os
from typing import Dict, Any, Optional
from dataclasses import dataclass, field
from pathlib import Path
import logging

from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)


# 永続ストレージ上のトークン保存キー
AUTH_TOKEN_KEY = "auth-token"

# 認証エンドポイント
LOGIN_ENDPOINT = "/users/login/"
REGISTER_ENDPOINT = "/users/register/"
PROFILE_ENDPOINT = "/users/self/"

# 401受信時の遷移先
LOGIN_ROUTE = "/auth/login"


class LogConfig:
    """Logging configuration."""
    LEVEL: str = "INFO"
    FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _env_flag(value: str) -> bool:
    return value.lower() in ('true', '1', 'yes')


@dataclass
class ClientConfig:
    """Hookfeed APIクライアントの設定"""

    # API設定
    api_base_url: str = 'http://localhost:8080/api/v1'
    default_headers: Dict[str, str] = field(default_factory=dict)

    # HTTP設定
    timeout: float = 30
    validate_ssl: bool = True
    strict_json: bool = False

    # ストレージ設定
    persist_token: bool = True
    storage_base_path: Optional[str] = None
    crypto_password: Optional[str] = None

    # ログ設定
    log_level: str = LogConfig.LEVEL

    def __post_init__(self):
        """設定の後処理と初期化"""
        self._load_from_environment()
        self._validate_config()

    def _load_from_environment(self):
        """環境変数から設定を読み込み"""
        if base_url_env := os.getenv('HOOKFEED_API_BASE_URL'):
            self.api_base_url = base_url_env

        if not self.storage_base_path:
            self.storage_base_path = os.getenv(
                'HOOKFEED_STORAGE_PATH',
                str(Path.home() / '.hookfeed_client')
            )

        if not self.crypto_password:
            self.crypto_password = os.getenv('HOOKFEED_CRYPTO_PASSWORD')

        if timeout_env := os.getenv('HOOKFEED_TIMEOUT'):
            try:
                self.timeout = float(timeout_env)
            except ValueError:
                logger.warning(f"Invalid HOOKFEED_TIMEOUT value: {timeout_env}")

        if log_level_env := os.getenv('HOOKFEED_LOG_LEVEL'):
            self.log_level = log_level_env.upper()

        if validate_ssl_env := os.getenv('HOOKFEED_VALIDATE_SSL'):
            self.validate_ssl = _env_flag(validate_ssl_env)

        if strict_json_env := os.getenv('HOOKFEED_STRICT_JSON'):
            self.strict_json = _env_flag(strict_json_env)

        if persist_env := os.getenv('HOOKFEED_PERSIST_TOKEN'):
            self.persist_token = _env_flag(persist_env)

    def _validate_config(self):
        """設定の妥当性をチェック"""
        if not self.api_base_url.startswith(('http://', 'https://')):
            raise ConfigurationError(f"api_base_url must be an http(s) URL: {self.api_base_url}")
        self.api_base_url = self.api_base_url.rstrip('/')

        if self.timeout <= 0:
            logger.warning("Invalid timeout value, using default 30 seconds")
            self.timeout = 30

        valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if self.log_level not in valid_log_levels:
            logger.warning(f"Invalid log_level: {self.log_level}, using INFO")
            self.log_level = 'INFO'

    def route(self, path: str) -> str:
        """APIの相対パスを絶対URLに変換

        Args:
            path: APIパス（例: '/users/self/'）。絶対URLはそのまま返す

        Returns:
            str: リクエストURL
        """
        if path.startswith(('http://', 'https://')):
            return path
        if not path.startswith('/'):
            path = f"/{path}"
        return f"{self.api_base_url}{path}"

    def to_dict(self) -> Dict[str, Any]:
        """設定を辞書形式で取得

        Returns:
            Dict[str, Any]: 設定辞書
        """
        # パスワードは除外
        return {
            'api_base_url': self.api_base_url,
            'default_headers': dict(self.default_headers),
            'timeout': self.timeout,
            'validate_ssl': self.validate_ssl,
            'strict_json': self.strict_json,
            'persist_token': self.persist_token,
            'storage_base_path': self.storage_base_path,
            'log_level': self.log_level,
        }


def configure_logging(level: Optional[str] = None) -> None:
    """ルートロガーを設定

    Args:
        level: ログレベル。Noneの場合はLogConfig.LEVEL
    """
    logging.basicConfig(
        level=getattr(logging, (level or LogConfig.LEVEL).upper(), logging.INFO),
        format=LogConfig.FORMAT
    )


# デフォルトのグローバル設定インスタンス
_default_config: Optional[ClientConfig] = None


def get_default_config() -> ClientConfig:
    """デフォルト設定を取得

    Returns:
        ClientConfig: デフォルト設定インスタンス
    """
    global _default_config

    if _default_config is None:
        _default_config = ClientConfig()

    return _default_config


def set_default_config(config: ClientConfig):
    """デフォルト設定を設定

    Args:
        config: 新しいデフォルト設定
    """
    global _default_config
    _default_config = config
    logger.info("Default config updated")
