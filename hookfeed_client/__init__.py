"""
Hookfeed Client
インターセプター付きHTTPクライアントと認証セッション管理ライブラリ
"""

from pathlib import Path
from dotenv import load_dotenv

env_path = Path.cwd() / ".env"
if env_path.exists():
    load_dotenv(env_path)

__version__ = "1.0.0"

from .api_client import ApiClient
from .auth import AuthResult, SessionManager, SessionState, UserProfile
from .config import ClientConfig, configure_logging
from .context import AppContext
from .exceptions import (
    HookfeedClientError,
    TransportError,
    DecodeError,
    StorageError,
    ConfigurationError
)
from .transport import RequestArgs, RequestsClient, TResponse, TransportConfig

__all__ = [
    'ApiClient',
    'AppContext',
    'AuthResult',
    'ClientConfig',
    'configure_logging',
    'SessionManager',
    'SessionState',
    'UserProfile',
    'RequestArgs',
    'RequestsClient',
    'TResponse',
    'TransportConfig',
    'HookfeedClientError',
    'TransportError',
    'DecodeError',
    'StorageError',
    'ConfigurationError'
]
