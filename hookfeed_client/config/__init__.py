"""
Hookfeed Client Configuration Module
設定管理とコンフィギュレーション
"""

from .settings import (
    ClientConfig,
    LogConfig,
    AUTH_TOKEN_KEY,
    LOGIN_ENDPOINT,
    REGISTER_ENDPOINT,
    PROFILE_ENDPOINT,
    LOGIN_ROUTE,
    configure_logging,
    get_default_config,
    set_default_config,
)

__all__ = [
    'ClientConfig',
    'LogConfig',
    'AUTH_TOKEN_KEY',
    'LOGIN_ENDPOINT',
    'REGISTER_ENDPOINT',
    'PROFILE_ENDPOINT',
    'LOGIN_ROUTE',
    'configure_logging',
    'get_default_config',
    'set_default_config',
]
