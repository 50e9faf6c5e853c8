"""
Hookfeed Transport Module
インターセプター付きHTTPトランスポートと401インターセプター
"""

from .http_client import RequestsClient
from .interceptors import ForcedLogoutInterceptor, TokenSource
from .media import MediaKind, MediaType, classify, parse_media_type
from .models import Method, RequestArgs, RequestConfig, TransportConfig, TResponse

__all__ = [
    'RequestsClient',
    'ForcedLogoutInterceptor',
    'TokenSource',
    'MediaKind',
    'MediaType',
    'classify',
    'parse_media_type',
    'Method',
    'RequestArgs',
    'RequestConfig',
    'TransportConfig',
    'TResponse'
]
