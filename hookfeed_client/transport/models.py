"""
トランスポートデータモデル
リクエスト記述子・レスポンスエンベロープ・クライアント設定
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Dict, Generic, Optional, Tuple, TypeVar, Union

import httpx

T = TypeVar('T')

RawData = Union[bytes, str]


class Method(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"

    @property
    def supports_body(self) -> bool:
        return self in (Method.POST, Method.PUT, Method.PATCH)


@dataclass
class RequestArgs(Generic[T]):
    """1回の呼び出しのリクエスト記述子

    bodyはJSONにシリアライズされる。dataは加工せずそのまま送信され、
    指定されている場合はbodyより優先される。
    """
    url: str
    body: Optional[T] = None
    data: Optional[RawData] = None
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class RequestConfig:
    """インターセプターに渡される送信直前のリクエスト"""
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    content: Optional[RawData] = None

    def with_header(self, name: str, value: str) -> "RequestConfig":
        """ヘッダーを追加した新しいRequestConfigを返す"""
        headers = dict(self.headers)
        headers[name] = value
        return replace(self, headers=headers)


@dataclass
class TResponse(Generic[T]):
    """ディスパッチ結果の統一エンベロープ

    Attributes:
        status: HTTPステータスコード
        error: 2xx/3xx以外の場合True（ペイロード内容とは無関係）
        data: デコード済みボディ
        response: 元のhttpx.Response
    """
    status: int
    error: bool
    data: T
    response: httpx.Response


TokenQuery = Callable[[], Optional[str]]
RequestInterceptor = Callable[[RequestConfig], RequestConfig]
ResponseInterceptor = Callable[[httpx.Response, RequestConfig], Any]


@dataclass(frozen=True)
class TransportConfig:
    """RequestsClientのイミュータブルな設定値

    複数のクライアントから参照で共有される。変更は常に新しいインスタンスを返す。
    """
    headers: Dict[str, str] = field(default_factory=dict)
    token_sources: Tuple[TokenQuery, ...] = ()
    request_interceptors: Tuple[RequestInterceptor, ...] = ()
    response_interceptors: Tuple[ResponseInterceptor, ...] = ()
    timeout: float = 30
    verify_ssl: bool = True
    strict_json: bool = False

    @classmethod
    def from_client_config(cls, client_config) -> "TransportConfig":
        """ClientConfigから設定値を作成"""
        return cls(
            headers=dict(client_config.default_headers),
            timeout=client_config.timeout,
            verify_ssl=client_config.validate_ssl,
            strict_json=client_config.strict_json,
        )

    def add_token_source(self, source: TokenQuery) -> "TransportConfig":
        return replace(self, token_sources=self.token_sources + (source,))

    def add_request_interceptor(self, interceptor: RequestInterceptor) -> "TransportConfig":
        return replace(self, request_interceptors=self.request_interceptors + (interceptor,))

    def add_response_interceptor(self, interceptor: ResponseInterceptor) -> "TransportConfig":
        return replace(self, response_interceptors=self.response_interceptors + (interceptor,))
