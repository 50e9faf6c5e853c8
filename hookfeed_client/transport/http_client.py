"""
汎用HTTPクライアント
インターセプターとBearerトークン注入を持つHTTPトランスポート
"""

import inspect
import json
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Optional, TypeVar, Union
import httpx
import logging

from .interceptors import TokenSource
from .media import MediaKind, classify, parse_media_type
from .models import (
    Method,
    RequestArgs,
    RequestConfig,
    RequestInterceptor,
    ResponseInterceptor,
    TokenQuery,
    TransportConfig,
    TResponse,
)
from ..exceptions import DecodeError, TransportError

logger = logging.getLogger(__name__)

T = TypeVar('T')


def set_header(headers: Dict[str, str], name: str, value: str) -> None:
    """大文字小文字を区別せず既存ヘッダーを置き換える"""
    for key in [k for k in headers if k.lower() == name.lower()]:
        del headers[key]
    headers[name] = value


def is_ok(status: int) -> bool:
    """2xx/3xxを成功とみなす"""
    return 200 <= status < 400


class RequestsClient:
    """インターセプター付きHTTPクライアント

    with_*メソッドは同じインスタンスを返すのでチェーンできる。
    設定は内部でイミュータブルなTransportConfigとして保持され、
    各呼び出しは開始時点のスナップショットを使う。
    """

    def __init__(
        self,
        headers: Optional[Dict[str, str]] = None,
        config: Optional[TransportConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        """HTTPクライアントを初期化

        Args:
            headers: インスタンス共通ヘッダー（呼び出し毎のヘッダーより優先）
            config: 共有する設定値
            http_client: 使用するhttpx.AsyncClient。Noneの場合は遅延生成
        """
        config = config or TransportConfig()
        if headers:
            config = replace(config, headers={**config.headers, **headers})
        self._config = config

        self._http_client = http_client
        self._owns_http_client = http_client is None

        logger.debug(f"RequestsClient initialized (timeout: {config.timeout}s)")

    @property
    def config(self) -> TransportConfig:
        return self._config

    def with_token_source(self, source: Union[TokenSource, TokenQuery]) -> "RequestsClient":
        if isinstance(source, TokenSource):
            source = source.current_token
        self._config = self._config.add_token_source(source)
        return self

    def with_request_interceptor(self, interceptor: RequestInterceptor) -> "RequestsClient":
        self._config = self._config.add_request_interceptor(interceptor)
        return self

    def with_response_interceptor(self, interceptor: ResponseInterceptor) -> "RequestsClient":
        self._config = self._config.add_response_interceptor(interceptor)
        return self

    def derive(self) -> "RequestsClient":
        """同じ設定値と接続を共有する新しいクライアントを作成

        派生先でのwith_*呼び出しは元のクライアントに影響しない。
        接続は派生元が所有し、派生元のaclose()で閉じられる。
        """
        derived = RequestsClient(config=self._config, http_client=self._get_http_client())
        derived._owns_http_client = False
        return derived

    async def __aenter__(self):
        self._get_http_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self):
        """リソースのクリーンアップ"""
        if self._http_client and self._owns_http_client:
            await self._http_client.aclose()
            self._http_client = None

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self._config.timeout,
                verify=self._config.verify_ssl,
                follow_redirects=True
            )
            self._owns_http_client = True
        return self._http_client

    async def get(self, args: RequestArgs[T]) -> TResponse[T]:
        return await self.request(Method.GET, args)

    async def post(self, args: RequestArgs[T]) -> TResponse[Any]:
        return await self.request(Method.POST, args)

    async def put(self, args: RequestArgs[T]) -> TResponse[Any]:
        return await self.request(Method.PUT, args)

    async def patch(self, args: RequestArgs[T]) -> TResponse[Any]:
        return await self.request(Method.PATCH, args)

    async def delete(self, args: RequestArgs[T]) -> TResponse[T]:
        return await self.request(Method.DELETE, args)

    async def request(self, method: Union[Method, str], args: RequestArgs) -> TResponse[Any]:
        """HTTPリクエストを実行

        Args:
            method: HTTPメソッド
            args: リクエスト記述子

        Returns:
            TResponse: ステータス・エラーフラグ・デコード済みデータ・元レスポンス

        Raises:
            TransportError: 接続・DNS・タイムアウトなどで応答が得られなかった場合
            DecodeError: strict_json有効時にJSONボディが不正だった場合
        """
        method = Method(method)
        config = self._config

        request_config = self._build_request_config(method, args, config)
        for interceptor in config.request_interceptors:
            request_config = interceptor(request_config)

        logger.debug(f"[REQUEST] {request_config.method} {request_config.url}")
        logger.debug(f"[REQUEST] Header names: {sorted(request_config.headers)}")

        client = self._get_http_client()
        request = client.build_request(
            request_config.method,
            request_config.url,
            headers=request_config.headers,
            content=request_config.content
        )

        try:
            response = await client.send(request, stream=True)
        except httpx.RequestError as e:
            logger.error(f"Network error: {request_config.method} {request_config.url}: {e}")
            raise TransportError(
                f"Request failed: {e}",
                method=request_config.method,
                url=request_config.url
            ) from e

        try:
            logger.debug(f"[RESPONSE] {request_config.method} {request_config.url} -> Status: {response.status_code}")

            for interceptor in config.response_interceptors:
                result = interceptor(response, request_config)
                if inspect.isawaitable(result):
                    await result

            data = await self._decode_body(response, config)
        finally:
            await response.aclose()

        return TResponse(
            status=response.status_code,
            error=not is_ok(response.status_code),
            data=data,
            response=response
        )

    def _build_request_config(
        self,
        method: Method,
        args: RequestArgs,
        config: TransportConfig
    ) -> RequestConfig:
        # インスタンス共通ヘッダーが呼び出し毎のヘッダーを上書きする
        headers = {**args.headers, **config.headers}
        content = None

        if method.supports_body:
            if args.data is not None:
                content = args.data
            elif args.body is not None:
                set_header(headers, "Content-Type", "application/json")
                content = json.dumps(args.body)

        token = self._resolve_token(config)
        if token:
            set_header(headers, "Authorization", f"Bearer {token}")

        return RequestConfig(method=method.value, url=args.url, headers=headers, content=content)

    @staticmethod
    def _resolve_token(config: TransportConfig) -> Optional[str]:
        """トークンソースを登録順に問い合わせ、最後の非空値を返す"""
        token = None
        for source in config.token_sources:
            value = source()
            if value:
                token = value
        return token

    @staticmethod
    async def _decode_body(response: httpx.Response, config: TransportConfig) -> Any:
        """レスポンスボディを一度だけ読み込んでデコード"""
        if response.status_code == 204:
            return {}

        kind = classify(parse_media_type(response.headers.get("Content-Type")))
        body = await response.aread()

        if kind is not MediaKind.JSON:
            return body

        try:
            return json.loads(body)
        except ValueError as e:
            if config.strict_json:
                raise DecodeError(f"Malformed JSON body: {e}", status=response.status_code) from e
            logger.warning(f"Malformed JSON body from {response.request.url} (status {response.status_code}), using empty object")
            return {}

    async def download_to_file(self, url: str, filename: Union[str, Path]) -> bool:
        """URLの内容をファイルとして保存

        ヘッダーマージとインターセプターを経由しない単発のGET。
        失敗は例外にせずログ出力してFalseを返す。

        Args:
            url: ダウンロード元URL
            filename: 保存先ファイルパス

        Returns:
            bool: 保存成功の場合True
        """
        headers = {"Content-Type": "application/octet-stream"}
        token = self._resolve_token(self._config)
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            client = self._get_http_client()
            async with client.stream("GET", url, headers=headers) as response:
                if not response.is_success:
                    logger.error(f"Download failed: {url} -> HTTP {response.status_code} {response.reason_phrase}")
                    return False

                path = Path(filename)
                path.parent.mkdir(parents=True, exist_ok=True)
                with open(path, 'wb') as f:
                    async for chunk in response.aiter_bytes():
                        f.write(chunk)

            logger.info(f"Downloaded {url} to {path}")
            return True

        except (httpx.HTTPError, httpx.InvalidURL, ValueError, OSError) as e:
            logger.error(f"Download failed: {url}: {e}")
            return False
