"""
認証付きAPIクライアント
フィード・フィードメッセージなどのエンドポイント呼び出し用
"""

from pathlib import Path
from typing import Any, Dict, Optional, Union

from .auth.session_manager import SessionManager
from .transport.http_client import RequestsClient
from .transport.models import RequestArgs, TResponse


class ApiClient:
    """セッションのトークンで認証されるAPIクライアント

    SessionManagerのRequestsClientから派生するため、トークンソースと
    401強制ログアウトインターセプターを共有する。
    パスは設定のAPIベースURLに対して解決される。
    """

    def __init__(self, session: SessionManager, requests: Optional[RequestsClient] = None):
        """APIクライアントを初期化

        Args:
            session: セッションマネージャー
            requests: 使用するRequestsClient。Noneの場合はセッションのクライアントから派生
        """
        self.session = session
        self.requests = requests or session.requests.derive()

    def route(self, path: str) -> str:
        return self.session.config.route(path)

    async def get(self, path: str, headers: Optional[Dict[str, str]] = None) -> TResponse[Any]:
        return await self.requests.get(RequestArgs(url=self.route(path), headers=headers or {}))

    async def post(self, path: str, body: Any = None, headers: Optional[Dict[str, str]] = None) -> TResponse[Any]:
        return await self.requests.post(RequestArgs(url=self.route(path), body=body, headers=headers or {}))

    async def put(self, path: str, body: Any = None, headers: Optional[Dict[str, str]] = None) -> TResponse[Any]:
        return await self.requests.put(RequestArgs(url=self.route(path), body=body, headers=headers or {}))

    async def patch(self, path: str, body: Any = None, headers: Optional[Dict[str, str]] = None) -> TResponse[Any]:
        return await self.requests.patch(RequestArgs(url=self.route(path), body=body, headers=headers or {}))

    async def delete(self, path: str, headers: Optional[Dict[str, str]] = None) -> TResponse[Any]:
        return await self.requests.delete(RequestArgs(url=self.route(path), headers=headers or {}))

    async def download(self, path: str, filename: Union[str, Path]) -> bool:
        """APIの内容をファイルに保存（インターセプターは経由しない）"""
        return await self.requests.download_to_file(self.route(path), filename)
