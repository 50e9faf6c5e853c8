"""
トークンソースとHTTP 401インターセプター
"""

from typing import Any, Callable, Iterable, Optional, Protocol, runtime_checkable
import httpx
import logging

from .models import RequestConfig
from ..config.settings import LOGIN_ROUTE

logger = logging.getLogger(__name__)


@runtime_checkable
class TokenSource(Protocol):
    """現在のBearerトークンを返す問い合わせインターフェース

    RequestsClientは呼び出し毎にcurrent_token()を再評価するため、
    トークンのローテーションは再設定なしで次の呼び出しから反映される。
    """

    def current_token(self) -> Optional[str]:
        ...


class ForcedLogoutInterceptor:
    """HTTP 401検出時の強制ログアウトインターセプター

    レスポンスインターセプターとして登録する。ボディは読まない。
    該当レスポンス1件につきlogoutと画面遷移をそれぞれ1回だけ呼び出す。
    """

    def __init__(
        self,
        logout: Callable[[], Any],
        navigate: Optional[Callable[[str], Any]] = None,
        redirect_to: str = LOGIN_ROUTE,
        status_codes: Iterable[int] = (401,)
    ):
        """強制ログアウトインターセプターを初期化

        Args:
            logout: セッションをクリアする関数（ネットワーク呼び出しを行わないこと）
            navigate: 遷移先パスを受け取るコールバック（同期・非同期どちらも可）
            redirect_to: 遷移先パス
            status_codes: 強制ログアウト対象のHTTPステータスコード
        """
        self.logout = logout
        self.navigate = navigate
        self.redirect_to = redirect_to
        self.status_codes = frozenset(status_codes)

    def __call__(self, response: httpx.Response, request: RequestConfig) -> Any:
        if response.status_code not in self.status_codes:
            return None

        logger.warning(f"HTTP {response.status_code} received for {request.method} {request.url}, forcing logout")
        self.logout()

        if self.navigate is None:
            return None
        # 非同期コールバックの場合はRequestsClient側でawaitされる
        return self.navigate(self.redirect_to)
