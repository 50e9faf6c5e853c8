"""
Hookfeedクライアント例外クラス
トランスポート・デコード・設定関連のエラーハンドリング
"""


class HookfeedClientError(Exception):
    """Hookfeedクライアントの基底例外クラス"""

    def __init__(self, message: str, error_code: str = None, details: dict = None):
        """クライアントエラーを初期化

        Args:
            message: エラーメッセージ
            error_code: エラーコード
            details: 詳細情報
        """
        super().__init__(message)
        self.error_code = error_code
        self.details = details or {}


class TransportError(HookfeedClientError):
    """ネットワーク関連エラー（接続・DNS・タイムアウト）

    HTTPエラーレスポンスとは区別される。呼び出し元で明示的に処理すること。
    """

    def __init__(self, message: str = "Network error occurred", method: str = None, url: str = None):
        super().__init__(
            message,
            error_code="transport_error",
            details={"method": method, "url": url},
        )
        self.method = method
        self.url = url


class DecodeError(HookfeedClientError):
    """レスポンスボディのデコードエラー（strict_jsonモードのみ）"""

    def __init__(self, message: str = "Failed to decode response body", status: int = None):
        super().__init__(message, error_code="decode_error", details={"status": status})
        self.status = status


class StorageError(HookfeedClientError):
    """永続ストレージエラー"""

    def __init__(self, message: str = "Storage operation failed"):
        super().__init__(message, error_code="storage_error")


class ConfigurationError(HookfeedClientError):
    """設定エラー"""

    def __init__(self, message: str = "Invalid configuration"):
        super().__init__(message, error_code="configuration_error")
