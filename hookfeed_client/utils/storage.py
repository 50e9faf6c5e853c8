"""
トークンストレージ
クライアントローカルの永続キーバリューストア
"""

import os
import re
from pathlib import Path
from typing import Optional
from .crypto import CryptoUtils
from ..exceptions import StorageError
import logging

logger = logging.getLogger(__name__)


class TokenStorage:
    """永続キーバリューストアクラス

    1キーにつき1ファイル。値は暗号化して保存し、プロセス再起動後も残る。
    失敗はログ出力して戻り値で通知し、例外は送出しない。
    """

    def __init__(self, base_path: Optional[str] = None, crypto_password: Optional[str] = None):
        """ストレージを初期化

        Args:
            base_path: ベースディレクトリパス。Noneの場合はデフォルトを使用
            crypto_password: 暗号化パスワード。Noneの場合は環境変数から取得
        """
        if base_path is None:
            base_path = os.path.join(os.path.expanduser('~'), '.hookfeed_client')

        self.base_path = Path(base_path)
        self.values_dir = self.base_path / 'storage'

        self._ensure_directories()

        self.crypto = CryptoUtils(crypto_password)

        logger.info(f"TokenStorage initialized at: {self.base_path}")

    def _ensure_directories(self) -> None:
        """必要なディレクトリを作成"""
        for directory in [self.base_path, self.values_dir]:
            directory.mkdir(parents=True, exist_ok=True)

            # ユーザーのみアクセス可能（Unix系のみ）
            if os.name != 'nt':
                os.chmod(directory, 0o700)

    def _get_file_path(self, key: str) -> Path:
        """キーに対応するファイルパスを生成

        Args:
            key: ストレージキー

        Returns:
            Path: 値ファイルのパス
        """
        safe_key = re.sub(r'[^\w\-.]', '_', key)[:100]
        return self.values_dir / f"{safe_key}.enc"

    def get(self, key: str) -> Optional[str]:
        """値を読み込み

        Args:
            key: ストレージキー

        Returns:
            Optional[str]: 保存されている値、存在しない場合はNone
        """
        try:
            file_path = self._get_file_path(key)

            if not file_path.exists():
                logger.debug(f"No stored value for key: {key}")
                return None

            with open(file_path, 'r', encoding='utf-8') as f:
                encrypted = f.read().strip()

            return self.crypto.decrypt_value(encrypted)

        except (OSError, StorageError) as e:
            logger.error(f"Failed to load value for key {key}: {e}")
            return None

    def set(self, key: str, value: str) -> bool:
        """値を保存

        Args:
            key: ストレージキー
            value: 保存する値

        Returns:
            bool: 保存成功の場合True
        """
        try:
            file_path = self._get_file_path(key)
            encrypted = self.crypto.encrypt_value(value)

            with open(file_path, 'w', encoding='utf-8') as f:
                f.write(encrypted)

            if os.name != 'nt':
                os.chmod(file_path, 0o600)

            logger.debug(f"Stored value for key: {key}")
            return True

        except (OSError, StorageError) as e:
            logger.error(f"Failed to save value for key {key}: {e}")
            return False

    def remove(self, key: str) -> bool:
        """値を削除

        Args:
            key: ストレージキー

        Returns:
            bool: 削除成功（または元から存在しない）の場合True
        """
        try:
            file_path = self._get_file_path(key)

            if file_path.exists():
                file_path.unlink()
                logger.debug(f"Removed value for key: {key}")

            return True

        except OSError as e:
            logger.error(f"Failed to remove value for key {key}: {e}")
            return False

    def exists(self, key: str) -> bool:
        """キーが存在するかチェック"""
        return self._get_file_path(key).exists()
