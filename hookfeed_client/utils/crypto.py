"""
暗号化ユーティリティ
永続化する値の暗号化/復号化機能を提供
"""

import os
import base64
from typing import Dict, Optional
from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
import logging

from ..exceptions import StorageError

logger = logging.getLogger(__name__)

SALT_LENGTH = 16
DEFAULT_PASSWORD = 'default_hookfeed_password'


class CryptoUtils:
    """暗号化ユーティリティクラス

    PBKDF2 + Fernetを使用した対称暗号化。
    暗号文の先頭にソルトを付与するため、プロセス再起動後も復号できる。
    """

    def __init__(self, password: Optional[str] = None):
        """暗号化ユーティリティを初期化

        Args:
            password: 暗号化に使用するパスワード。Noneの場合は環境変数から取得
        """
        self._password = password or os.getenv('HOOKFEED_CRYPTO_PASSWORD', DEFAULT_PASSWORD)
        self._fernets: Dict[bytes, Fernet] = {}

        if self._password == DEFAULT_PASSWORD:
            logger.warning("Using default password for encryption. Set HOOKFEED_CRYPTO_PASSWORD environment variable for production.")

    def _get_fernet(self, salt: bytes) -> Fernet:
        """ソルトに対応するFernetインスタンスを取得

        Args:
            salt: 鍵導出用ソルト

        Returns:
            Fernet: 暗号化/復号化インスタンス
        """
        fernet = self._fernets.get(salt)
        if fernet is None:
            kdf = PBKDF2HMAC(
                algorithm=hashes.SHA256(),
                length=32,
                salt=salt,
                iterations=100000,
            )
            key = base64.urlsafe_b64encode(kdf.derive(self._password.encode()))
            fernet = Fernet(key)
            self._fernets[salt] = fernet
        return fernet

    def encrypt_value(self, value: str) -> str:
        """文字列を暗号化

        Args:
            value: 暗号化する文字列

        Returns:
            str: Base64エンコードされた暗号化データ（ソルト付き）

        Raises:
            StorageError: 暗号化に失敗した場合
        """
        try:
            salt = os.urandom(SALT_LENGTH)
            encrypted = self._get_fernet(salt).encrypt(value.encode('utf-8'))
            return base64.b64encode(salt + encrypted).decode('ascii')
        except Exception as e:
            logger.error(f"Encryption failed: {e}")
            raise StorageError(f"Failed to encrypt value: {e}") from e

    def decrypt_value(self, encrypted_value: str) -> str:
        """暗号化された文字列を復号化

        Args:
            encrypted_value: encrypt_valueの出力

        Returns:
            str: 復号化された文字列

        Raises:
            StorageError: 復号化に失敗した場合
        """
        try:
            combined = base64.b64decode(encrypted_value.encode('ascii'))
            salt, encrypted = combined[:SALT_LENGTH], combined[SALT_LENGTH:]
            return self._get_fernet(salt).decrypt(encrypted).decode('utf-8')
        except (InvalidToken, ValueError) as e:
            logger.error(f"Decryption failed: {e}")
            raise StorageError(f"Failed to decrypt value: {e}") from e
