"""
Hookfeed Client Utilities
暗号化、ストレージ
"""

from .crypto import CryptoUtils
from .storage import TokenStorage

__all__ = [
    'CryptoUtils',
    'TokenStorage'
]
