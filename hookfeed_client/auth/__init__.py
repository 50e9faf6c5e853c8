"""
Hookfeed Authentication Module
セッション状態とログインライフサイクル
"""

from .models import AuthResult, SessionState, UserProfile
from .session_manager import SessionManager

__all__ = [
    'AuthResult',
    'SessionState',
    'UserProfile',
    'SessionManager'
]
