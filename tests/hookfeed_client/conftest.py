"""
テスト共通設定
"""

import os

import pytest


@pytest.fixture(autouse=True)
def clean_hookfeed_env(monkeypatch):
    """実行環境のHOOKFEED_*環境変数を無効化"""
    for name in list(os.environ):
        if name.startswith('HOOKFEED_'):
            monkeypatch.delenv(name, raising=False)
