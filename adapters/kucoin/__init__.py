"""
KuCoin 어댑터 (passphrase 필수)
"""

from adapters.kucoin.rest_client import SPEC, KuCoinAdapter, sign_request

__all__ = ["SPEC", "KuCoinAdapter", "sign_request"]
