"""
Coinbase 어댑터 (Advanced Trade API)
"""

from adapters.coinbase.rest_client import SPEC, CoinbaseAdapter, sign_request

__all__ = ["SPEC", "CoinbaseAdapter", "sign_request"]
