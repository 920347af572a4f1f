"""
Bitfinex 어댑터 (v2 인증 API)
"""

from adapters.bitfinex.rest_client import SPEC, BitfinexAdapter, sign_request

__all__ = ["SPEC", "BitfinexAdapter", "sign_request"]
