"""
Bitstamp 어댑터 (v2, Customer ID를 passphrase로 사용)
"""

from adapters.bitstamp.rest_client import SPEC, BitstampAdapter, sign_request

__all__ = ["SPEC", "BitstampAdapter", "sign_request"]
