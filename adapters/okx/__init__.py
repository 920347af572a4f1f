"""
OKX 어댑터 (v5, passphrase 필수)
"""

from adapters.okx.rest_client import SPEC, OKXAdapter, sign_request

__all__ = ["SPEC", "OKXAdapter", "sign_request"]
