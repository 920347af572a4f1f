"""
MEXC 어댑터 (Spot v3)
"""

from adapters.mexc.rest_client import SPEC, MEXCAdapter, sign_request

__all__ = ["SPEC", "MEXCAdapter", "sign_request"]
