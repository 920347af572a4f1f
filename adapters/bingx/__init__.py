"""
BingX 어댑터 (spot + perpetual swap)
"""

from adapters.bingx.rest_client import SPEC, BingXAdapter, sign_request

__all__ = ["SPEC", "BingXAdapter", "sign_request"]
