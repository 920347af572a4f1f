"""
Kraken 어댑터
"""

from adapters.kraken.rest_client import SPEC, KrakenAdapter, sign_request

__all__ = ["SPEC", "KrakenAdapter", "sign_request"]
