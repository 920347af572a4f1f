"""
Binance 어댑터

Spot(/api/v3) + USDT-M Futures(/fapi/v1) 체결, 잔고, 주문, 입출금 조회.
"""

from adapters.binance.rest_client import SPEC, BinanceAdapter, sign_request

__all__ = ["SPEC", "BinanceAdapter", "sign_request"]
