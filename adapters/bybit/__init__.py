"""
Bybit 어댑터

V5 통합 API: spot/linear 체결, 통합 계정 잔고, 주문, 입출금 조회.
"""

from adapters.bybit.rest_client import SPEC, BybitAdapter, sign_request

__all__ = ["SPEC", "BybitAdapter", "sign_request"]
