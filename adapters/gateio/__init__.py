"""
Gate.io 어댑터 (v4, 레지스트리 별칭 gate.io)
"""

from adapters.gateio.rest_client import SPEC, GateioAdapter, sign_request

__all__ = ["SPEC", "GateioAdapter", "sign_request"]
