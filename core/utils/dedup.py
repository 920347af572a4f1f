"""
외부 ID(Dedup Key) 생성 유틸리티

거래소 레코드를 영구 저장소에 넣을 때 중복 판정에 사용하는 키 생성.
같은 거래소 레코드는 몇 번을 가져와도 같은 키를 가져야 함.
"""


def make_trade_external_id(
    exchange: str,
    market: str,
    symbol: str,
    exchange_trade_id: str,
) -> str:
    """체결 외부 ID 생성

    Args:
        exchange: 거래소 (예: binance)
        market: 마켓 (spot/futures)
        symbol: 정규화 심볼 (예: BTC/USDT)
        exchange_trade_id: 거래소의 체결 ID

    Returns:
        {exchange}:{market}:{symbol}:trade:{exchange_trade_id}

    Example:
        >>> make_trade_external_id("binance", "spot", "BTC/USDT", "28457")
        'binance:spot:BTC/USDT:trade:28457'
    """
    return f"{exchange}:{market}:{symbol}:trade:{exchange_trade_id}"
