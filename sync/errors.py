"""
동기화 서비스 에러

어댑터 계층 에러(adapters.errors)와 별개로, 연결/잠금/입력 검증 등
서비스 수준의 실패를 분류. Web 계층은 이 분류로 HTTP 상태를 결정.
"""


class SyncError(Exception):
    """동기화 서비스 에러 베이스"""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConnectionNotFoundError(SyncError):
    """연결 ID에 해당하는 거래소 연결 없음"""

    def __init__(self, connection_id: int):
        super().__init__(f"Exchange connection not found: {connection_id}")
        self.connection_id = connection_id


class SyncInProgressError(SyncError):
    """같은 연결에 대해 다른 동기화가 진행 중"""

    def __init__(self, connection_id: int):
        super().__init__(f"Sync already in progress for connection {connection_id}")
        self.connection_id = connection_id


class NoTradesSelectedError(SyncError):
    """import 요청에 선택된 체결 없음"""

    def __init__(self) -> None:
        super().__init__("No trades selected for import")


class SyncTimeoutError(SyncError):
    """거래소 조회 시간 초과"""

    def __init__(self, exchange: str, timeout_sec: float):
        super().__init__(f"Sync timeout for {exchange} after {timeout_sec:g}s")
        self.exchange = exchange
        self.timeout_sec = timeout_sec


class CredentialDecryptError(SyncError):
    """저장된 자격 증명 복호화 실패 (키 불일치 또는 손상)"""

    def __init__(self, detail: str = "Stored credentials could not be decrypted"):
        super().__init__(detail)


class InvalidCredentialsError(SyncError):
    """자격 증명 누락 또는 연결 테스트 실패"""

    def __init__(self, message: str = "Invalid API credentials or connection failed"):
        super().__init__(message)
