"""
API 라우트 패키지

각 기능별 라우터 모듈:
- health: 헬스 체크
- exchanges: 지원 거래소 목록
- connections: 거래소 연결 관리
- exchange_sync: preview / import / data sync
"""
