"""
Web 진입점

실행 방법:
    python -m web
    python -m web --host 0.0.0.0 --port 8080
"""

import argparse

import uvicorn

from core.constants import Defaults


def main() -> None:
    parser = argparse.ArgumentParser(description="거래소 동기화 API 서버")
    parser.add_argument("--host", default=Defaults.WEB_HOST, help=f"바인드 주소 (기본: {Defaults.WEB_HOST})")
    parser.add_argument("--port", type=int, default=Defaults.WEB_PORT, help=f"포트 (기본: {Defaults.WEB_PORT})")
    parser.add_argument("--reload", action="store_true", help="코드 변경 시 자동 재시작 (개발용)")
    args = parser.parse_args()

    # 로깅은 web.app 임포트 시 설정되므로 uvicorn 기본 로깅 설정은 끔
    uvicorn.run(
        "web.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_config=None,
    )


if __name__ == "__main__":
    main()
