from typing import List, Literal, Optional

from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()  # .env 파일 로드


class Settings(BaseSettings):
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    # 조회 캐시 백엔드: 프로세스 내부(memory) 또는 redis
    cache_backend: Literal["memory", "redis"] = "memory"
    redis_url: str = "redis://localhost:6379/0"

    # e 태그에 기록할 relay 힌트 (빈 문자열이면 힌트 없음)
    relay_hint: str = ""

    # 로컬 개발용 이벤트 클라이언트의 서명 공개키 (없으면 비로그인 상태)
    author_pubkey: Optional[str] = None

    cors_origins: List[str] = ["http://localhost:5173"]

    class Config:
        env_file = ".env"
        env_prefix = "RELAYROOMS_"


settings = Settings()
