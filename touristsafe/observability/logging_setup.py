from __future__ import annotations
import logging
import sys
from loguru import logger

# ---- stdlib logging → loguru 인터셉트 ----
class InterceptHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(depth=6, exception=record.exc_info).log(level, record.getMessage())

def _hook_stdlib_logging() -> None:
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    # uvicorn, aiohttp 로그도 같은 sink로
    for name in ("uvicorn", "uvicorn.access", "uvicorn.error", "aiohttp.client", "aiosqlite"):
        std = logging.getLogger(name)
        std.handlers = [InterceptHandler()]
        std.propagate = False

# ---- 콘솔 포맷: 로거 이름 + key=value 컨텍스트 ----
_BASE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level:<7}</level> | "
    "<cyan>{extra[name]}</cyan> - "
    "<level>{message}</level>"
)

def _console_format(record) -> str:
    fields = [k for k in record["extra"] if k != "name"]
    context = "".join(f" <dim>{k}={{extra[{k}]}}</dim>" for k in fields)
    return _BASE_FORMAT + context + "\n{exception}"

def setup_logging(log_level: str = "INFO", *, json_logs: bool = False, colorize: bool = True) -> None:
    """
    loguru 초기화.

    - 콘솔: 로거 이름과 바인딩된 컨텍스트를 key=value로 표시
    - json_logs=True: 레코드 전체를 JSON 한 줄로 출력 (수집기용)
    - stdlib logging 흡수
    """
    logger.remove()
    logger.configure(extra={"name": "touristsafe"})
    if json_logs:
        logger.add(sys.stdout, serialize=True, level=log_level.upper(), backtrace=False, diagnose=False)
    else:
        logger.add(
            sys.stdout,
            format=_console_format,
            colorize=colorize,
            backtrace=False,
            diagnose=False,
            level=log_level.upper(),
        )
    _hook_stdlib_logging()

def get_logger(name: str = "touristsafe", **ctx):
    """이름과 선택적 컨텍스트를 바인딩한 logger 반환."""
    return logger.bind(name=name, **ctx)

def with_context(**ctx):
    """블록 안의 모든 로그에 컨텍스트 부여 (예: emergency_id)."""
    return logger.contextualize(**ctx)
