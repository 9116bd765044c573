# config/settings.py
import os
import sys
from dotenv import load_dotenv
from pydantic import ValidationError, Field
from pydantic_settings import BaseSettings
from util.enums import Environment
import logging


if os.getenv("APP_ENV", Environment.DEV) == Environment.DEV:
    load_dotenv()

_log = logging.getLogger("config.settings")


class Settings(BaseSettings):
    # App
    APP_ENV: str = Field(..., validation_alias="APP_ENV")
    REDIS_URL: str = Field(..., validation_alias="REDIS_URL")
    PERSISTENCE_TTL_SECONDS: int = Field(
        ..., validation_alias="PERSISTENCE_TTL_SECONDS"
    )

    # CORS & Limits
    ALLOWED_ORIGIN: str = Field(..., validation_alias="ALLOWED_ORIGIN")
    RATE_LIMIT_TIMES: int = Field(..., validation_alias="RATE_LIMIT_TIMES")
    RATE_LIMIT_SECONDS: int = Field(..., validation_alias="RATE_LIMIT_SECONDS")
    MAX_FILE_MB: int = Field(..., validation_alias="MAX_FILE_MB")
    TRUST_PROXY: bool = Field(..., validation_alias="TRUST_PROXY")

    # Anthropic Settings
    ANTHROPIC_API_URL: str = Field(..., validation_alias="ANTHROPIC_API_URL")
    ANTHROPIC_MODEL: str = Field(..., validation_alias="ANTHROPIC_MODEL")
    ANTHROPIC_VERSION: str = Field(..., validation_alias="ANTHROPIC_VERSION")
    ANSWER_MAX_TOKENS: int = 1200
    ANSWER_TIMEOUT_SECONDS: float = 60.0

    # Retrieval
    EMBEDDING_MODEL_NAME: str = "sentence-transformers/all-MiniLM-L6-v2"
    CHUNK_MAX_CHARS: int = 1000
    RETRIEVAL_K: int = 4
    RETRIEVAL_FETCH_K: int = 8
    MMR_LAMBDA: float = 0.5

    # Excerpt locator
    LOCATE_MIN_EXCERPT_CHARS: int = 15
    LOCATE_PHRASE_WORDS: int = 6
    LOCATE_MIN_PHRASE_CHARS: int = 20
    LOCATE_OVERLAP_TOLERANCE: float = 10.0
    LOCATE_MAX_SEGMENTS: int = Field(default=400, validation_alias="LOCATE_MAX_SEGMENTS")
    LOCATE_TIMEOUT_SECONDS: float = Field(
        default=20.0, validation_alias="LOCATE_TIMEOUT_SECONDS"
    )
    HIGHLIGHT_COLOR: str = "red"
    HIGHLIGHT_OPACITY: float = 0.15

    # Citation injector
    CITATION_FUZZY_MIN_MATCHES: int = 2
    CITATION_FUZZY_RATIO: float = 0.2

    # Logging knobs
    LOGGER_NAME: str = "pdf-evidence"
    LOG_LEVEL: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    LOG_TO_FILE: bool = Field(default=False, validation_alias="LOG_TO_FILE")
    LOG_DIR: str = Field(default="logs", validation_alias="LOG_DIR")
    LOG_FILE_NAME: str = Field(default="app.log", validation_alias="LOG_FILE_NAME")
    LOG_MAX_BYTES: int = Field(
        default=50 * 1024 * 1024, validation_alias="LOG_MAX_BYTES"
    )
    LOG_BACKUP_COUNT: int = Field(default=5, validation_alias="LOG_BACKUP_COUNT")

    # Prompts
    ANSWER_SYSTEM_PROMPT: str = (
        "Use the provided pieces of CONTEXT to answer the user QUESTION. If you don't know the answer, "
        "just say that you don't know, don't try to make up an answer.\n"
        "\n"
        "OUTPUT: a single JSON object, no code fences, no prose outside it:\n"
        '{"answer":"<your detailed answer>","sources":"<supporting text>"}\n'
        "\n"
        "SOURCES RULES:\n"
        '- "sources" holds direct sentences or paragraphs copied VERBATIM from the context that support the answer.\n'
        "- ONLY RELEVANT TEXT DIRECTLY FROM THE DOCUMENT. Do not add anything extra. Do not invent anything.\n"
        "- Keep the original punctuation and casing; separate sentences with a period and a space.\n"
        "\n"
        "The JSON must be valid and readable by a strict JSON parser.\n"
    )


try:
    settings = Settings()
except ValidationError as e:
    print("❌ Missing/invalid environment variables:", file=sys.stderr)
    for err in e.errors():
        loc = ".".join(str(x) for x in err.get("loc", []))
        msg = err.get("msg", "")
        print(f" - {loc}: {msg}", file=sys.stderr)
    sys.exit(1)
except Exception as e:
    print(f"❌ Settings initialization failed: {e}", file=sys.stderr)
    sys.exit(1)
