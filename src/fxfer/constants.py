from __future__ import annotations

U32_FORMAT = "!I"  # network byte order
U32_MAX = 0xFFFFFFFF

DIGEST_HEX_LEN = 32  # md5

DEFAULT_CHUNK_SIZE = 4096
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY_S = 5.0

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8889
DEFAULT_WORKERS = 1
