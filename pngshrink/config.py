import logging
import os
from dataclasses import dataclass

# An index byte cannot address more entries than this.
MAX_PALETTE_SIZE = 256


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() not in ("0", "false", "no", "off", "")


@dataclass(frozen=True)
class OptimizerSettings:
    output_name: str
    compress_level: int
    palette_limit: int
    verify_roundtrip: bool
    timeout: float
    retries: int
    port: int
    max_upload_bytes: int
    log_level: str

    @classmethod
    def from_env(cls) -> "OptimizerSettings":
        return cls(
            output_name=os.getenv("OUTPUT_NAME", "out.png"),
            compress_level=int(os.getenv("COMPRESS_LEVEL", "9")),
            palette_limit=min(MAX_PALETTE_SIZE, int(os.getenv("PALETTE_LIMIT", str(MAX_PALETTE_SIZE)))),
            verify_roundtrip=_env_flag("VERIFY_ROUNDTRIP", "1"),
            timeout=float(os.getenv("SOURCE_TIMEOUT", "10.0")),
            retries=int(os.getenv("SOURCE_RETRIES", "2")),
            port=int(os.getenv("PORT", "5600")),
            max_upload_bytes=int(os.getenv("MAX_UPLOAD_BYTES", str(32 * 1024 * 1024))),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )


SETTINGS = OptimizerSettings.from_env()


def configure_logging(level: str | None = None) -> logging.Logger:
    logging.basicConfig(level=(level or SETTINGS.log_level).upper())
    return logging.getLogger("pngshrink")
