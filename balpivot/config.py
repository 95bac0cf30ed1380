"""Runtime settings read from the environment.

Entry points (the CLI and the web app) load a ``.env`` file with
python-dotenv before calling :meth:`Settings.from_env`, so either source
works.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass

DEFAULT_ENCODING = "latin-1"
DEFAULT_SHEET_TITLE = "Balance Pivoteado"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000

ENV_PREFIX = "BALPIVOT_"

# Worksheet title limits enforced by openpyxl.
MAX_SHEET_TITLE_LENGTH = 31
INVALID_SHEET_TITLE_CHARS = frozenset("[]:*?/\\")


@dataclass(frozen=True)
class Settings:
    encoding: str = DEFAULT_ENCODING
    sheet_title: str = DEFAULT_SHEET_TITLE
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    cors_origins: tuple[str, ...] = ("*",)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from ``BALPIVOT_*`` variables.

        Unset or empty variables keep their defaults. Raises ValueError for
        a port that is not an integer in 1..65535, or a sheet title that
        openpyxl would reject.
        """
        env = os.environ if environ is None else environ

        def get(name: str) -> str | None:
            value = env.get(ENV_PREFIX + name, "").strip()
            return value or None

        port = DEFAULT_PORT
        raw_port = get("PORT")
        if raw_port is not None:
            try:
                port = int(raw_port)
            except ValueError:
                raise ValueError(
                    f"{ENV_PREFIX}PORT must be an integer, got {raw_port!r}"
                ) from None
            if not 0 < port < 65536:
                raise ValueError(f"{ENV_PREFIX}PORT out of range: {port}")

        sheet_title = get("SHEET_TITLE") or DEFAULT_SHEET_TITLE
        if len(sheet_title) > MAX_SHEET_TITLE_LENGTH:
            raise ValueError(
                f"{ENV_PREFIX}SHEET_TITLE must be at most "
                f"{MAX_SHEET_TITLE_LENGTH} characters, got {sheet_title!r}"
            )
        bad = "".join(sorted(INVALID_SHEET_TITLE_CHARS.intersection(sheet_title)))
        if bad:
            raise ValueError(
                f"{ENV_PREFIX}SHEET_TITLE contains invalid characters {bad!r}"
            )

        origins = ("*",)
        raw_origins = get("CORS_ORIGINS")
        if raw_origins is not None:
            origins = tuple(o.strip() for o in raw_origins.split(",") if o.strip())

        return cls(
            encoding=get("ENCODING") or DEFAULT_ENCODING,
            sheet_title=sheet_title,
            host=get("HOST") or DEFAULT_HOST,
            port=port,
            cors_origins=origins,
        )
