"""Настройки кодека.

Значения по умолчанию берутся из переменных окружения, явно переданные
аргументы имеют приоритет.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class CodecConfig:
    """Параметры чтения и записи.

    Fields:
        legacy_raw_bilevel_text: Писать тело `P4` текстом из символов "1"/"0"
            без упаковки битов (старое поведение). По умолчанию биты упаковываются.
        text_encoding: Кодировка заголовков и текстовых тел `P1`/`P2`.
    """
    legacy_raw_bilevel_text: Optional[bool] = None
    text_encoding: Optional[str] = None

    def __post_init__(self) -> None:
        if self.legacy_raw_bilevel_text is None:
            self.legacy_raw_bilevel_text = _env_flag("NETPBM_LEGACY_P4_TEXT")
        if self.text_encoding is None:
            self.text_encoding = os.environ.get("NETPBM_TEXT_ENCODING", "ascii")
