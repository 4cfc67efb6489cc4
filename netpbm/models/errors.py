"""Иерархия ошибок кодека Netpbm.

Принципы:
- SRP: только типы ошибок, без логики.
- LSP: ошибки наследуют встроенные `OSError`/`ValueError`, поэтому код,
  ожидающий стандартные исключения, продолжает работать.
"""
from __future__ import annotations


class NetpbmError(Exception):
    """Базовая ошибка всех операций чтения и записи."""


class OpenError(NetpbmError, OSError):
    """Поток не удалось открыть или создать."""


class DecodeError(NetpbmError, ValueError):
    """Файл не удалось разобрать."""


class HeaderError(DecodeError):
    """Нет или повреждены магическое число, размеры или максимальное значение."""


class PixelParseError(DecodeError):
    """Пиксельные данные не разбираются или их не хватает."""


class EncodeError(NetpbmError):
    """Изображение не удалось записать."""


class WriteError(EncodeError, OSError):
    """Запись в поток оборвалась."""
