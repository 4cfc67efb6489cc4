"""Работа с потоками: чтение источника целиком и запись результата.

Источник задаётся путём (`str`/`Path`), бинарным или текстовым файловым
объектом, приёмник задаётся путём или бинарным объектом. Файлы, открытые здесь,
закрываются на любом пути выхода; объекты, переданные вызывающим кодом,
остаются открытыми.
"""
from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Iterable, TextIO, Tuple

from netpbm.models.errors import OpenError, WriteError

Source = str | Path | BinaryIO | TextIO


def describe(stream: Source) -> str:
    if isinstance(stream, (str, Path)):
        return str(stream)
    return str(getattr(stream, "name", repr(stream)))


def read_source(source: Source, encoding: str = "ascii") -> bytes:
    """Читает весь источник в память.

    Текст из текстового потока кодируется в `encoding`.

    Raises:
        OpenError: если файл не открывается, чтение падает или текст не кодируется.
    """
    if isinstance(source, (str, Path)):
        path = Path(source)
        try:
            with path.open("rb") as f:
                return f.read()
        except OSError as exc:
            raise OpenError(f"Не удалось открыть файл: {path}") from exc
    try:
        data = source.read()
    except OSError as exc:
        raise OpenError(f"Не удалось прочитать поток: {describe(source)}") from exc
    if isinstance(data, str):
        try:
            return data.encode(encoding)
        except UnicodeEncodeError as exc:
            raise OpenError(
                f"Текстовый поток {describe(source)} не кодируется в {encoding}"
            ) from exc
    return data


def write_chunks(target: Source, chunks: Iterable[bytes]) -> None:
    """Последовательно пишет куски в приёмник. Уже записанное не откатывается.

    Raises:
        OpenError: если файл не создаётся.
        WriteError: если запись обрывается.
    """
    if isinstance(target, (str, Path)):
        path = Path(target)
        try:
            f = path.open("wb")
        except OSError as exc:
            raise OpenError(f"Не удалось создать файл: {path}") from exc
        with f:
            _write_all(f, chunks, str(path))
    else:
        _write_all(target, chunks, describe(target))


def _write_all(f: BinaryIO, chunks: Iterable[bytes], name: str) -> None:
    try:
        for chunk in chunks:
            f.write(chunk)
        f.flush()
    except OSError as exc:
        raise WriteError(f"Ошибка записи данных в {name}") from exc


def next_line(data: bytes, pos: int) -> Tuple[bytes, int]:
    """Возвращает строку, начинающуюся с `pos`, без перевода строки, и позицию после неё."""
    end = data.find(b"\n", pos)
    if end == -1:
        line, pos = data[pos:], len(data)
    else:
        line, pos = data[pos:end], end + 1
    return line.rstrip(b"\r"), pos
