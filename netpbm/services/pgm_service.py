"""Чтение и запись изображений в оттенках серого PGM (`P2`, `P5`).

Принципы:
- SRP: только кодек PGM.
- Заголовок строго из трёх строк: магическое число, размеры, максимальное значение.
  Комментарии в заголовке PGM не поддерживаются.
"""
from __future__ import annotations

import logging
import re
from typing import Iterator, Optional, Type

import numpy as np

from netpbm.config import CodecConfig
from netpbm.models.errors import DecodeError, HeaderError, PixelParseError
from netpbm.models.image_model import GrayscaleImage, ImageFormat
from netpbm.services.pbm_service import parse_dimensions
from netpbm.services.streams import Source, describe, next_line, read_source, write_chunks

logger = logging.getLogger(__name__)

_INTEGER = re.compile(r"[+-]?[0-9]+")


class PgmService:
    def __init__(self, config: Optional[CodecConfig] = None) -> None:
        self.config = config or CodecConfig()

    def load(self, source: Source) -> GrayscaleImage:
        """Загружает PGM из файла или потока.

        Args:
            source: Путь до файла, бинарный или текстовый поток.

        Returns:
            `GrayscaleImage`; максимальное значение хранится в 8 битах (по модулю 256).

        Raises:
            OpenError: если источник не открывается.
            HeaderError: если одна из трёх строк заголовка отсутствует или неверна.
            PixelParseError: если отсчёт не число 0..255, строка длиннее ширины
                или пиксельных данных не хватает.
        """
        image = self.decode(read_source(source, self.config.text_encoding))
        logger.debug("Загружено %s из %s", image, describe(source))
        return image

    def decode(self, data: bytes) -> GrayscaleImage:
        pos = 0
        header = []
        for name in ("магического числа", "размеров", "максимального значения"):
            if pos >= len(data):
                raise HeaderError(f"Ошибка чтения {name}: неожиданный конец данных")
            line, pos = next_line(data, pos)
            header.append(self._text(line, HeaderError).strip())
        magic, dims, max_text = header

        fmt = ImageFormat.from_magic(magic)
        if fmt.is_bilevel:
            raise HeaderError(f"Магическое число {fmt.magic} не относится к PGM")
        width, height = parse_dimensions(dims)
        try:
            max_value = int(max_text)
        except ValueError as exc:
            raise HeaderError(f"Неверное максимальное значение: {max_text!r}") from exc
        if max_value < 0:
            raise HeaderError(f"Неверное максимальное значение: {max_value}")

        image = GrayscaleImage.blank(width, height, max_value, fmt)
        if fmt is ImageFormat.PLAIN_GRAY:
            self._read_plain(image, data, pos)
        else:
            self._read_raw(image, data, pos)
        return image

    def _read_plain(self, image: GrayscaleImage, data: bytes, pos: int) -> None:
        for y in range(image.height):
            if pos >= len(data):
                raise PixelParseError(f"Ошибка чтения данных в строке {y}: неожиданный конец данных")
            line, pos = next_line(data, pos)
            for x, field in enumerate(self._text(line, PixelParseError).split()):
                if x >= image.width:
                    raise PixelParseError(f"Индекс вне диапазона в строке {y}")
                image.pixels[y, x] = self._sample(field, x, y)

    @staticmethod
    def _sample(field: str, x: int, y: int) -> int:
        if not _INTEGER.fullmatch(field):
            raise PixelParseError(
                f"Ошибка разбора значения пикселя в строке {y}, столбце {x}: {field!r}"
            )
        value = int(field)
        if not 0 <= value <= 255:
            raise PixelParseError(
                f"Значение пикселя вне 0..255 в строке {y}, столбце {x}: {value}"
            )
        return value

    @staticmethod
    def _read_raw(image: GrayscaleImage, data: bytes, pos: int) -> None:
        # один байт на отсчёт, построчно, без выравнивания
        expected = image.width * image.height
        if len(data) - pos < expected:
            raise PixelParseError(
                f"Не хватает данных P5: {len(data) - pos} байт, ожидалось {expected}"
            )
        samples = np.frombuffer(data, dtype=np.uint8, count=expected, offset=pos)
        image.pixels[:, :] = samples.reshape(image.height, image.width)

    def save(self, image: GrayscaleImage, target: Source) -> None:
        """Сохраняет изображение в его формате (`P2` текстом, `P5` сырыми байтами).

        Raises:
            OpenError: если файл не создаётся.
            WriteError: если запись обрывается; частично записанный файл остаётся.
        """
        write_chunks(target, self.iter_encoded(image))
        logger.info("Изображение сохранено: %s", describe(target))

    def encode(self, image: GrayscaleImage) -> bytes:
        return b"".join(self.iter_encoded(image))

    def iter_encoded(self, image: GrayscaleImage) -> Iterator[bytes]:
        enc = self.config.text_encoding
        yield f"{image.format.magic}\n{image.width} {image.height}\n{image.max_value}\n".encode(enc)
        if image.format is ImageFormat.PLAIN_GRAY:
            for row in image.pixels:
                yield (" ".join(str(int(v)) for v in row) + "\n").encode(enc)
        else:
            yield image.pixels.tobytes()

    def _text(self, raw_line: bytes, error: Type[DecodeError]) -> str:
        try:
            return raw_line.decode(self.config.text_encoding)
        except UnicodeDecodeError as exc:
            raise error("Строка содержит недопустимые символы") from exc
