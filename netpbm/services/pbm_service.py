"""Чтение и запись двухуровневых изображений PBM (`P1`, `P4`).

Принципы:
- SRP: только кодек PBM; модель ничего не знает о формате файла.
- OCP: источники и приёмники: пути или потоки (см. `streams`).
"""
from __future__ import annotations

import logging
from typing import Iterator, Optional, Tuple

import numpy as np

from netpbm.config import CodecConfig
from netpbm.models.errors import HeaderError, PixelParseError
from netpbm.models.image_model import BilevelImage, ImageFormat
from netpbm.services.streams import Source, describe, next_line, read_source, write_chunks

logger = logging.getLogger(__name__)


def parse_dimensions(text: str) -> Tuple[int, int]:
    """Разбирает строку `ширина высота`, обе величины должны быть положительными."""
    fields = text.split()
    if len(fields) < 2:
        raise HeaderError(f"Неверные размеры: {text!r}")
    try:
        width, height = int(fields[0]), int(fields[1])
    except ValueError as exc:
        raise HeaderError(f"Неверные размеры: {text!r}") from exc
    if width <= 0 or height <= 0:
        raise HeaderError(f"Ширина и высота должны быть положительными: {width}x{height}")
    return width, height


class PbmService:
    def __init__(self, config: Optional[CodecConfig] = None) -> None:
        self.config = config or CodecConfig()

    def load(self, source: Source) -> BilevelImage:
        """Загружает PBM из файла или потока.

        Args:
            source: Путь до файла, бинарный или текстовый поток.

        Returns:
            `BilevelImage` с форматом из заголовка.

        Raises:
            OpenError: если источник не открывается.
            HeaderError: если магическое число или размеры неверны.
            PixelParseError: если строк `P1` короче ширины или данных `P4` не хватает.
        """
        image = self.decode(read_source(source, self.config.text_encoding))
        logger.debug("Загружено %s из %s", image, describe(source))
        return image

    def decode(self, data: bytes) -> BilevelImage:
        fmt: Optional[ImageFormat] = None
        image: Optional[BilevelImage] = None
        row = 0
        pos = 0
        while pos < len(data):
            raw_line, pos = next_line(data, pos)
            # пустые строки и комментарии пропускаются везде, до декодирования
            if not raw_line.strip() or raw_line.startswith(b"#"):
                continue
            if fmt is None:
                fmt = ImageFormat.from_magic(self._text(raw_line).strip())
                if not fmt.is_bilevel:
                    raise HeaderError(f"Магическое число {fmt.magic} не относится к PBM")
            elif image is None:
                width, height = parse_dimensions(self._text(raw_line))
                image = BilevelImage.blank(width, height, fmt)
                if fmt is ImageFormat.RAW_BILEVEL:
                    self._unpack_raw(image, data, pos)
                    return image
            elif row < image.height:
                # токены сравниваются как байты: всё, кроме "1", сброшено
                tokens = raw_line.split()
                if len(tokens) < image.width:
                    raise PixelParseError(
                        f"В строке {row} {len(tokens)} пикселей, ожидалось {image.width}"
                    )
                image.pixels[row] = [token == b"1" for token in tokens[: image.width]]
                row += 1

        if fmt is None:
            raise HeaderError("Нет магического числа")
        if image is None:
            raise HeaderError("Нет строки с размерами")
        if row < image.height:
            logger.debug("Строк P1 меньше высоты (%d из %d), остаток пустой", row, image.height)
        return image

    def _unpack_raw(self, image: BilevelImage, data: bytes, header_end: int) -> None:
        # данные берутся с конца потока: ровно ceil(width/8) байт на строку
        row_bytes = (image.width + 7) // 8
        expected = row_bytes * image.height
        if len(data) - header_end < expected:
            raise PixelParseError(
                f"Не хватает данных P4: {len(data) - header_end} байт, ожидалось {expected}"
            )
        packed = np.frombuffer(data[len(data) - expected:], dtype=np.uint8).reshape(image.height, row_bytes)
        image.pixels[:, :] = np.unpackbits(packed, axis=1)[:, : image.width].astype(bool)

    def save(self, image: BilevelImage, target: Source) -> None:
        """Сохраняет изображение в формате, с которым оно было загружено.

        Raises:
            OpenError: если файл не создаётся.
            WriteError: если запись обрывается; частично записанный файл остаётся.
        """
        write_chunks(target, self.iter_encoded(image))
        logger.info("Изображение сохранено: %s", describe(target))

    def encode(self, image: BilevelImage) -> bytes:
        return b"".join(self.iter_encoded(image))

    def iter_encoded(self, image: BilevelImage) -> Iterator[bytes]:
        enc = self.config.text_encoding
        yield f"{image.format.magic}\n".encode(enc)
        yield f"{image.width} {image.height}\n".encode(enc)
        if image.format is ImageFormat.PLAIN_BILEVEL:
            for row in image.pixels:
                yield ("".join(np.where(row, "1 ", "0 ")) + "\n").encode(enc)
        elif self.config.legacy_raw_bilevel_text:
            # старый вариант: символы "1"/"0" подряд, без упаковки и разделителей
            yield "".join(np.where(image.pixels.ravel(), "1", "0")).encode(enc)
        else:
            for row in np.packbits(image.pixels, axis=1):
                yield row.tobytes()

    def _text(self, raw_line: bytes) -> str:
        try:
            return raw_line.decode(self.config.text_encoding)
        except UnicodeDecodeError as exc:
            raise HeaderError("Заголовок содержит недопустимые символы") from exc
