"""Загрузка изображений Netpbm любого поддерживаемого типа и обмен с Pillow.

Принципы:
- SRP: класс выбирает кодек по магическому числу и не разбирает пиксели сам.
- OCP: новые кодеки добавляются отдельными сервисами и веткой в `load`/`save`.
- LSP/ISP: возвращает `BilevelImage`/`GrayscaleImage` или `ImageInfo` с предсказуемыми полями.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import numpy as np
from PIL import Image

from netpbm.config import CodecConfig
from netpbm.models.errors import HeaderError, OpenError
from netpbm.models.image_model import BilevelImage, GrayscaleImage, ImageFormat
from netpbm.services.pbm_service import PbmService
from netpbm.services.pgm_service import PgmService
from netpbm.services.streams import Source, next_line, read_source

NetpbmImage = BilevelImage | GrayscaleImage


@dataclass(frozen=True)
class ImageInfo:
    """Неизменяемые метаданные файла.

    Fields:
        path: Путь к исходному файлу.
        format: Формат из заголовка.
        width: Ширина, px.
        height: Высота, px.
        max_value: Максимум отсчёта; для PBM всегда 1.
        size_bytes: Размер файла, если доступен.
    """
    path: Path
    format: ImageFormat
    width: int
    height: int
    max_value: int
    size_bytes: Optional[int]


def sniff_format(data: bytes) -> ImageFormat:
    """Находит магическое число, пропуская пустые строки и комментарии."""
    pos = 0
    while pos < len(data):
        line, pos = next_line(data, pos)
        token = line.strip()
        if not token or token.startswith(b"#"):
            continue
        return ImageFormat.from_magic(token.decode("ascii", errors="replace"))
    raise HeaderError("Нет магического числа")


class ImageService:
    def __init__(self, config: Optional[CodecConfig] = None) -> None:
        self.config = config or CodecConfig()
        self._pbm = PbmService(self.config)
        self._pgm = PgmService(self.config)

    def load(self, source: Source) -> NetpbmImage:
        """Загружает PBM или PGM, определяя тип по магическому числу.

        Raises:
            OpenError: если источник не открывается.
            HeaderError: если магическое число не поддерживается.
            PixelParseError: если пиксельные данные повреждены.
        """
        data = read_source(source, self.config.text_encoding)
        fmt = sniff_format(data)
        if fmt.is_bilevel:
            return self._pbm.decode(data)
        return self._pgm.decode(data)

    def save(self, image: NetpbmImage, target: Source) -> None:
        if isinstance(image, BilevelImage):
            self._pbm.save(image, target)
        elif isinstance(image, GrayscaleImage):
            self._pgm.save(image, target)
        else:
            raise TypeError(f"Неподдерживаемый тип изображения: {type(image).__name__}")

    def info(self, file_path: str | Path) -> ImageInfo:
        """Загружает файл и возвращает его метаданные.

        Raises:
            OpenError: если путь не существует или не указывает на файл.
        """
        path = Path(file_path)
        if not path.exists() or not path.is_file():
            raise OpenError(f"Файл не найден: {path}")

        image = self.load(path)
        try:
            size_bytes: Optional[int] = path.stat().st_size
        except OSError:
            size_bytes = None

        return ImageInfo(
            path=path,
            format=image.format,
            width=image.width,
            height=image.height,
            max_value=image.max_value if isinstance(image, GrayscaleImage) else 1,
            size_bytes=size_bytes,
        )

    # ---------- Обмен с Pillow ----------
    def to_pil(self, image: NetpbmImage) -> Image.Image:
        """Преобразует модель в изображение PIL.

        PBM даёт режим "1", установленный пиксель становится чёрным (соглашение Netpbm).
        PGM даёт режим "L" с отсчётами как есть.
        """
        if isinstance(image, BilevelImage):
            gray = np.where(image.pixels, 0, 255).astype(np.uint8)
            return Image.fromarray(gray).convert("1", dither=Image.Dither.NONE)
        return Image.fromarray(np.ascontiguousarray(image.pixels))

    def from_pil(self, pil_image: Image.Image, fmt: ImageFormat = ImageFormat.PLAIN_GRAY) -> NetpbmImage:
        """Строит модель из изображения PIL в заданном формате.

        Для PBM изображение порогуется без дизеринга: тёмные пиксели становятся установленными.
        """
        if fmt.is_bilevel:
            if pil_image.mode != "1":
                pil_image = pil_image.convert("L").convert("1", dither=Image.Dither.NONE)
            return BilevelImage(fmt, ~np.asarray(pil_image, dtype=bool))
        if pil_image.mode != "L":
            pil_image = pil_image.convert("L")
        return GrayscaleImage(fmt, np.array(pil_image, dtype=np.uint8), 255)
