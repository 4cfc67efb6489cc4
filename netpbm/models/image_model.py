"""Модели данных для изображений Netpbm.

Принципы:
- SRP: только структура данных и операции над сеткой пикселей, без ввода-вывода.
- Чистый код: формат фиксируется при создании и дальше не меняется.

Политика границ одна для обоих типов: чтение за пределами сетки возвращает
нейтральное значение (`False` / `0`), запись за пределами игнорируется.
"""
from __future__ import annotations

from enum import Enum
from typing import Tuple

import numpy as np

from netpbm.models.errors import HeaderError


class ImageFormat(Enum):
    """Закрытый набор поддерживаемых магических чисел."""
    PLAIN_BILEVEL = "P1"
    PLAIN_GRAY = "P2"
    RAW_BILEVEL = "P4"
    RAW_GRAY = "P5"

    @property
    def magic(self) -> str:
        return self.value

    @property
    def is_bilevel(self) -> bool:
        return self in (ImageFormat.PLAIN_BILEVEL, ImageFormat.RAW_BILEVEL)

    @property
    def is_raw(self) -> bool:
        return self in (ImageFormat.RAW_BILEVEL, ImageFormat.RAW_GRAY)

    @classmethod
    def from_magic(cls, token: str) -> "ImageFormat":
        """Возвращает формат по магическому числу.

        Raises:
            HeaderError: если токен не входит в поддерживаемый набор.
        """
        for member in cls:
            if member.value == token:
                return member
        raise HeaderError(f"Неверное магическое число: {token!r}")


BILEVEL_FORMATS = (ImageFormat.PLAIN_BILEVEL, ImageFormat.RAW_BILEVEL)
GRAY_FORMATS = (ImageFormat.PLAIN_GRAY, ImageFormat.RAW_GRAY)


def _check_grid(pixels: np.ndarray) -> None:
    if pixels.ndim != 2:
        raise ValueError(f"Сетка пикселей должна быть двумерной, получено измерений: {pixels.ndim}")
    height, width = pixels.shape
    if width <= 0 or height <= 0:
        raise ValueError(f"Размеры должны быть положительными: {width}x{height}")


class _GridImage:
    """Общая часть моделей: формат, размеры и проверка координат."""
    _allowed: Tuple[ImageFormat, ...] = ()

    def __init__(self, fmt: ImageFormat, pixels: np.ndarray) -> None:
        if fmt not in self._allowed:
            raise ValueError(f"Формат {fmt.magic} не подходит для {type(self).__name__}")
        _check_grid(pixels)
        self._format = fmt
        self.pixels = pixels

    @property
    def format(self) -> ImageFormat:
        return self._format

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def size(self) -> Tuple[int, int]:
        """Возвращает `(ширина, высота)`."""
        return self.width, self.height

    def _inside(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._format is other._format and np.array_equal(self.pixels, other.pixels)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(format={self._format.magic}, size={self.width}x{self.height})"


class BilevelImage(_GridImage):
    """Двухуровневое изображение PBM.

    Fields:
        format: `P1` или `P4`.
        pixels: `numpy.ndarray` типа `bool`, форма `(height, width)`, `True` означает установленный пиксель.
    """
    _allowed = BILEVEL_FORMATS

    def __init__(self, fmt: ImageFormat, pixels: np.ndarray) -> None:
        super().__init__(fmt, np.asarray(pixels, dtype=bool))

    @classmethod
    def blank(cls, width: int, height: int, fmt: ImageFormat = ImageFormat.PLAIN_BILEVEL) -> "BilevelImage":
        """Создаёт изображение, в котором все пиксели сброшены."""
        if width <= 0 or height <= 0:
            raise ValueError(f"Размеры должны быть положительными: {width}x{height}")
        return cls(fmt, np.zeros((height, width), dtype=bool))

    def at(self, x: int, y: int) -> bool:
        if not self._inside(x, y):
            return False
        return bool(self.pixels[y, x])

    def set(self, x: int, y: int, value: bool) -> None:
        if self._inside(x, y):
            self.pixels[y, x] = bool(value)

    def copy(self) -> "BilevelImage":
        return BilevelImage(self._format, self.pixels.copy())


class GrayscaleImage(_GridImage):
    """Изображение в оттенках серого PGM.

    Fields:
        format: `P2` или `P5`.
        max_value: Объявленный максимум отсчёта, хранится в 8 битах.
        pixels: `numpy.ndarray` типа `uint8`, форма `(height, width)`.
    """
    _allowed = GRAY_FORMATS

    def __init__(self, fmt: ImageFormat, pixels: np.ndarray, max_value: int = 255) -> None:
        super().__init__(fmt, np.asarray(pixels, dtype=np.uint8))
        self.max_value = int(max_value) & 0xFF

    @classmethod
    def blank(
        cls,
        width: int,
        height: int,
        max_value: int = 255,
        fmt: ImageFormat = ImageFormat.PLAIN_GRAY,
    ) -> "GrayscaleImage":
        """Создаёт чёрное изображение заданного размера."""
        if width <= 0 or height <= 0:
            raise ValueError(f"Размеры должны быть положительными: {width}x{height}")
        return cls(fmt, np.zeros((height, width), dtype=np.uint8), max_value)

    def at(self, x: int, y: int) -> int:
        if not self._inside(x, y):
            return 0
        return int(self.pixels[y, x])

    def set(self, x: int, y: int, value: int) -> None:
        if self._inside(x, y):
            self.pixels[y, x] = int(value) & 0xFF

    def invert(self) -> None:
        """Заменяет каждый отсчёт на `max_value - sample` по модулю 256, на месте."""
        np.subtract(np.uint8(self.max_value), self.pixels, out=self.pixels)

    def flip(self) -> None:
        """Отражает каждую строку слева направо, порядок строк не меняется."""
        self.pixels[:, :] = self.pixels[:, ::-1]

    def copy(self) -> "GrayscaleImage":
        return GrayscaleImage(self._format, self.pixels.copy(), self.max_value)

    def __eq__(self, other: object) -> bool:
        result = super().__eq__(other)
        if result is NotImplemented or not result:
            return result
        return self.max_value == other.max_value
