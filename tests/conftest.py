from pathlib import Path
from typing import Callable

import pytest

from netpbm.config import CodecConfig
from netpbm.services.image_service import ImageService
from netpbm.services.pbm_service import PbmService
from netpbm.services.pgm_service import PgmService


@pytest.fixture
def config() -> CodecConfig:
    # явные значения, чтобы окружение не влияло на тесты
    return CodecConfig(legacy_raw_bilevel_text=False, text_encoding="ascii")


@pytest.fixture
def pbm_service(config: CodecConfig) -> PbmService:
    return PbmService(config)


@pytest.fixture
def pgm_service(config: CodecConfig) -> PgmService:
    return PgmService(config)


@pytest.fixture
def image_service(config: CodecConfig) -> ImageService:
    return ImageService(config)


@pytest.fixture
def write_file(tmp_path: Path) -> Callable[[str, bytes], Path]:
    """Пишет байты во временный файл и возвращает путь."""
    def _write(name: str, data: bytes) -> Path:
        path = tmp_path / name
        path.write_bytes(data)
        return path

    return _write


class BrokenStream:
    """Поток, запись в который всегда падает."""
    name = "<broken>"

    def __init__(self, fail_after: int = 0) -> None:
        self.fail_after = fail_after
        self.written = []

    def write(self, chunk: bytes) -> int:
        if len(self.written) >= self.fail_after:
            raise OSError("No space left on device")
        self.written.append(chunk)
        return len(chunk)

    def flush(self) -> None:
        pass


@pytest.fixture
def broken_stream() -> BrokenStream:
    return BrokenStream(fail_after=1)
