import io

import numpy as np
import pytest
from PIL import Image

from netpbm.models.errors import HeaderError, OpenError, PixelParseError, WriteError
from netpbm.models.image_model import GrayscaleImage, ImageFormat


class TestDecodePlain:
    def test_samples_match_tokens(self, pgm_service):
        img = pgm_service.decode(b"P2\n3 1\n255\n10 20 30\n")
        assert img.format is ImageFormat.PLAIN_GRAY
        assert img.max_value == 255
        assert (img.at(0, 0), img.at(1, 0), img.at(2, 0)) == (10, 20, 30)

    def test_short_row_leaves_zeros(self, pgm_service):
        img = pgm_service.decode(b"P2\n3 2\n255\n1 2\n4 5 6\n")
        assert img.pixels.tolist() == [[1, 2, 0], [4, 5, 6]]

    def test_last_row_without_newline(self, pgm_service):
        img = pgm_service.decode(b"P2\n2 1\n15\n7 8")
        assert img.pixels.tolist() == [[7, 8]]

    def test_non_numeric_token(self, pgm_service):
        with pytest.raises(PixelParseError):
            pgm_service.decode(b"P2\n3 1\n255\n10 x 30\n")

    @pytest.mark.parametrize("token", [b"256", b"-1", b"+-5", b"1.5"])
    def test_token_out_of_sample_range(self, pgm_service, token):
        with pytest.raises(PixelParseError):
            pgm_service.decode(b"P2\n1 1\n255\n" + token + b"\n")

    def test_too_many_tokens(self, pgm_service):
        with pytest.raises(PixelParseError, match="вне диапазона"):
            pgm_service.decode(b"P2\n3 1\n255\n1 2 3 4\n")

    def test_missing_rows(self, pgm_service):
        with pytest.raises(PixelParseError):
            pgm_service.decode(b"P2\n2 2\n255\n1 2\n")

    def test_max_value_wraps_to_8_bits(self, pgm_service):
        img = pgm_service.decode(b"P2\n1 1\n300\n10\n")
        assert img.max_value == 44
        img.invert()
        assert img.at(0, 0) == 34


class TestDecodeRaw:
    def test_one_byte_per_sample(self, pgm_service):
        img = pgm_service.decode(b"P5\n3 2\n255\n" + bytes([0, 1, 2, 10, 200, 255]))
        assert img.format is ImageFormat.RAW_GRAY
        assert img.pixels.tolist() == [[0, 1, 2], [10, 200, 255]]

    def test_trailing_bytes_ignored(self, pgm_service):
        img = pgm_service.decode(b"P5\n2 1\n255\n\x01\x02\x03")
        assert img.pixels.tolist() == [[1, 2]]

    def test_truncated(self, pgm_service):
        with pytest.raises(PixelParseError):
            pgm_service.decode(b"P5\n3 2\n255\n\x00\x01")

    def test_pixels_are_writable(self, pgm_service):
        img = pgm_service.decode(b"P5\n2 1\n255\n\x01\x02")
        img.flip()
        assert img.pixels.tolist() == [[2, 1]]


class TestDecodeHeader:
    @pytest.mark.parametrize("data", [
        b"",
        b"P9\n3 1\n255\n10 20 30\n",
        b"P1\n3 1\n1 0 1\n",
        b"# comment\nP2\n1 1\n255\n0\n",
        b"P2\n3 1\n",
        b"P2\n3\n255\n",
        b"P2\n0 1\n255\n\n",
        b"P2\n3 -1\n255\n",
        b"P2\n1 1\nmax\n0\n",
        b"P2\n1 1\n-3\n0\n",
    ])
    def test_bad_header(self, pgm_service, data):
        with pytest.raises(HeaderError):
            pgm_service.decode(data)


class TestEncode:
    def test_plain(self, pgm_service):
        img = GrayscaleImage(ImageFormat.PLAIN_GRAY, np.array([[10, 20, 30], [0, 1, 2]]), 255)
        assert pgm_service.encode(img) == b"P2\n3 2\n255\n10 20 30\n0 1 2\n"

    def test_raw(self, pgm_service):
        img = GrayscaleImage(ImageFormat.RAW_GRAY, np.array([[10, 20], [0, 255]]), 255)
        assert pgm_service.encode(img) == b"P5\n2 2\n255\n\x0a\x14\x00\xff"

    @pytest.mark.parametrize("fmt", [ImageFormat.PLAIN_GRAY, ImageFormat.RAW_GRAY])
    def test_round_trip_after_transforms(self, pgm_service, fmt):
        img = GrayscaleImage(fmt, np.array([[1, 2, 3, 4], [50, 60, 70, 80]]), 100)
        img.invert()
        img.flip()
        assert pgm_service.decode(pgm_service.encode(img)) == img


class TestFiles:
    def test_load_from_path_and_stream(self, pgm_service, write_file):
        data = b"P2\n3 1\n255\n10 20 30\n"
        path = write_file("a.pgm", data)
        assert pgm_service.load(path) == pgm_service.load(io.BytesIO(data))

    def test_load_from_text_stream(self, pgm_service):
        img = pgm_service.load(io.StringIO("P2\n3 1\n255\n10 20 30\n"))
        assert img.pixels.tolist() == [[10, 20, 30]]

    def test_text_stream_outside_encoding(self, pgm_service):
        with pytest.raises(OpenError):
            pgm_service.load(io.StringIO("P2\n1 1\n255\nё\n"))

    def test_missing_file(self, pgm_service, tmp_path):
        with pytest.raises(OpenError):
            pgm_service.load(tmp_path / "nope.pgm")

    def test_write_failure(self, pgm_service, broken_stream):
        img = GrayscaleImage.blank(2, 2)
        with pytest.raises(WriteError):
            pgm_service.save(img, broken_stream)

    @pytest.mark.parametrize("fmt", [ImageFormat.PLAIN_GRAY, ImageFormat.RAW_GRAY])
    def test_output_readable_by_pillow(self, pgm_service, tmp_path, fmt):
        pixels = np.arange(12, dtype=np.uint8).reshape(3, 4) * 20
        path = tmp_path / "out.pgm"
        pgm_service.save(GrayscaleImage(fmt, pixels, 255), path)
        with Image.open(path) as pil:
            assert pil.mode == "L"
            assert np.array_equal(np.asarray(pil), pixels)
