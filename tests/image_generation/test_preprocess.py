"""
Unit tests for square padding + transparent mask used by the OpenAI edit flow.
"""
import base64
import io
import unittest
from unittest.mock import patch

from PIL import Image

from app.services.image_generation.preprocess import (
    MAX_CANVAS_DIM,
    ImagePreprocessError,
    fit_within,
    prepare_square_edit_inputs,
)


def _png_data_uri(width: int, height: int, color=(200, 40, 40)) -> str:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, "PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")


def _jpeg_b64(width: int, height: int) -> str:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), (10, 120, 200)).save(buf, "JPEG")
    return base64.b64encode(buf.getvalue()).decode("ascii")


def _open(data_uri: str) -> Image.Image:
    raw = base64.b64decode(data_uri.split(",", 1)[1])
    return Image.open(io.BytesIO(raw))


class TestFitWithin(unittest.TestCase):
    def test_landscape_downscaled(self):
        self.assertEqual(fit_within(2000, 1000, 1024), (1024, 512))

    def test_portrait_downscaled(self):
        self.assertEqual(fit_within(900, 1600, 720), (405, 720))

    def test_small_image_not_upscaled(self):
        self.assertEqual(fit_within(300, 200, 1024), (300, 200))

    def test_square_downscaled(self):
        self.assertEqual(fit_within(2048, 2048, 512), (512, 512))

    def test_extreme_ratio_keeps_one_pixel(self):
        self.assertEqual(fit_within(5000, 1, 100), (100, 1))


class TestPrepareSquareEditInputs(unittest.TestCase):
    def assert_square(self, data_uri: str, size: int):
        img = _open(data_uri)
        self.assertEqual(img.format, "PNG")
        self.assertEqual(img.size, (size, size))

    def test_output_is_exactly_d_by_d(self):
        for (w, h), d in [((1920, 1080), 1024), ((1080, 1920), 720), ((300, 200), 512), ((640, 640), 256)]:
            with self.subTest(w=w, h=h, d=d):
                prepared = prepare_square_edit_inputs(_png_data_uri(w, h), d)
                self.assert_square(prepared.image, d)
                self.assert_square(prepared.mask, d)
                self.assertEqual(prepared.size, d)

    def test_visible_region_keeps_aspect_ratio(self):
        for w, h in [(1920, 1080), (1080, 1920), (800, 600), (300, 200)]:
            with self.subTest(w=w, h=h):
                prepared = prepare_square_edit_inputs(_png_data_uri(w, h), 512)
                img = _open(prepared.image).convert("RGBA")
                left, top, right, bottom = img.getchannel("A").getbbox()
                vis_w, vis_h = right - left, bottom - top
                # within rounding of the short edge
                self.assertAlmostEqual(vis_w / vis_h, w / h, delta=(w / h) * 2 / min(vis_w, vis_h))
                self.assertEqual((left, top, vis_w, vis_h), prepared.content_box)

    def test_content_is_centered(self):
        prepared = prepare_square_edit_inputs(_png_data_uri(2000, 1000), 1000)
        self.assertEqual(prepared.content_box, (0, 250, 1000, 500))

    def test_mask_fully_transparent(self):
        prepared = prepare_square_edit_inputs(_png_data_uri(400, 300), 256)
        mask = _open(prepared.mask).convert("RGBA")
        self.assertEqual(mask.getchannel("A").getextrema(), (0, 0))

    def test_accepts_bare_base64_jpeg(self):
        prepared = prepare_square_edit_inputs(_jpeg_b64(640, 480), 512)
        self.assertTrue(prepared.image.startswith("data:image/png;base64,"))
        self.assert_square(prepared.image, 512)

    def test_undecodable_source_raises(self):
        with self.assertRaises(ImagePreprocessError):
            prepare_square_edit_inputs("data:image/png;base64," + base64.b64encode(b"not an image").decode(), 512)
        with self.assertRaises(ImagePreprocessError):
            prepare_square_edit_inputs("%%%", 512)

    def test_non_positive_dimension_raises(self):
        with self.assertRaises(ImagePreprocessError):
            prepare_square_edit_inputs(_png_data_uri(10, 10), 0)

    def test_oversized_dimension_raises_before_allocating(self):
        source = _png_data_uri(10, 10)
        with patch("app.services.image_generation.preprocess.Image.new") as mock_new:
            with self.assertRaises(ImagePreprocessError):
                prepare_square_edit_inputs(source, 60000)
        mock_new.assert_not_called()

    def test_largest_allowed_dimension(self):
        prepared = prepare_square_edit_inputs(_png_data_uri(10, 10), MAX_CANVAS_DIM)
        self.assertEqual(prepared.size, MAX_CANVAS_DIM)

    def test_preprocess_error_is_value_error(self):
        self.assertTrue(issubclass(ImagePreprocessError, ValueError))
