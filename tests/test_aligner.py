"""Tests for aligner.py - box clamping, mirroring and rescale."""

import numpy as np
import pytest

from aligner import CameraFacing, FaceAligner, clamp_box, flip_horizontal


def half_and_half(height=100, width=100):
    """Left half black, right half white."""
    img = np.zeros((height, width, 3), dtype=np.uint8)
    img[:, width // 2:] = 255
    return img


class TestClampBox:
    def test_inside_box_unchanged(self):
        assert clamp_box([10, 20, 110, 120], (480, 640, 3)) == (10, 20, 110, 120)

    def test_clamps_negative_origin(self):
        assert clamp_box([-10, -5, 100, 100], (480, 640, 3)) == (0, 0, 100, 100)

    def test_clamps_to_image_size(self):
        assert clamp_box([600, 400, 700, 500], (480, 640, 3)) == (600, 400, 640, 480)

    def test_returns_integers(self):
        result = clamp_box(np.array([10.7, 20.2, 110.9, 120.5]), (480, 640, 3))
        assert all(isinstance(v, int) for v in result)
        assert result == (10, 20, 110, 120)

    def test_ignores_extra_columns(self):
        """Detectors sometimes append a confidence after xyxy."""
        assert clamp_box([1, 2, 3, 4, 0.99], (10, 10)) == (1, 2, 3, 4)


class TestFlipHorizontal:
    def test_mirrors_columns(self):
        img = half_and_half()
        flipped = flip_horizontal(img)
        assert flipped[0, 0, 0] == 255
        assert flipped[0, -1, 0] == 0


class TestFaceAligner:
    def test_default_size(self):
        assert FaceAligner().output_size == 256

    def test_output_shape(self):
        img = np.zeros((480, 640, 3), dtype=np.uint8)
        out = FaceAligner().align(img, [100, 50, 300, 400])
        assert out.shape == (256, 256, 3)

    def test_custom_size(self):
        img = np.zeros((480, 640, 3), dtype=np.uint8)
        out = FaceAligner(output_size=112).align(img, [0, 0, 640, 480])
        assert out.shape == (112, 112, 3)

    def test_back_camera_not_flipped(self):
        out = FaceAligner(output_size=10).align(half_and_half(), [0, 0, 100, 100], CameraFacing.BACK)
        assert out[0, 0, 0] == 0
        assert out[0, -1, 0] == 255

    def test_front_camera_flipped(self):
        out = FaceAligner(output_size=10).align(half_and_half(), [0, 0, 100, 100], CameraFacing.FRONT)
        assert out[0, 0, 0] == 255
        assert out[0, -1, 0] == 0

    def test_crops_to_box(self):
        img = half_and_half()
        out = FaceAligner(output_size=8).align(img, [60, 0, 100, 100])
        assert (out == 255).all()

    def test_box_partly_outside_is_clamped(self):
        img = half_and_half()
        out = FaceAligner(output_size=8).align(img, [-50, -50, 40, 40])
        assert out.shape == (8, 8, 3)
        assert (out == 0).all()

    def test_box_outside_image_raises(self):
        with pytest.raises(ValueError):
            FaceAligner().align(half_and_half(), [200, 200, 300, 300])

    def test_missing_box_raises(self):
        with pytest.raises(ValueError):
            FaceAligner().align(half_and_half(), None)

    def test_does_not_modify_source(self):
        img = half_and_half()
        before = img.copy()
        FaceAligner(output_size=16).align(img, [0, 0, 100, 100], CameraFacing.FRONT)
        assert np.array_equal(img, before)
