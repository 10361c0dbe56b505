"""Tests for antispoof.py - Laplacian blur gate."""

import cv2
import numpy as np

from antispoof import BlurChecker, laplacian_variance


class TestLaplacianVariance:
    def test_flat_image_is_zero(self, flat_image):
        assert laplacian_variance(flat_image) == 0.0

    def test_edges_score_high(self, checkerboard):
        assert laplacian_variance(checkerboard) > 1000.0

    def test_blurring_lowers_score(self, checkerboard):
        blurred = cv2.GaussianBlur(checkerboard, (15, 15), 5)
        assert laplacian_variance(blurred) < laplacian_variance(checkerboard)

    def test_accepts_grayscale(self, checkerboard):
        gray = checkerboard[:, :, 0].copy()
        assert laplacian_variance(gray) == laplacian_variance(checkerboard)


class TestBlurChecker:
    def test_default_threshold(self):
        assert BlurChecker().threshold == 100.0

    def test_sharp_image_passes(self, checkerboard):
        assert BlurChecker().is_sharp(checkerboard) is True

    def test_flat_image_rejected(self, flat_image):
        assert BlurChecker().is_sharp(flat_image) is False

    def test_threshold_is_inclusive(self, checkerboard):
        score = laplacian_variance(checkerboard)
        assert BlurChecker(threshold=score).is_sharp(checkerboard) is True
        assert BlurChecker(threshold=np.nextafter(score, np.inf)).is_sharp(checkerboard) is False
