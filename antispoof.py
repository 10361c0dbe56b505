import cv2

import config


def laplacian_variance(image):
    """拉普拉斯算子的方差，越小越模糊"""
    if image.ndim == 3:
        gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    else:
        gray = image
    return float(cv2.Laplacian(gray, cv2.CV_64F).var())


class BlurChecker:
    def __init__(self, threshold=None):
        self.threshold = config.BLUR_THRESHOLD if threshold is None else float(threshold)

    def is_sharp(self, image):
        return laplacian_variance(image) >= self.threshold
