from enum import Enum

import cv2
import numpy as np

import config


class CameraFacing(Enum):
    FRONT = "front"
    BACK = "back"


def clamp_box(box, image_shape):
    """
    把检测框限制在图像范围内
    box: [x1, y1, x2, y2]
    image_shape: (h, w, c)
    """
    height, width = image_shape[:2]
    x1, y1, x2, y2 = (float(v) for v in box[:4])
    x1 = int(max(0.0, x1))
    y1 = int(max(0.0, y1))
    x2 = int(min(float(width), x2))
    y2 = int(min(float(height), y2))
    return x1, y1, x2, y2


def flip_horizontal(image):
    return cv2.flip(image, 1)


class FaceAligner:
    def __init__(self, output_size=None):
        self.output_size = config.FACE_SIZE if output_size is None else int(output_size)

    def align(self, image, box, facing=CameraFacing.BACK):
        """
        输入: BGR 图像, 人脸框, 拍摄时的镜头方向
        输出: output_size x output_size 的人脸
        前置摄像头拍到的是镜像画面，需要水平翻转，注册和验证必须一致
        """
        if box is None:
            raise ValueError("必须提供人脸框")
        x1, y1, x2, y2 = clamp_box(np.asarray(box), image.shape)
        if x2 <= x1 or y2 <= y1:
            raise ValueError(f"人脸框在图像之外: {(x1, y1, x2, y2)}")

        face = image[y1:y2, x1:x2]
        if facing is CameraFacing.FRONT:
            face = flip_horizontal(face)
        # 不做滤波的直接缩放
        return cv2.resize(face, (self.output_size, self.output_size), interpolation=cv2.INTER_NEAREST)
