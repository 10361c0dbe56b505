import logging

import numpy as np

import config

logger = logging.getLogger(__name__)


def first_box(boxes):
    """返回第一个检测框，没有检测到人脸时返回 None"""
    if boxes is None or len(boxes) == 0:
        return None
    return boxes[0]


class FaceDetector:
    def __init__(self, model_path=None):
        # 延迟导入（较重的依赖）
        from ultralytics import YOLO

        self.model = YOLO(model_path or config.DETECTOR_MODEL)

    def detect(self, image):
        """
        输入: BGR 图像
        输出: boxes, 形状 [N, 4] 的 xyxy 坐标
        """
        try:
            results = self.model(image, verbose=False)[0]
            return results.boxes.xyxy.cpu().numpy()
        except Exception:
            logger.exception("人脸检测失败")
            return np.empty((0, 4), dtype=np.float32)
