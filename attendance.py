import logging
from dataclasses import dataclass

from aligner import CameraFacing
from database import UserExistsError
from detector import first_box
from verification import FaceVerifier, VerificationResult, VerificationStatus

logger = logging.getLogger(__name__)


class CaptureError(RuntimeError):
    """没有检测到人脸、人脸模糊或特征提取失败"""


@dataclass(frozen=True)
class CheckInResult:
    verification: VerificationResult
    recorded: bool = False
    message: str = ""


class AttendanceService:
    def __init__(self, db, detector, aligner, extractor, matcher, blur_checker):
        self.db = db
        self.detector = detector
        self.aligner = aligner
        self.extractor = extractor
        self.blur_checker = blur_checker
        self.verifier = FaceVerifier(db, matcher)

    def _crop_face(self, image, facing):
        box = first_box(self.detector.detect(image))
        if box is None:
            raise CaptureError("没有检测到人脸")
        try:
            return self.aligner.align(image, box, facing=facing)
        except ValueError as e:
            raise CaptureError(str(e)) from e

    def _extract(self, face):
        feature = self.extractor.extract(face)
        if feature is None or len(feature) == 0:
            raise CaptureError("特征提取失败")
        return feature

    def capture_embedding(self, image, facing=CameraFacing.BACK):
        """
        输入: BGR 图像, 镜头方向
        输出: 第一张人脸的特征向量
        """
        return self._extract(self._crop_face(image, facing))

    def enroll(self, user_id, image, facing=CameraFacing.BACK, overwrite=False):
        """
        注册人脸，模糊的图像不保存
        已注册且未选择覆盖时，在检测之前就抛出 UserExistsError
        返回: "inserted" 或 "updated"
        """
        if not overwrite and self.db.user_exists(user_id):
            raise UserExistsError(f"用户 '{user_id}' 已注册，如需更新请选择覆盖")
        face = self._crop_face(image, facing)
        if not self.blur_checker.is_sharp(face):
            raise CaptureError("图像太模糊，请重新拍摄")
        feature = self._extract(face)
        result = self.db.save_reference(user_id, feature, overwrite_if_exists=overwrite)
        logger.info("用户 %s 注册完成: %s", user_id, result)
        return result

    def check_in(self, user_id, schedule_id, image, facing=CameraFacing.BACK):
        try:
            feature = self.capture_embedding(image, facing)
        except CaptureError as e:
            logger.warning("采集失败: %s", e)
            verification = VerificationResult(VerificationStatus.RETRY, message=str(e))
            return CheckInResult(verification, message=str(e))

        verification = self.verifier.verify(user_id, feature)
        if verification.status is not VerificationStatus.MATCH:
            return CheckInResult(verification, message=verification.message)

        recorded, message = self.db.add_attendance(user_id, schedule_id)
        return CheckInResult(verification, recorded=recorded, message=message)
