import logging
import sys

import cv2
import pymysql
from PyQt6.QtCore import Qt
from PyQt6.QtGui import QFont, QImage, QPixmap
from PyQt6.QtWidgets import (
    QApplication, QComboBox, QFileDialog, QHBoxLayout, QLabel, QLineEdit,
    QMessageBox, QPushButton, QStackedWidget, QVBoxLayout, QWidget
)

import config
from aligner import CameraFacing, FaceAligner
from antispoof import BlurChecker
from attendance import AttendanceService, CaptureError
from database import FaceDatabase, UserExistsError
from detector import FaceDetector
from extractor import FeatureExtractor
from matcher import FaceMatcher
from verification import VerificationStatus

logger = logging.getLogger(__name__)


# ============================
# 公共方法：显示图像（自动缩放以完整显示）
# ============================
def show_qimage(label: QLabel, img):
    if img is None or img.size == 0 or len(img.shape) < 2:
        label.clear()
        return

    rgb = cv2.cvtColor(img, cv2.COLOR_BGR2RGB)
    h, w, c = rgb.shape
    qimg = QImage(rgb.data, w, h, w * c, QImage.Format.Format_RGB888)
    pixmap = QPixmap.fromImage(qimg)

    size = label.size()
    if size.width() <= 0 or size.height() <= 0:
        label.setPixmap(pixmap)
        return

    label.setPixmap(pixmap.scaled(
        size.width(),
        size.height(),
        Qt.AspectRatioMode.KeepAspectRatio,
        Qt.TransformationMode.SmoothTransformation
    ))


def facing_combo():
    combo = QComboBox()
    combo.addItem("后置摄像头", CameraFacing.BACK)
    combo.addItem("前置摄像头（镜像）", CameraFacing.FRONT)
    combo.setFixedHeight(36)
    return combo


def page_title(text):
    title = QLabel(text)
    title.setFont(QFont("Microsoft YaHei", 18, QFont.Weight.Bold))
    title.setAlignment(Qt.AlignmentFlag.AlignCenter)
    return title


def image_box():
    label = QLabel()
    label.setFixedSize(480, 360)
    label.setStyleSheet(
        "border: 2px solid #CCCCCC; border-radius: 10px; background-color: #F8F8F8;"
    )
    label.setAlignment(Qt.AlignmentFlag.AlignCenter)
    return label


class ImagePage(QWidget):
    def __init__(self, service):
        super().__init__()
        self.service = service
        self.current_img = None
        self.image_label = image_box()

    def select_image(self):
        file, _ = QFileDialog.getOpenFileName(self, "选择图片", "", "Images (*.jpg *.png *.jpeg)")
        if not file:
            return
        img = cv2.imread(file)
        if img is None:
            QMessageBox.warning(self, "提示", "无法读取图片")
            return
        self.current_img = img
        show_qimage(self.image_label, img)


# ============================
# 注册页面
# ============================
class RegisterPage(ImagePage):
    def __init__(self, service):
        super().__init__(service)

        self.user_input = QLineEdit()
        self.user_input.setPlaceholderText("请输入学号")
        self.user_input.setFixedHeight(40)
        self.facing = facing_combo()

        self.btn_select = QPushButton("选择图片")
        self.btn_select.clicked.connect(self.select_image)
        self.btn_select.setFixedHeight(40)

        self.btn_register = QPushButton("注册人脸")
        self.btn_register.clicked.connect(self.register_face)
        self.btn_register.setFixedHeight(40)
        self.btn_register.setStyleSheet("background-color:#0080FF;color:white;font-size:16px;")

        layout = QVBoxLayout()
        layout.addWidget(page_title("注册人脸"))
        layout.addWidget(self.image_label, alignment=Qt.AlignmentFlag.AlignHCenter)
        layout.addWidget(self.user_input)
        layout.addWidget(self.facing)
        layout.addWidget(self.btn_select)
        layout.addWidget(self.btn_register)
        layout.setAlignment(Qt.AlignmentFlag.AlignTop)
        self.setLayout(layout)

    def register_face(self):
        if self.current_img is None:
            QMessageBox.warning(self, "提示", "请先选择图片")
            return
        user_id = self.user_input.text().strip()
        if user_id == "":
            QMessageBox.warning(self, "提示", "请输入学号")
            return

        facing = self.facing.currentData()
        result = self._enroll(user_id, facing)
        if result is None:
            return

        text = "注册成功" if result == "inserted" else "更新成功"
        QMessageBox.information(self, "成功", f"{text}：{user_id}")

    def _enroll(self, user_id, facing, overwrite=False):
        """返回 "inserted" / "updated"；失败或取消时弹窗提示并返回 None"""
        try:
            return self.service.enroll(user_id, self.current_img, facing, overwrite=overwrite)
        except UserExistsError:
            reply = QMessageBox.question(self, "确认", f"用户 '{user_id}' 已注册，是否覆盖？")
            if reply != QMessageBox.StandardButton.Yes:
                return None
            return self._enroll(user_id, facing, overwrite=True)
        except CaptureError as e:
            QMessageBox.warning(self, "注册失败", str(e))
        except pymysql.MySQLError as e:
            logger.error("注册时数据库出错: %s", e)
            QMessageBox.critical(self, "注册失败", f"数据库错误: {e}")
        except Exception as e:
            logger.exception("注册失败")
            QMessageBox.warning(self, "注册失败", str(e))
        return None


# ============================
# 验证页面
# ============================
class VerifyPage(ImagePage):
    def __init__(self, service):
        super().__init__(service)

        self.user_input = QLineEdit()
        self.user_input.setPlaceholderText("请输入学号")
        self.user_input.setFixedHeight(40)
        self.schedule_input = QLineEdit()
        self.schedule_input.setPlaceholderText("课程编号（可选）")
        self.schedule_input.setFixedHeight(40)
        self.facing = facing_combo()

        self.btn_select = QPushButton("选择图片")
        self.btn_select.clicked.connect(self.select_image)
        self.btn_select.setFixedHeight(40)

        self.btn_verify = QPushButton("验证并签到")
        self.btn_verify.clicked.connect(self.verify_face)
        self.btn_verify.setFixedHeight(40)
        self.btn_verify.setStyleSheet("background-color:#00A000;color:white;font-size:16px;")

        layout = QVBoxLayout()
        layout.addWidget(page_title("人脸验证"))
        layout.addWidget(self.image_label, alignment=Qt.AlignmentFlag.AlignHCenter)
        layout.addWidget(self.user_input)
        layout.addWidget(self.schedule_input)
        layout.addWidget(self.facing)
        layout.addWidget(self.btn_select)
        layout.addWidget(self.btn_verify)
        layout.setAlignment(Qt.AlignmentFlag.AlignTop)
        self.setLayout(layout)

    def verify_face(self):
        if self.current_img is None:
            QMessageBox.warning(self, "提示", "请先选择图片")
            return
        user_id = self.user_input.text().strip()
        if user_id == "":
            QMessageBox.warning(self, "提示", "请输入学号")
            return
        schedule_id = self.schedule_input.text().strip() or None

        try:
            result = self.service.check_in(user_id, schedule_id, self.current_img, self.facing.currentData())
        except pymysql.MySQLError as e:
            logger.error("签到时数据库出错: %s", e)
            QMessageBox.critical(self, "验证不可用", f"数据库错误: {e}")
            return
        except Exception as e:
            logger.exception("签到失败")
            QMessageBox.warning(self, "请重试", str(e))
            return

        status = result.verification.status
        sim = result.verification.similarity
        sim_text = f"（相似度：{sim:.3f}）" if sim is not None else ""

        if status is VerificationStatus.MATCH:
            if result.recorded:
                QMessageBox.information(self, "签到成功", f"{result.message}{sim_text}")
            else:
                QMessageBox.warning(self, "签到", f"{result.message}{sim_text}")
        elif status is VerificationStatus.UNAVAILABLE:
            QMessageBox.critical(self, "验证不可用", result.message)
        else:
            QMessageBox.warning(self, "请重试", f"{result.message}{sim_text}")


# ============================
# 主窗口
# ============================
class MainWindow(QWidget):
    def __init__(self):
        super().__init__()
        self.setWindowTitle("人脸考勤系统")
        self.resize(700, 700)

        logger.info("正在加载人脸检测模型...")
        detector = FaceDetector()
        logger.info("正在加载特征提取模型...")
        extractor = FeatureExtractor()
        logger.info("正在连接数据库...")
        self.db = FaceDatabase()
        self.db.init_tables()

        self.service = AttendanceService(
            self.db, detector, FaceAligner(), extractor, FaceMatcher(), BlurChecker()
        )

        self.stack = QStackedWidget()
        self.stack.addWidget(RegisterPage(self.service))
        self.stack.addWidget(VerifyPage(self.service))

        btn_reg = QPushButton("注册人脸")
        btn_reg.clicked.connect(lambda: self.stack.setCurrentIndex(0))
        btn_reg.setFixedHeight(40)

        btn_verify = QPushButton("人脸签到")
        btn_verify.clicked.connect(lambda: self.stack.setCurrentIndex(1))
        btn_verify.setFixedHeight(40)

        btn_layout = QHBoxLayout()
        btn_layout.addWidget(btn_reg)
        btn_layout.addWidget(btn_verify)

        layout = QVBoxLayout()
        layout.addWidget(self.stack)
        layout.addLayout(btn_layout)
        self.setLayout(layout)

    def closeEvent(self, event):
        self.db.close()
        super().closeEvent(event)


def main():
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = QApplication(sys.argv)
    w = MainWindow()
    w.show()
    return app.exec()


# 入口
if __name__ == "__main__":
    sys.exit(main())
