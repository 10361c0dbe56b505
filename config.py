"""
运行配置

所有参数都可以通过环境变量覆盖，未设置时使用下面的默认值。
"""

import os

# =============================================================================
# 识别参数
# =============================================================================

# 余弦相似度阈值，严格大于该值才算同一个人
# 调高会减少误识（false accept），但会增加拒识（false reject）
MATCH_THRESHOLD = float(os.getenv("FACE_MATCH_THRESHOLD", "0.75"))

# 提取特征前人脸统一缩放到的边长
FACE_SIZE = int(os.getenv("FACE_SIZE", "256"))

# 拉普拉斯方差低于该值视为模糊（注册时拒绝）
BLUR_THRESHOLD = float(os.getenv("BLUR_THRESHOLD", "100.0"))

# 同一人同一课程在该分钟数内不重复记录考勤
ATTENDANCE_DEDUP_MINUTES = int(os.getenv("ATTENDANCE_DEDUP_MINUTES", "5"))

# =============================================================================
# 模型
# =============================================================================

DETECTOR_MODEL = os.getenv("DETECTOR_MODEL", "yolov8x-face-lindevs.pt")
EMBEDDING_MODEL = os.getenv("EMBEDDING_MODEL", "buffalo_l")
# -1 表示 CPU
INSIGHTFACE_CTX_ID = int(os.getenv("INSIGHTFACE_CTX_ID", "-1"))

# =============================================================================
# 数据库
# =============================================================================

DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = int(os.getenv("DB_PORT", "3306"))
DB_USER = os.getenv("DB_USER", "root")
DB_PASSWORD = os.getenv("DB_PASSWORD", "")
DB_NAME = os.getenv("DB_NAME", "face_attendance")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
