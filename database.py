import json
import logging
from datetime import datetime

import numpy as np
import pymysql

import config

logger = logging.getLogger(__name__)


class ReferenceDataError(ValueError):
    """数据库中保存的参考特征格式不正确"""


class UserExistsError(ValueError):
    """用户已注册且未选择覆盖"""


def encode_embedding(vector):
    """特征向量 -> 数字字符串列表（保存格式）"""
    return [str(float(v)) for v in np.asarray(vector, dtype=np.float32).ravel()]


def decode_embedding(values):
    """
    数字字符串列表 -> float32 特征向量
    任意一个元素解析失败都整体失败，不返回部分解析的结果
    """
    if not isinstance(values, (list, tuple)):
        raise ReferenceDataError(f"参考特征应为列表, 实际为 {type(values).__name__}")
    if len(values) == 0:
        raise ReferenceDataError("参考特征为空")

    parsed = []
    for i, value in enumerate(values):
        if isinstance(value, bool):
            raise ReferenceDataError(f"第 {i} 个元素不是数字: {value!r}")
        try:
            number = float(str(value).strip())
        except ValueError:
            raise ReferenceDataError(f"第 {i} 个元素不是数字: {value!r}") from None
        if not np.isfinite(number):
            raise ReferenceDataError(f"第 {i} 个元素不是有限数: {value!r}")
        parsed.append(number)
    return np.asarray(parsed, dtype=np.float32)


class FaceDatabase:
    def __init__(self, host=None, user=None, password=None, database=None, port=None, conn=None):
        if conn is not None:
            self.conn = conn
        else:
            try:
                self.conn = pymysql.connect(
                    host=host or config.DB_HOST,
                    port=port or config.DB_PORT,
                    user=user or config.DB_USER,
                    password=config.DB_PASSWORD if password is None else password,
                    database=database or config.DB_NAME,
                    charset="utf8mb4",
                )
            except pymysql.MySQLError:
                logger.error("数据库连接失败, 请确保 MySQL 服务正在运行且数据库已创建")
                raise
        self.cursor = self.conn.cursor()

    def init_tables(self):
        """初始化特征表和考勤表（如果不存在则创建）"""
        self.cursor.execute("""
        CREATE TABLE IF NOT EXISTS face_embeddings (
            user_id VARCHAR(64) PRIMARY KEY,
            embedding MEDIUMTEXT NOT NULL,
            updated_at DATETIME NOT NULL
        ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4
        """)
        self.cursor.execute("""
        CREATE TABLE IF NOT EXISTS attendance_records (
            id INT AUTO_INCREMENT PRIMARY KEY,
            user_id VARCHAR(64) NOT NULL,
            schedule_id VARCHAR(64) NULL,
            attendance_time DATETIME NOT NULL,
            date DATE NOT NULL,
            time TIME NOT NULL,
            INDEX idx_user (user_id),
            INDEX idx_schedule (schedule_id),
            INDEX idx_date (date)
        ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4
        """)
        self.conn.commit()

    def user_exists(self, user_id):
        sql = "SELECT COUNT(*) FROM face_embeddings WHERE user_id = %s"
        self.cursor.execute(sql, (user_id,))
        return self.cursor.fetchone()[0] > 0

    def save_reference(self, user_id, feature, overwrite_if_exists=False):
        """
        保存参考特征
        overwrite_if_exists: 如果用户已注册，是否覆盖（默认False）
        返回: "inserted" 或 "updated"
        """
        payload = json.dumps(encode_embedding(feature))
        now = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

        if self.user_exists(user_id):
            if not overwrite_if_exists:
                raise UserExistsError(f"用户 '{user_id}' 已注册，如需更新请选择覆盖")
            sql = "UPDATE face_embeddings SET embedding = %s, updated_at = %s WHERE user_id = %s"
            self.cursor.execute(sql, (payload, now, user_id))
            self.conn.commit()
            return "updated"

        sql = "INSERT INTO face_embeddings (user_id, embedding, updated_at) VALUES (%s, %s, %s)"
        self.cursor.execute(sql, (user_id, payload, now))
        self.conn.commit()
        return "inserted"

    def load_reference(self, user_id):
        """
        读取参考特征的原始数据
        返回: 数字字符串列表；用户未注册时返回 None
        """
        sql = "SELECT embedding FROM face_embeddings WHERE user_id = %s"
        self.cursor.execute(sql, (user_id,))
        row = self.cursor.fetchone()
        if row is None:
            return None
        try:
            return json.loads(row[0])
        except (TypeError, ValueError) as e:
            raise ReferenceDataError(f"参考特征不是合法的 JSON: {e}") from e

    def delete_reference(self, user_id):
        """返回: 删除的记录数"""
        sql = "DELETE FROM face_embeddings WHERE user_id = %s"
        self.cursor.execute(sql, (user_id,))
        deleted_count = self.cursor.rowcount
        self.conn.commit()
        return deleted_count

    def add_attendance(self, user_id, schedule_id=None, now=None):
        """
        添加考勤记录
        返回: (是否成功, 消息)
        """
        try:
            now = now or datetime.now()
            attendance_time = now.strftime("%Y-%m-%d %H:%M:%S")
            date = now.strftime("%Y-%m-%d")
            time_str = now.strftime("%H:%M:%S")

            # 同一课程短时间内不重复记录
            sql_check = """
            SELECT id FROM attendance_records
            WHERE user_id = %s AND schedule_id <=> %s
            AND TIMESTAMPDIFF(MINUTE, attendance_time, %s) < %s
            ORDER BY attendance_time DESC LIMIT 1
            """
            self.cursor.execute(sql_check, (user_id, schedule_id, attendance_time,
                                            config.ATTENDANCE_DEDUP_MINUTES))
            if self.cursor.fetchone():
                return False, f"已在{config.ATTENDANCE_DEDUP_MINUTES}分钟内记录过考勤"

            sql = """
            INSERT INTO attendance_records (user_id, schedule_id, attendance_time, date, time)
            VALUES (%s, %s, %s, %s, %s)
            """
            self.cursor.execute(sql, (user_id, schedule_id, attendance_time, date, time_str))
            self.conn.commit()
            return True, f"考勤记录成功: {user_id} - {attendance_time}"

        except pymysql.MySQLError as e:
            self.conn.rollback()
            logger.error("考勤记录失败: %s", e)
            return False, f"考勤记录失败: {e}"

    def get_attendance_records(self, user_id=None, schedule_id=None, limit=100):
        """
        返回: [(id, user_id, schedule_id, attendance_time, date, time), ...]
        """
        sql = ("SELECT id, user_id, schedule_id, attendance_time, date, time "
               "FROM attendance_records WHERE 1=1")
        params = []

        if user_id:
            sql += " AND user_id = %s"
            params.append(user_id)

        if schedule_id:
            sql += " AND schedule_id = %s"
            params.append(schedule_id)

        sql += " ORDER BY attendance_time DESC LIMIT %s"
        params.append(limit)

        self.cursor.execute(sql, params)
        return self.cursor.fetchall()

    def close(self):
        self.cursor.close()
        self.conn.close()
