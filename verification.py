"""
人脸验证

分两步：先从数据库取参考特征（可能失败），再调用纯函数的 matcher 比较。
取不到参考特征时返回 UNAVAILABLE，既不算通过也不算不通过。
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import pymysql

from database import ReferenceDataError, decode_embedding
from matcher import FaceMatcher, InvalidInputError

logger = logging.getLogger(__name__)


class ReferenceUnavailableError(RuntimeError):
    """参考特征不存在、读取失败或格式错误"""


class VerificationStatus(Enum):
    MATCH = "match"
    NO_MATCH = "no_match"
    RETRY = "retry"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class VerificationResult:
    status: VerificationStatus
    similarity: Optional[float] = None
    message: str = ""

    @property
    def verified(self) -> bool:
        return self.status is VerificationStatus.MATCH


def fetch_reference(store, user_id):
    """
    store: 提供 load_reference(user_id) 的对象（FaceDatabase）
    输出: 解析后的参考特征
    """
    try:
        raw = store.load_reference(user_id)
    except ReferenceDataError as e:
        raise ReferenceUnavailableError(f"参考特征数据损坏: {e}") from e
    except pymysql.MySQLError as e:
        raise ReferenceUnavailableError(f"读取参考特征失败: {e}") from e

    if raw is None:
        raise ReferenceUnavailableError(f"用户 '{user_id}' 没有注册人脸")

    try:
        return decode_embedding(raw)
    except ReferenceDataError as e:
        raise ReferenceUnavailableError(f"参考特征数据损坏: {e}") from e


class FaceVerifier:
    def __init__(self, store, matcher=None):
        self.store = store
        self.matcher = matcher or FaceMatcher()

    def verify(self, user_id, embedding) -> VerificationResult:
        try:
            reference = fetch_reference(self.store, user_id)
        except ReferenceUnavailableError as e:
            logger.warning("验证不可用: %s", e)
            return VerificationResult(VerificationStatus.UNAVAILABLE, message=str(e))

        try:
            result = self.matcher.match(embedding, reference)
        except InvalidInputError as e:
            logger.error("特征无法比较: %s", e)
            return VerificationResult(VerificationStatus.RETRY, message=f"特征无法比较，请重试: {e}")

        if result.matched:
            logger.info("用户 %s 验证通过, 相似度 %.4f", user_id, result.similarity)
            return VerificationResult(VerificationStatus.MATCH, result.similarity, "人脸验证通过")

        logger.info("用户 %s 验证失败, 相似度 %.4f", user_id, result.similarity)
        return VerificationResult(VerificationStatus.NO_MATCH, result.similarity,
                                  "人脸验证失败，请重试")
