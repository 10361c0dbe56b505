import logging
from dataclasses import dataclass

import numpy as np

import config

logger = logging.getLogger(__name__)


class InvalidInputError(ValueError):
    """两个特征向量无法比较（长度不一致、为空或不是一维）"""


@dataclass(frozen=True)
class MatchResult:
    similarity: float
    matched: bool


def _as_vector(vector):
    arr = np.asarray(vector, dtype=np.float64)
    if arr.ndim != 1 or arr.size == 0:
        raise InvalidInputError(f"特征必须是非空一维向量, 实际形状: {arr.shape}")
    if not np.isfinite(arr).all():
        raise InvalidInputError("特征中包含 NaN 或无穷大")
    return arr


def normalize(vector):
    """
    输入: 特征向量
    输出: 除以欧氏范数后的向量；范数为 0 时原样返回
    """
    arr = np.asarray(vector, dtype=np.float64)
    magnitude = np.sqrt(np.sum(arr * arr))
    if magnitude == 0:
        return arr
    return arr / magnitude


def cosine_similarity(a, b):
    """
    先分别归一化，再求逐元素乘积之和
    长度不一致时抛出 InvalidInputError，不做截断
    """
    a = _as_vector(a)
    b = _as_vector(b)
    if a.shape[0] != b.shape[0]:
        raise InvalidInputError(f"特征长度不一致: {a.shape[0]} != {b.shape[0]}")
    # 舍入误差可能略超出 [-1, 1]
    return float(np.clip(np.dot(normalize(a), normalize(b)), -1.0, 1.0))


def is_match(a, b, threshold=config.MATCH_THRESHOLD):
    # 严格大于，等于阈值不算匹配
    return cosine_similarity(a, b) > threshold


class FaceMatcher:
    def __init__(self, threshold=None):
        self.threshold = config.MATCH_THRESHOLD if threshold is None else float(threshold)

    def match(self, feature, reference):
        """
        feature: 当前采集的人脸特征
        reference: 数据库中保存的参考特征
        输出: MatchResult(similarity, matched)
        """
        sim = cosine_similarity(feature, reference)
        matched = sim > self.threshold
        logger.debug("similarity=%.4f threshold=%.2f matched=%s", sim, self.threshold, matched)
        return MatchResult(similarity=sim, matched=matched)
