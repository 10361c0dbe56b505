import numpy as np

import config


class FeatureExtractor:
    def __init__(self, model_name=None, ctx_id=None):
        """
        ctx_id=-1 表示 CPU
        """
        # 延迟导入（较重的依赖）
        import insightface

        ctx_id = config.INSIGHTFACE_CTX_ID if ctx_id is None else ctx_id
        self.model = insightface.app.FaceAnalysis(
            name=model_name or config.EMBEDDING_MODEL,
            allowed_modules=["detection", "recognition"],
        )
        self.model.prepare(ctx_id=ctx_id)
        self.recognizer = self.model.models["recognition"]

    def extract(self, face_img):
        """
        输入: 已裁剪、翻转、缩放好的 BGR 人脸图像
        输出: 一维 float32 特征向量（未归一化，由 matcher 负责归一化）
        """
        if face_img is None or face_img.size == 0:
            return None
        feat = self.recognizer.get_feat(face_img)
        if feat is None or feat.size == 0:
            return None
        return np.asarray(feat, dtype=np.float32).ravel()
