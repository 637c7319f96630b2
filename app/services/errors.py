"""业务层异常，路由层负责转换为HTTP状态码"""


class NotFoundError(LookupError):
    """资源不存在 -> 404"""


class ConflictError(Exception):
    """资源冲突，例如重复的联系电话或语言名称 -> 409"""


class AuthenticationError(Exception):
    """认证失败 -> 401"""


class LanguageMismatchError(ValueError):
    """登录时选择的语言与注册语言不一致"""

    def __init__(self, correct_language: str):
        self.correct_language = correct_language
        super().__init__("所选语言与注册时的语言偏好不一致")
