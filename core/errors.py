# hornschunck_flow/core/errors.py


class FlowError(Exception):
    """光流核心的异常基类。"""


class InvalidArgument(FlowError, ValueError):
    """参数不合法：alpha/迭代次数非正、输入边界不一致、通道数不符等。"""


class OutOfBounds(FlowError, IndexError):
    """访问超出缓冲区声明的边界（属于调用方的寻址错误）。"""
