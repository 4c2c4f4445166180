# hornschunck_flow/core/backends.py

from typing import Dict, Any

from .base import Backend
from .errors import InvalidArgument

# 导入具体的后端实现以便工厂函数可以使用它们
from .cpu_backend import CPUBackend
from .numba_backend import NumbaBackend

backend_registry = {
    'numba': NumbaBackend,
    'numpy': CPUBackend,
}

def get_backend(params: Dict[str, Any] = None) -> Backend:
    """
    后端工厂函数。
    根据 params['backend'] 创建并返回一个具体的后端实例（默认 numba）。
    """
    params = params or {}
    name = params.get('backend', 'numba')
    if name not in backend_registry:
        raise InvalidArgument(f"错误: 后端 '{name}' 不存在。可用: {list(backend_registry)}")
    backend = backend_registry[name](params)
    backend.setup_computation()
    return backend
