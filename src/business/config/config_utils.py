"""
Config Utilities - 配置工具函数

所有配置模块共享的工具函数。
"""

from typing import Any


class ConfigError(ValueError):
    """配置非法（类型错误、取值越界、权重无效等）"""


def merge_overrides(
    base: dict[str, Any],
    overrides: dict[str, Any],
) -> dict[str, Any]:
    """递归深合并覆盖配置到基础配置

    用于调用方临时覆盖阈值等场景：将覆盖字典递归合并到基础字典中。
    - 嵌套 dict：递归合并
    - 其他类型：直接覆盖

    Args:
        base: 基础配置字典
        overrides: 覆盖字典

    Returns:
        合并后的配置字典（不修改原字典）
    """
    result = base.copy()
    for key, value in overrides.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_overrides(result[key], value)
        else:
            result[key] = value
    return result


def as_float(section: str, key: str, value: Any) -> float:
    """把 YAML 值转为 float，失败时抛出 ConfigError"""
    if isinstance(value, bool):
        raise ConfigError(f"{section}.{key}: expected number, got bool")
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{section}.{key}: expected number, got {value!r}") from e


def as_int(section: str, key: str, value: Any) -> int:
    """把 YAML 值转为 int，失败时抛出 ConfigError"""
    number = as_float(section, key, value)
    if not number.is_integer():
        raise ConfigError(f"{section}.{key}: expected integer, got {value!r}")
    return int(number)
