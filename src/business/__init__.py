"""
Business Layer - 业务模块层

层级绩效分析的业务逻辑层，包含：
- config: 配置管理（阈值、贡献度策略、相关性参数）
- recommendation: 规则驱动的优化建议
"""
