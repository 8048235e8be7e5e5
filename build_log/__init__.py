"""
Build Log Dashboard - Android 系统镜像构建日志工具

从工作区的镜像产物和 Markdown 构建日志中加载构建记录，
编辑后保存为确定性的 Markdown，并导出 HTML / PDF。
"""

__version__ = "1.0.0"
