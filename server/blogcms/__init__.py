"""
BlogCMS Server

博客 / 学习平台内容管理后端
"""

__version__ = "0.1.0"
