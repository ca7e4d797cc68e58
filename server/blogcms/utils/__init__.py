"""
工具模块

- logger: 日志配置
- storage: 本地文件存储
- images: 图片缩放 / 编码
"""
