# src/i8080_tracer/__init__.py
"""
i8080-tracer: Intel 8080 命令セットエミュレータおよび逆アセンブラ
"""
__version__ = "0.1.0"
