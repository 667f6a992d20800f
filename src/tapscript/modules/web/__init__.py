"""
Web API模块
"""
from fastapi import FastAPI
from .routers import license, runner, scripts


def register_routers(app: FastAPI):
    """注册所有路由"""
    app.include_router(scripts.router)
    app.include_router(runner.router)
    app.include_router(license.router)


__all__ = ["register_routers"]
