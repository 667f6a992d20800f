"""
主程序入口
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .core.logger import logger
from .core.config import settings
from .core.thread_pool import shutdown_pools
from .modules.executor.service import script_service
from .modules.web import register_routers

# 创建FastAPI应用
app = FastAPI(
    title="tapscript",
    description="屏幕脚本录制回放服务",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:9000",
        "http://127.0.0.1:9000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_routers(app)


@app.on_event("startup")
async def startup():
    """应用启动事件"""
    logger.info("应用启动中...")
    status = script_service.license.status()
    if not status["valid"]:
        logger.warning("授权无效或未配置，脚本将无法执行")
    logger.info(f"应用启动完成，监听 {settings.api_host}:{settings.api_port}")


@app.on_event("shutdown")
async def shutdown():
    """应用关闭事件"""
    logger.info("应用关闭中...")
    script_service.shutdown()
    shutdown_pools()
    logger.info("应用关闭完成")


@app.get("/health")
async def health():
    """健康检查"""
    return {
        "status": "healthy",
        "license_valid": script_service.license.is_valid(),
        "running": script_service.status()["running"],
    }
