#!/usr/bin/env python3
"""
语音录制数据采集平台 - FastAPI 主应用入口
Description: 提供用户注册登录、分句录音上传和管理后台的REST API
"""

import logging
import platform
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from app.config.settings import settings
from app.utils.logger import setup_logging
from app.utils.database import init_db, check_db_connection
from app.utils.helpers import format_timestamp
from app.api.routes import admin, feedback, languages, notifications, sessions, users

# 设置日志
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    应用生命周期管理
    - 启动时初始化数据库
    """
    logger.info("初始化语音录制数据采集平台...")
    if not settings.secret_key_configured:
        logger.warning("未配置SECRET_KEY，已使用随机密钥，服务重启后管理员需要重新登录")

    try:
        init_db()
        logger.info("数据库初始化完成")
    except Exception as e:
        logger.error(f"应用启动失败: {e}")
        raise

    logger.info("应用启动完成")
    yield
    logger.info("应用已安全关闭")

def create_application() -> FastAPI:
    """创建并配置FastAPI应用实例"""

    app = FastAPI(
        title=settings.APP_NAME,
        description="分句朗读录音的数据采集与管理系统",
        version=settings.APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    # 配置CORS中间件
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 全局异常处理
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request, exc):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail}
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request, exc):
        errors = exc.errors()
        message = errors[0].get("msg", "请求参数错误") if errors else "请求参数错误"
        return JSONResponse(
            status_code=400,
            content={"error": message}
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request, exc):
        logger.error(f"未处理的异常: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "内部服务器错误"}
        )

    # 注册API路由
    app.include_router(users.router, prefix="/api/v1/users", tags=["用户管理"])
    app.include_router(languages.router, prefix="/api/v1/languages", tags=["语言"])
    app.include_router(sessions.router, prefix="/api/v1/sessions", tags=["录音会话"])
    app.include_router(notifications.router, prefix="/api/v1/notifications", tags=["通知"])
    app.include_router(feedback.router, prefix="/api/v1/feedback", tags=["反馈"])
    app.include_router(admin.router, prefix="/api/v1/admin", tags=["管理后台"])

    return app

# 创建应用实例
app = create_application()

# 健康检查端点
@app.get("/")
async def root():
    """根端点 - 服务状态检查"""
    return {
        "status": "running",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": format_timestamp()
    }

@app.get("/health")
async def health_check():
    """健康检查端点"""
    db_status = check_db_connection()

    return {
        "status": "healthy" if db_status else "unhealthy",
        "database": "connected" if db_status else "disconnected",
        "storage_backend": settings.STORAGE_BACKEND,
        "timestamp": format_timestamp()
    }

@app.get("/api/v1/system/info")
async def system_info():
    """系统信息端点"""
    import psutil

    return {
        "python_version": platform.python_version(),
        "platform": platform.platform(),
        "cpu_usage": psutil.cpu_percent(),
        "memory_usage": psutil.virtual_memory().percent,
        "storage_backend": settings.STORAGE_BACKEND,
        "waveform_bars": settings.WAVEFORM_BARS,
        "access_code_length": settings.ACCESS_CODE_LENGTH,
    }

if __name__ == "__main__":
    """开发环境直接运行"""
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,  # 开发模式热重载
        log_level="info",
        timeout_keep_alive=5,
    )
