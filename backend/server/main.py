import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from server.api_router import api_router
from config.settings import CORS_ALLOW_ORIGINS, UVICORN_CONFIG
from infrastructure.bootstrap import bootstrap_core_ports
from server.api.rest.dependencies import shutdown_dependencies

bootstrap_core_ports()

# 初始化 FastAPI 应用
app = FastAPI(title="Mood Picks", description="情绪驱动的影视推荐与待看清单后端API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 添加路由
app.include_router(api_router)


@app.on_event("shutdown")
async def shutdown_event():
    """应用关闭时清理资源"""
    await shutdown_dependencies()


# 启动服务器
if __name__ == "__main__":
    uvicorn.run("server.main:app", **UVICORN_CONFIG)
