# pc28/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pc28.core.config import settings
from pc28.db.session import AsyncSessionLocal

from pc28.routers.lottery import router as lottery_router
from pc28.routers.bets import router as bets_router
from pc28.routers.admin import router as admin_router
import logging, sys

# 启动相关
from pc28.services.context import build_context
from pc28.tasks.scheduler import start_scheduler, shutdown_scheduler
from pc28.services.bootstrap_service import init_db, warmup_results_from_db

logging.basicConfig(
    level=logging.WARNING,  # 根日志级别
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

# 静音/降噪具体 logger
logging.getLogger("uvicorn").setLevel(logging.WARNING)
logging.getLogger("uvicorn.error").setLevel(logging.WARNING)
logging.getLogger("uvicorn.access").setLevel(logging.CRITICAL)  # 彻底关掉访问日志
logging.getLogger("httpx").setLevel(logging.WARNING)

logging.getLogger("apscheduler").setLevel(logging.ERROR)        # 只保留错误，不要 WARNING

# 保留结算与轮询日志
logging.getLogger("pc28.tasks.settlement").setLevel(logging.INFO)
logging.getLogger("pc28.tasks.scheduler").setLevel(logging.INFO)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    ctx = build_context(settings)
    app.state.ctx = ctx
    try:
        await init_db()
        async with AsyncSessionLocal() as session:
            # 预热最近 N 期开奖到内存
            await warmup_results_from_db(session, ctx)
    except Exception as e:
        # 报表库不可用时照常开奖结算
        logger.exception("history store unavailable: %s", e)
    # 启动调度器（轮询链上高度 + 开奖结算）
    start_scheduler(ctx)
    yield
    shutdown_scheduler()


app = FastAPI(
    title=settings.APP_NAME,
    version=getattr(settings, "APP_VERSION", "0.1.0"),
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],         # 需要限制域名时改这里
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(lottery_router)
app.include_router(bets_router)
app.include_router(admin_router)

# 健康检查
@app.get("/ping")
async def ping():
    return {"ok": True, "env": settings.APP_ENV}

# 也可以提供 kubernetes/监控用探针
@app.get("/healthz")
async def healthz():
    return {"status": "healthy"}
