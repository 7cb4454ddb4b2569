from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging
from vend_analytics.core.config import settings
from vend_analytics.core.db import init_db
import vend_analytics.models  # ensure models are registered
from vend_analytics.routers.health import router as health_router
from vend_analytics.routers.accounts import router as accounts_router
from vend_analytics.routers.uploads import router as uploads_router
from vend_analytics.routers.dashboard import router as dashboard_router
from vend_analytics.routers.fleet import router as fleet_router
from vend_analytics.routers.sales import router as sales_router

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    await init_db()
    yield
    # Shutdown

app = FastAPI(title="Vending Sales Analytics API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(health_router, prefix="")
app.include_router(accounts_router, prefix="")
app.include_router(uploads_router, prefix="")
app.include_router(dashboard_router, prefix="")
app.include_router(fleet_router, prefix="")
app.include_router(sales_router, prefix="")
