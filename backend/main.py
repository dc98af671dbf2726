import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import editing_router, system_router
from cutengine.config import settings
from cutengine.supervisor import ProcessRegistry, ProcessSupervisor

logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI):
    registry = ProcessRegistry()
    application.state.registry = registry
    application.state.supervisor = ProcessSupervisor(registry)
    logger.info("Process registry initialized")
    yield
    stopped = registry.terminate_all()
    logger.info(f"Shutdown: terminated {stopped} encoder processes")


app = FastAPI(title=settings.app_title, lifespan=lifespan)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(system_router)
app.include_router(editing_router)


if __name__ == "__main__":
    uvicorn.run("main:app", host=settings.host, port=settings.port, reload=settings.debug)
