import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lambdamap import __version__
from lambdamap.api.routes import router
from lambdamap.config import LOG_LEVEL, PORT
from lambdamap.logging_setup import setup_logging

setup_logging(LOG_LEVEL)

logger = structlog.get_logger(__name__)

app = FastAPI(
    title="Lambda Topology Map",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)

app.include_router(router)


def run_server(host: str = "0.0.0.0", port: int = PORT, reload: bool = False) -> None:
    logger.info("starting_server", host=host, port=port)
    uvicorn.run(
        "lambdamap.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=LOG_LEVEL.lower(),
    )
