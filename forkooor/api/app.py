"""
HTTP application: one router per protocol area, Swagger UI at /docs.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from forkooor import __version__
from forkooor.api.routers import (
    aave_v3,
    compound_v3,
    curveusd,
    fluid,
    liquity,
    liquity_v2,
    maker,
    morpho_blue,
    spark,
    utils,
)
from forkooor.logs import setup_logging

logger = logging.getLogger(__name__)

ROUTERS = [
    utils.router,
    aave_v3.router,
    spark.router,
    compound_v3.router,
    morpho_blue.router,
    liquity.router,
    liquity_v2.router,
    curveusd.router,
    maker.router,
    fluid.router,
]


def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(
        title="forkooor",
        version=__version__,
        description="DeFi position and automation tooling for Tenderly forks and virtual testnets",
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": jsonable_encoder(exc.errors())})

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"error": str(exc)})

    for router in ROUTERS:
        app.include_router(router)

    return app


app = create_app()
