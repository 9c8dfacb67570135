import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mes.api import equipment, materials, production, products, quality, users
from mes.core.config import settings
from mes.core.exceptions import MESError
from mes.core.init_db import init_db
import mes.models  # Implicitly registers models

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="MES System API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(MESError)
async def mes_error_handler(request: Request, exc: MESError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.code},
    )


@app.on_event("startup")
async def startup():
    await init_db()
    logger.info("MES API started")


app.include_router(users.router)
app.include_router(products.router)
app.include_router(production.router)
app.include_router(materials.router)
app.include_router(quality.router)
app.include_router(equipment.router)


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
