import uvicorn
from mes.core.config import settings


def main():
    """Serve the MES API; set RELOAD=true for auto-reload while developing."""
    uvicorn.run(
        "mes.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.RELOAD,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
