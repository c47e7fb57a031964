import uvicorn

from app.core.config import settings

if __name__ == "__main__":
    # Tables are created by the application lifespan on startup
    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.RELOAD and settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
        workers=1,
    )
