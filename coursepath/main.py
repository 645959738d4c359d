import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv


# Settings read the environment once, so .env has to be loaded before any coursepath import
PROJECT_DIR = Path(__file__).parent.parent
load_dotenv(PROJECT_DIR / ".env")

from fastapi import FastAPI  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402
from fastapi.middleware.gzip import GZipMiddleware  # noqa: E402
from sqlalchemy.exc import OperationalError  # noqa: E402

from .config.logging import setup_logging  # noqa: E402
from .config.settings import get_settings  # noqa: E402
from .courses.router import router as courses_router  # noqa: E402
from .database.engine import engine  # noqa: E402
from .database.init import init_database  # noqa: E402
from .middleware.error_handlers import install_error_handlers  # noqa: E402
from .progress.router import router as progress_router  # noqa: E402
from .sessions.router import router as sessions_router  # noqa: E402


setup_logging()
logger = logging.getLogger(__name__)

DB_CONNECT_ATTEMPTS = 5


async def wait_for_database(attempts: int = DB_CONNECT_ATTEMPTS) -> None:
    """Create missing tables, retrying while the database is still coming up."""
    delay = 1.0
    for attempt in range(1, attempts + 1):
        try:
            await init_database(engine)
        except OperationalError:
            if attempt == attempts:
                logger.exception(f"Database unreachable after {attempts} attempts")
                raise
            logger.warning(f"Database not ready (attempt {attempt}/{attempts}), retrying in {delay:.0f}s")
            await asyncio.sleep(delay)
            delay *= 2
        else:
            logger.info("Database ready")
            return


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    await wait_for_database()
    try:
        yield
    finally:
        await engine.dispose()
        logger.info("Database engine disposed")


def create_app() -> FastAPI:
    """Build the API: middleware, error handlers and the progress, course and session routers."""
    settings = get_settings()

    app = FastAPI(
        title="Coursepath API",
        description="AI-generated courses with lesson progress tracking and block-based learning sessions",
        version="0.1.0",
        debug=settings.DEBUG,
        # Tests create their own schema on a throwaway engine
        lifespan=None if settings.ENVIRONMENT == "test" else lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    install_error_handlers(app)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    for router in (progress_router, courses_router, sessions_router):
        app.include_router(router)

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    from coursepath.config import env

    uvicorn.run(app, host=env("API_HOST", "127.0.0.1"), port=int(env("API_PORT", "8080")))
