import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from dal.screenshot_dal import ScreenshotDAL
from models.errors import CorruptStoreError, ScreenshotNotesError
from routes.data_route import router as data_router
from routes.gallery_ws import router as gallery_ws_router
from routes.screenshot_route import router as screenshot_router
from services.collection_store import CollectionStore
from services.ingestion import IngestionPipeline
from utils.app_config import APP_DESCRIPTION, APP_NAME, APP_VERSION, AppConfig
from utils.storage_init import StorageInitializer

BASE_DIR = Path(__file__).resolve().parent
PUBLIC_DIR = BASE_DIR / "public"

load_dotenv()  # Load environment variables from .env file if present

LOGGER = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan manager to initialize:
      - the data and asset directories (created on first run)
      - the collection store, loaded from <data_dir>/screenshots.json
      - the ingestion pipeline writing into <assets_dir>/screenshots
    and attach them to `app.state`.
    """
    config: AppConfig = app.state.config
    storage = app.state.storage

    store = CollectionStore(ScreenshotDAL(storage.screenshots_file), autosave_delay=config.autosave_delay)
    try:
        await store.load()
    except CorruptStoreError as exc:
        # Keep serving; saves stay blocked until the file is replaced or cleared.
        LOGGER.error("Could not load %s: %s", storage.screenshots_file, exc.message)

    app.state.store = store
    app.state.pipeline = IngestionPipeline(store, storage.screenshots_dir, max_bytes=config.max_upload_bytes)
    LOGGER.info("Data directory: %s", storage.data_dir)
    LOGGER.info("Screenshots directory: %s", storage.screenshots_dir)

    try:
        yield
    finally:
        try:
            await store.close()
        except ScreenshotNotesError as exc:
            LOGGER.error("Unsaved screenshot edits were lost on shutdown: %s", exc.message)


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    """
    Create and configure the FastAPI application instance.
    """
    config = config or AppConfig.from_env()
    storage = StorageInitializer(config)
    # Static mounts need the directories to exist before the app starts.
    storage.ensure_directories()

    app = FastAPI(title=APP_NAME, description=APP_DESCRIPTION, version=APP_VERSION, lifespan=lifespan)
    app.state.config = config
    app.state.storage = storage
    app.state.dialogs = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.mount("/assets", StaticFiles(directory=storage.assets_dir), name="assets")
    app.mount("/data", StaticFiles(directory=storage.data_dir), name="data")
    if PUBLIC_DIR.exists():
        app.mount("/public", StaticFiles(directory=PUBLIC_DIR), name="public")

    @app.get("/", include_in_schema=False)
    async def serve_index():
        """
        Serve the gallery page from the public directory.
        """
        index_path = PUBLIC_DIR / "index.html"
        if not index_path.exists():
            raise HTTPException(status_code=404, detail="Frontend not found")
        return FileResponse(index_path)

    # Register application routers
    app.include_router(screenshot_router)
    app.include_router(data_router)
    app.include_router(gallery_ws_router)

    return app


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


if __name__ == "__main__":
    import uvicorn

    settings = AppConfig.from_env()
    configure_logging(settings.log_level)
    uvicorn.run(create_app(settings), host="127.0.0.1", port=settings.port)
