import argparse
import logging
import uvicorn
from fastapi import FastAPI
from contextlib import asynccontextmanager

import sys
from pathlib import Path

# Add project root to path for package imports
base_dir = Path(__file__).parent
sys.path.insert(0, str(base_dir))

from db.database import init_db
from config import load_config
from routes import chapters, students, halaqat, progress, targets, stats  # Import routers
from utils.lines import init_line_table

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def startup() -> None:
    """Load config, create the database and load the verse line table."""
    config = load_config()  # Ensures config exists
    configure_logging(config["logging"]["level"])
    init_db()
    table = init_line_table(config["lines"]["data_path"])
    if table.missing_verses:
        logger.info("Line counts for %d verses use the default estimate", table.missing_verses)


# First-run init
@asynccontextmanager
async def lifespan(app: FastAPI):
    startup()
    yield


app = FastAPI(
    title="HifzTrack",
    description="Quran memorization tracking for halaqat: positions, daily targets and streaks",
    lifespan=lifespan,
)

# Include routers
app.include_router(chapters.router, prefix="/chapters", tags=["chapters"])
app.include_router(students.router, prefix="/students", tags=["students"])
app.include_router(halaqat.router, tags=["halaqat"])  # /halaqat and /teachers
app.include_router(progress.router, prefix="/progress", tags=["progress"])
app.include_router(targets.router, prefix="/targets", tags=["targets"])
app.include_router(stats.router, prefix="/stats", tags=["stats"])


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="HifzTrack API")
    parser.add_argument("--init", action="store_true", help="Initialize DB and config")
    parser.add_argument("--dev", action="store_true", help="Run in dev mode with reload")
    parser.add_argument("--port", type=int, default=8000, help="Port to listen on")
    args = parser.parse_args()
    if args.init:
        startup()
        print("DB initialized and config copied to ~/.hifztrack/")
        sys.exit(0)
    uvicorn.run("main:app", host="127.0.0.1", port=args.port, reload=args.dev, log_level="info")
