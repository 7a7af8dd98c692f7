from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from pathlib import Path
import logging
import os

# Only load .env file if not running on Heroku
if not os.getenv("DYNO"):  # DYNO is a Heroku-specific environment variable
    from dotenv import load_dotenv
    load_dotenv()

from config.settings import settings
from core.log_config import configure_logging
from api import image_edit, editor

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger("image_editor")

if os.getenv("DYNO"):
    logger.info("☁️ Running on Heroku: Using environment variables")
else:
    logger.info("🔧 Local development: Loaded .env file")

if not settings.gemini_configured:
    # Start anyway; edit requests will fail until a key is provided
    logger.error("❌ GEMINI_API_KEY environment variable not set. Image editing will not work.")

STATIC_DIR = Path(__file__).parent / "static"

app = FastAPI(title=settings.PROJECT_NAME, version=settings.VERSION, debug=settings.DEBUG)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(image_edit.router, prefix=settings.API_V1_STR)
app.include_router(editor.router, prefix=settings.API_V1_STR)

@app.get("/", include_in_schema=False)
async def index():
    return FileResponse(STATIC_DIR / "index.html", media_type="text/html")

@app.get("/health")
async def health_check():
    return {"status": "healthy"}

@app.get("/api/health")
async def api_health_check():
    return {
        "status": "healthy",
        "service": "api",
        "gemini_configured": settings.gemini_configured
    }

if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", settings.PORT))
    uvicorn.run(app, host=settings.HOST, port=port)
