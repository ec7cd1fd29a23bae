"""
Sehat Safe - Prescription Scanning Service

Turns uploaded prescription scans and PDFs into structured records:
- Image normalization for OCR
- Tesseract OCR / PDF text-layer extraction
- Doctor, diagnosis and medicine line classification
- Fuzzy medicine name matching and dosage/frequency/duration extraction
- Best-effort persistence with a printable clinical record
"""
import logging
from datetime import datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from rxscan.config import settings
from rxscan.database import db_manager, init_db
from rxscan.api import prescriptions
from rxscan.services.medicine_vocabulary import default_vocabulary
from rxscan.services.prescription_processor import get_prescription_processor

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    description="""
    Prescription extraction pipeline:

    * **Upload** - prescription image or PDF
    * **OCR** - Tesseract on a normalized raster, or the PDF text layer
    * **Extraction** - doctor name, diagnosis, medicines with dosage, frequency and duration
    * **Records** - stored prescriptions with a generated clinical record PDF
    """,
    version=settings.VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(prescriptions.router, prefix="/api")

settings.UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
app.mount(settings.UPLOAD_URL_PREFIX, StaticFiles(directory=str(settings.UPLOAD_DIR)), name="uploads")


@app.on_event("startup")
async def startup_event():
    """Initialize database on startup"""
    logger.info(f"Starting {settings.APP_NAME} {settings.VERSION}...")
    try:
        init_db()
    except Exception as e:
        # Uploads are still analyzed without a database; records are just not kept
        logger.error(f"Database initialization failed: {e}")
    logger.info(f"Medicine vocabulary: {default_vocabulary!r}")
    logger.info(f"Upload directory: {settings.UPLOAD_DIR}")
    logger.info("API documentation available at /api/docs")


@app.on_event("shutdown")
async def shutdown_event():
    get_prescription_processor().shutdown()


@app.get("/api/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat(),
        "database": "connected" if db_manager.is_initialized else "unavailable",
        "message": "Server is healthy"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
