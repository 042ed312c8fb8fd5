import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from receipt_ocr.config import settings

logging.basicConfig(level=settings.LOG_LEVEL)

app = FastAPI(
    title=f"{settings.APP_NAME} API",
    description="Receipt OCR text interpretation",
    version="0.1.0"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    return {
        "message": f"{settings.APP_NAME} API",
        "version": "0.1.0",
        "status": "running"
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy"}

# Import routers
from receipt_ocr.routers import receipts

# Include routers
app.include_router(receipts.router)
