# naga_health/endpoints/health.py
import os
from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from naga_health.services.triage_client import validate_api_key

router = APIRouter(prefix="/api/health", tags=["Health"])


def _environment() -> str:
    return os.getenv("ENVIRONMENT", "development")


@router.get("")
def health_check():
    return {
        "success": True,
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "configuration": {
            "geminiApiKeyConfigured": bool(os.getenv("GEMINI_API_KEY")),
            "environment": _environment(),
        },
    }


@router.get("/validate-key")
def validate_key():
    if _environment() == "production":
        return JSONResponse(
            status_code=403,
            content={
                "success": False,
                "error": "This endpoint is not available in production",
                "errorType": "FORBIDDEN",
            },
        )

    validation = validate_api_key()
    return JSONResponse(
        status_code=200 if validation["isValid"] else 400,
        content={
            "success": validation["isValid"],
            "message": validation["message"],
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )
