from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from typing import Dict, Any

class ResultsExtractionException(HTTPException):
    """
    Raised when an uploaded results document cannot be accepted or read
    """
    def __init__(self, status_code: int, detail: Any = None, headers: Dict[str, str] = None):
        super().__init__(status_code=status_code, detail=detail, headers=headers)

async def results_exception_handler(request: Request, exc: ResultsExtractionException):
    """
    Handler for ResultsExtractionException
    """
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail, "status_code": exc.status_code}
    )

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handler for RequestValidationError
    """
    return JSONResponse(
        status_code=422,
        content={"detail": exc.errors(), "status_code": 422}
    )
