"""Standardized API Response Schemas"""

from typing import Generic, TypeVar
from pydantic import BaseModel


T = TypeVar('T')


class SuccessResponse(BaseModel, Generic[T]):
    """
    Standard success response envelope.

    Example:
        {
            "success": true,
            "data": {"id": "...", "bill_number": "B1A2B3C4D-1700000000-9F3E21", ...},
            "message": "Bill created successfully"
        }
    """
    success: bool = True
    data: T
    message: str = "Operation successful"


class ErrorDetail(BaseModel):
    """Stable error code plus a human-readable message"""
    code: str
    message: str


class ErrorResponse(BaseModel):
    """
    Standard error response envelope.

    Example:
        {
            "success": false,
            "error": {
                "code": "SPLIT_DOES_NOT_BALANCE",
                "message": "Split amounts total 95.00 but bill total is 100.00 (shortfall of 5.00)"
            }
        }
    """
    success: bool = False
    error: ErrorDetail
