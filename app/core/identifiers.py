"""Random public identifiers for tables, bills, orders and line items"""

import secrets
import string
import time
import uuid
from typing import Optional
from uuid import UUID

from app.config import settings


TABLE_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_table_code(length: Optional[int] = None) -> str:
    """
    Generate a random guest-facing table code.

    Args:
        length: Length of the code (default: settings.TABLE_CODE_LENGTH)

    Returns:
        Random code drawn from [A-Z0-9]
    """
    length = length or settings.TABLE_CODE_LENGTH
    return ''.join(secrets.choice(TABLE_CODE_ALPHABET) for _ in range(length))


def business_tag(business_id: UUID) -> str:
    """Short, stable business prefix used in human-readable numbers"""
    return business_id.hex[:8].upper()


def generate_bill_number(business_id: UUID) -> str:
    """Bill number in the form B{business}-{unix timestamp}-{random hex}"""
    timestamp = int(time.time())
    return f"B{business_tag(business_id)}-{timestamp}-{secrets.token_hex(3).upper()}"


def generate_order_number(business_id: UUID) -> str:
    """Display-only order number; not unique"""
    timestamp = int(time.time())
    return f"O{business_tag(business_id)}-{timestamp % 10000:04d}"


def generate_item_id() -> str:
    return uuid.uuid4().hex
