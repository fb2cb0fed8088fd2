# backend/app/core/input_validation.py
"""
Input validation and sanitization
Prevents markup injection and malformed identifiers
"""

import re
from typing import Annotated, Optional

import bleach
from fastapi import Path, Query
from pydantic import AfterValidator

from app.core.constants import IDENTIFIER_PATTERN


def sanitize_text(value: Optional[str]) -> Optional[str]:
    """Strip every HTML tag and null byte from free text"""
    if value is None:
        return None
    clean = bleach.clean(value, tags=[], attributes={}, strip=True)
    return clean.replace('\x00', '').strip()


# Free text submitted by unauthenticated callers
SanitizedStr = Annotated[str, AfterValidator(sanitize_text)]


class InputValidator:
    """Centralized input validation"""

    PATTERNS = {
        'domain': re.compile(r'^(?:[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?\.)+[a-z0-9][a-z0-9-]{0,61}[a-z0-9]$'),
    }

    @staticmethod
    def validate_domain(domain: str) -> bool:
        return bool(InputValidator.PATTERNS['domain'].match(domain.lower()))


# Path and query identifiers; a mismatch surfaces as INVALID_PARAMETER_FORMAT
IdPath = Annotated[str, Path(pattern=IDENTIFIER_PATTERN)]
OptionalIdQuery = Annotated[Optional[str], Query(pattern=IDENTIFIER_PATTERN)]
