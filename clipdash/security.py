"""
Security utilities: path traversal protection, slug and filename sanitization,
security event logging.
"""
import logging
import re
from pathlib import Path

security_logger = logging.getLogger('security')

# Dangerous patterns in filenames
DANGEROUS_PATTERNS = [
    r'\.\.', r'/', r'\\', r'\x00',  # Path traversal
    r'<', r'>', r':', r'"', r'\|', r'\?', r'\*'  # Windows special chars
]

SLUG_PATTERN = re.compile(r'[^a-zA-Z0-9_-]')


def validate_path_traversal(base_path: Path, requested_path: str) -> Path:
    """
    Validate that a file path doesn't escape the base directory.

    Args:
        base_path: The allowed base directory
        requested_path: The user-provided path/filename

    Returns:
        Safe resolved path

    Raises:
        ValueError: If path traversal detected
    """
    clean_path = requested_path.replace('..', '').replace('/', '').replace('\\', '')

    full_path = (base_path / clean_path).resolve()

    try:
        full_path.relative_to(base_path.resolve())
    except ValueError:
        security_logger.warning(f"Path traversal attempt: {requested_path}")
        raise ValueError("Invalid file path")

    return full_path


def sanitize_slug(slug: str) -> str:
    """Keep only letters, digits, '-' and '_' of a document slug."""
    return SLUG_PATTERN.sub('', slug or '')


def sanitize_filename(filename: str) -> str:
    """
    Sanitize a filename to prevent path traversal and injection.

    Args:
        filename: Original filename

    Returns:
        Safe filename
    """
    if not filename:
        return "unnamed_file"

    for pattern in DANGEROUS_PATTERNS:
        filename = re.sub(pattern, '', filename)

    filename = filename.strip('. \t\n\r')

    if len(filename) > 255:
        name, ext = filename[:200], filename[-50:] if '.' in filename else ''
        filename = name + ext

    return filename or "unnamed_file"


def log_security_event(event_type: str, details: dict):
    """Log a security-relevant event."""
    security_logger.warning(f"SECURITY_EVENT: {event_type} - {details}")
