"""ID Generation Utilities"""
import uuid
from datetime import datetime, timezone


def generate_correlation_id() -> str:
    """
    Generate a correlation ID for request tracing

    Returns:
        Correlation ID string with timestamp prefix

    Examples:
        >>> generate_correlation_id()
        'COR-20250820120000-a1b2c3d4'
    """
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    unique_part = uuid.uuid4().hex[:8]
    return f"COR-{timestamp}-{unique_part}"
