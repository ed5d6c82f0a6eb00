from datetime import datetime
from typing import Annotated
from pydantic import BeforeValidator

# ObjectId values leave the store as bson types; responses carry their hex string
ObjectIdStr = Annotated[str, BeforeValidator(str)]


def format_timestamp(value: datetime) -> str:
    """Render a timestamp like 'Jan 05, 2024 at 03:07 pm'."""
    meridiem = 'am' if value.hour < 12 else 'pm'
    return f"{value:%b %d, %Y at %I:%M} {meridiem}"
