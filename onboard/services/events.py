import logging
from typing import Any, Dict

logger = logging.getLogger(__name__)


async def emit_event(name: str, payload: Dict[str, Any]):
    """Publish a domain event. For now events are only written to the log."""
    logger.info("event=%s payload=%s", name, payload)
