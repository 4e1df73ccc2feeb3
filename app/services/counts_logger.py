import logging
from uuid import UUID
from app.logging_config import COUNTS_LOGGER_NAME

counts_logger = logging.getLogger(COUNTS_LOGGER_NAME)

def log_count_recompute(category_id: UUID, direct: int, subtree: int, trigger: str, changed: bool = True):
    counts_logger.info(
        "CATEGORY_COUNTS_RECOMPUTED",
        extra={
            "category_id": str(category_id),
            "direct_product_count": direct,
            "subtree_product_count": subtree,
            "trigger": trigger,
            "changed": changed
        }
    )
