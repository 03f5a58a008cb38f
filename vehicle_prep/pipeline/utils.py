# pipeline/utils.py
import logging
import time
import uuid


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def new_detection_id() -> str:
    return f"det_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"
