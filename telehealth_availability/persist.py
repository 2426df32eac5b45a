import json
import logging
import os
from datetime import datetime, timezone
from typing import List

from telehealth_availability import config
from telehealth_availability.models import DaySchedule

logger = logging.getLogger(__name__)


def ensure_data_dir():
    """Ensures the data directory exists."""
    if not os.path.exists(config.DATA_DIR):
        os.makedirs(config.DATA_DIR)


def save_report(schedule: List[DaySchedule], week_offset: int):
    """Saves the visible week grid to a JSON file."""
    ensure_data_dir()
    try:
        data = {
            "last_updated": datetime.now(timezone.utc).isoformat(),
            "week_offset": week_offset,
            "days": [day.model_dump(mode="json") for day in schedule],
        }
        with open(config.REPORT_FILE, "w") as f:
            json.dump(data, f, indent=2)
        logger.info(f"Saved report to {config.REPORT_FILE}")
    except IOError as e:
        logger.error(f"Failed to save report: {e}")
