import logging
from typing import List, Optional, Tuple

import requests

from telehealth_availability import config

logger = logging.getLogger(__name__)


class ConsoleNotifier:
    """Prints user-facing messages to stdout.

    `slot_label` names the grid cell a message is about, e.g. "Wed 2026-10-14 09:00".
    """

    def success(self, title: str, description: Optional[str] = None, slot_label: Optional[str] = None):
        text = f"{title} - {description}" if description else title
        if slot_label:
            text = f"{text} ({slot_label})"
        logger.info(text)
        print(f"[OK]    {text}")

    def error(self, message: str, slot_label: Optional[str] = None):
        text = f"{message} ({slot_label})" if slot_label else message
        logger.warning(text)
        print(f"[ERROR] {text}")


class RecordingNotifier:
    """Keeps messages in memory; handy for callers that render them later."""

    def __init__(self):
        self.messages: List[Tuple[str, str, Optional[str]]] = []

    def success(self, title: str, description: Optional[str] = None, slot_label: Optional[str] = None):
        self.messages.append(("success", description or title, slot_label))

    def error(self, message: str, slot_label: Optional[str] = None):
        self.messages.append(("error", message, slot_label))

    @property
    def errors(self) -> List[str]:
        return [text for kind, text, _ in self.messages if kind == "error"]

    @property
    def successes(self) -> List[str]:
        return [text for kind, text, _ in self.messages if kind == "success"]


class TelegramNotifier(ConsoleNotifier):
    """Prints like ConsoleNotifier and posts each slot change to a Telegram chat."""

    def __init__(self, token: Optional[str] = None, chat_id: Optional[str] = None):
        self.token = token or config.TELEGRAM_BOT_TOKEN
        self.chat_id = chat_id or config.TELEGRAM_CHAT_ID

    @staticmethod
    def format_message(ok: bool, text: str, slot_label: Optional[str] = None) -> str:
        header = f"🗓 *Availability* · {slot_label}" if slot_label else "🗓 *Availability*"
        return f"{header}\n{'✅' if ok else '⚠️'} {text}"

    def success(self, title: str, description: Optional[str] = None, slot_label: Optional[str] = None):
        super().success(title, description, slot_label)
        self._post(self.format_message(True, description or title, slot_label))

    def error(self, message: str, slot_label: Optional[str] = None):
        super().error(message, slot_label)
        self._post(self.format_message(False, message, slot_label))

    def _post(self, text: str):
        if not self.token or not self.chat_id:
            logger.warning("Telegram configuration missing. Skipping notification.")
            return
        try:
            response = requests.post(
                f"https://api.telegram.org/bot{self.token}/sendMessage",
                json={"chat_id": self.chat_id, "text": text, "parse_mode": "Markdown"},
                timeout=10,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to post availability update to Telegram: {e}")
