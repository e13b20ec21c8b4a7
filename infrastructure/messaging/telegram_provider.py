import logging

import requests

log = logging.getLogger(__name__)


class TelegramProvider:
    def send_message(self, token: str, chat_id: str, message: str) -> tuple[bool, str]:
        """
        Sends a text message to the specified Telegram chat.
        Returns a tuple of (success_boolean, status_message).
        """
        if not token or not chat_id:
            return False, "Telegram bot token or chat ID is not configured."

        url = f"https://api.telegram.org/bot{token}/sendMessage"
        payload = {
            "chat_id": chat_id,
            "text": message,
            "parse_mode": "Markdown"
        }

        try:
            response = requests.post(url, json=payload, timeout=10)
        except requests.RequestException as e:
            log.warning("Telegram request failed: %s", e)
            return False, f"Network error: {e}"
        if response.status_code == 200:
            return True, "Reminder sent."
        return False, f"Telegram error: {response.text}"
