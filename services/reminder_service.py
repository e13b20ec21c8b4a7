"""Payment reminders pushed to the office Telegram chat."""

import logging
from dataclasses import dataclass
from typing import Optional

from infrastructure.messaging.telegram_provider import TelegramProvider
from infrastructure.settings import get_secret
from services import payment_service
from services.data_context import DataContext

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReminderResult:
    sent: bool
    message: str
    client_count: int = 0


def build_reminder_text(summary) -> str:
    lines = ["*Equal Access: pending payments*", ""]
    for row in summary.itertuples(index=False):
        lines.append(
            f"- {row.client_name}: {row.pending_count} pending, "
            f"{payment_service.format_currency(row.pending_amount)}"
        )
    total = float(summary["pending_amount"].sum())
    lines.append("")
    lines.append(f"Total outstanding: {payment_service.format_currency(total)}")
    return "\n".join(lines)


def send_payment_reminders(
    ctx: DataContext,
    provider: Optional[TelegramProvider] = None,
    token: Optional[str] = None,
    chat_id: Optional[str] = None,
) -> ReminderResult:
    summary = payment_service.pending_payment_summary(ctx)
    if summary.empty:
        ctx.notifier.success("No pending payments", "There is nothing to remind about.")
        return ReminderResult(sent=False, message="No pending payments.")

    provider = provider or TelegramProvider()
    token = token or get_secret("TG_BOT_TOKEN")
    chat_id = chat_id or get_secret("TG_CHAT_ID")
    ok, status = provider.send_message(token, chat_id, build_reminder_text(summary))
    if ok:
        log.info("Payment reminder sent for %d clients", len(summary))
        ctx.notifier.success("Reminder sent", f"{len(summary)} clients with pending payments.")
    else:
        log.warning("Payment reminder not sent: %s", status)
        ctx.notifier.error("Reminder not sent", status)
    return ReminderResult(sent=ok, message=status, client_count=len(summary))
