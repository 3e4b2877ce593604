# notifiers/telegram.py
from typing import Optional

from telegram import Bot
from telegram.constants import ParseMode
from telegram.error import TelegramError

from core.errors import AlertDispatchError
from models.signal import SignalSnapshot
from notifiers.base import BaseNotifier


class TelegramNotifier(BaseNotifier):
    """Posts alerts straight to a Telegram chat through the Bot API."""

    def __init__(self, token: str, chat_id: str, bot: Optional[Bot] = None):
        self.chat_id = chat_id
        self.bot = bot or Bot(token=token)
        self._ready = False

    async def send(self, text: str, snapshot: SignalSnapshot) -> bool:
        try:
            if not self._ready:
                await self.bot.initialize()
                self._ready = True
            await self.bot.send_message(
                chat_id=self.chat_id, text=text, parse_mode=ParseMode.MARKDOWN
            )
        except TelegramError as exc:
            raise AlertDispatchError(f"Telegram send failed: {exc}") from exc
        return True

    async def close(self) -> None:
        if self._ready:
            await self.bot.shutdown()
            self._ready = False
