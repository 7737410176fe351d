"""
telegram_client.py - Telegram Bot API 客户端
通过 sendMessage 接口推送消息到频道 / 群组 / 私聊
"""
import logging
from typing import Optional

import requests

from src.errors import DeliveryError

logger = logging.getLogger(__name__)

API_BASE = "https://api.telegram.org"


class TelegramClient:
    """Telegram Bot API 客户端（基于 requests）"""

    def __init__(self, token: str, timeout: float = 15, api_base: str = API_BASE):
        self._token = token
        self.timeout = timeout
        self.api_base = api_base.rstrip("/")

    def send_message(self, chat_id: str, text: str, parse_mode: Optional[str] = None) -> dict:
        """
        发送一条消息
        :param chat_id: 目标会话，数字 ID 或 "@频道名"
        :param parse_mode: "HTML" 等；运维通知用纯文本
        :return: Bot API 返回的 Message 对象
        :raises DeliveryError: 网络错误或 Bot API 返回失败
        """
        payload = {"chat_id": chat_id, "text": text}
        if parse_mode:
            payload["parse_mode"] = parse_mode

        try:
            resp = requests.post(
                f"{self.api_base}/bot{self._token}/sendMessage",
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            # 异常信息里可能带有含 token 的 URL，只保留类型名
            raise DeliveryError(chat_id, f"网络错误 {type(e).__name__}") from e

        try:
            data = resp.json()
        except ValueError:
            data = {}

        if resp.status_code != 200 or not data.get("ok"):
            description = data.get("description") or f"HTTP {resp.status_code}"
            raise DeliveryError(chat_id, description)

        logger.debug(f"消息已发送到 {chat_id}")
        return data.get("result", {})
