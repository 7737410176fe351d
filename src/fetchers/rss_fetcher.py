"""
rss_fetcher.py - RSS / Atom 订阅源采集器
requests 下载，feedparser 解析
"""
import logging
from typing import Optional

import feedparser
import requests

from src.errors import FeedFetchError
from .base_fetcher import BaseFetcher, FeedItem

logger = logging.getLogger(__name__)

USER_AGENT = "rss-telegram-bot/1.0"


class RSSFetcher(BaseFetcher):
    """RSS / Atom 订阅源采集器"""

    def fetch(self, feed_url: str) -> list[FeedItem]:
        try:
            resp = requests.get(
                feed_url, headers={"User-Agent": USER_AGENT}, timeout=self.timeout
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            raise FeedFetchError(feed_url, f"订阅源请求失败: {e}") from e

        feed = feedparser.parse(resp.content)
        # 识别不出订阅源格式才算失败，不规范（bozo）的文档照常使用
        if not feed.entries and not feed.get("version"):
            raise FeedFetchError(
                feed_url, f"订阅源解析失败: {feed.get('bozo_exception', '未知格式')}"
            )

        items = [
            FeedItem(
                link=self._text(entry, "link"),
                title=self._text(entry, "title"),
                pub_date=self._text(entry, "published") or self._text(entry, "updated"),
                author=self._text(entry, "author"),
            )
            for entry in feed.entries
        ]
        logger.debug(f"订阅源 {feed_url} 解析出 {len(items)} 条")
        return items

    def _text(self, entry, key: str) -> Optional[str]:
        """取条目字段，空字符串视为缺失"""
        value = entry.get(key)
        if not value:
            return None
        return value.strip() or None
