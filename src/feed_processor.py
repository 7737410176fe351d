"""
feed_processor.py - 单个订阅源的处理流程
加载缓存 → 抓取订阅源 → 逐条判重 → 推送新条目 → 保存缓存

失败隔离：
  - 缓存读取失败 / 订阅源抓取失败：本订阅源本轮中止（不保存缓存），通知运维
  - 条目无链接 / 链接无法规范化：跳过该条，通知运维
  - 单条推送失败：记录并通知运维，缓存中仍记为已推送，不回滚
  - 缓存保存失败：作为本订阅源的错误返回（已推送的条目下次可能重复推送）
  - 其他未预期的异常：记录堆栈，本订阅源本轮中止（不保存缓存），通知运维
任何情况都不抛出到调用方，其他订阅源不受影响。
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from src.cache.url_cache import UrlCache
from src.errors import (
    DeliveryError,
    FeedFetchError,
    StorageReadError,
    StorageWriteError,
    UrlNormalizationError,
)
from src.fetchers.base_fetcher import BaseFetcher, FeedItem
from src.processors.post_formatter import format_post
from src.settings import FeedConfig

logger = logging.getLogger(__name__)


@dataclass
class FeedResult:
    """单个订阅源一轮处理的结果"""
    feed_url: str
    chat_id: str
    new_items: int = 0          # 新条目（已尝试推送）
    known_items: int = 0        # 已推送过的条目
    skipped_items: int = 0      # 无链接或链接非法
    failed_deliveries: int = 0  # 推送失败
    error: Optional[str] = None  # 导致本轮中止或缓存未保存的错误

    @property
    def ok(self) -> bool:
        return self.error is None


class FeedProcessor:
    """订阅源处理器，采集器和发送端由调用方注入"""

    def __init__(self, fetcher: BaseFetcher, sender, owner_id: str, cache_dir="cache"):
        self.fetcher = fetcher
        self.sender = sender
        self.owner_id = owner_id
        self.cache_dir = Path(cache_dir)

    def process(self, feed: FeedConfig) -> FeedResult:
        logger.info(f"开始处理订阅源 {feed.url} -> {feed.chat_id}")
        result = FeedResult(feed_url=feed.url, chat_id=feed.chat_id)
        try:
            return self._run_cycle(feed, result)
        except Exception as e:
            # 未预期的异常只中止本订阅源，缓存不保存
            logger.exception(f"订阅源 {feed.url} 处理异常")
            return self._abort(result, f"未预期的错误 {type(e).__name__}: {e}")

    def _run_cycle(self, feed: FeedConfig, result: FeedResult) -> FeedResult:
        cache = UrlCache.for_feed(self.cache_dir, feed.chat_id, feed.url, feed.url_cache_size)

        try:
            cache.load()
            items = self.fetcher.fetch(feed.url)
        except (StorageReadError, FeedFetchError) as e:
            # 缓存读取失败时不按空缓存继续
            return self._abort(result, str(e))

        for item in items:
            self._handle_item(feed, cache, item, result)

        try:
            cache.save()
        except StorageWriteError as e:
            logger.error(f"订阅源 {feed.url} 缓存保存失败: {e}")
            self._notify_owner(f"订阅源 {feed.url} 缓存保存失败，已推送条目下次可能重复: {e}")
            result.error = str(e)
            return result

        logger.info(
            f"订阅源 {feed.url} 处理完成：新 {result.new_items} 条，已知 {result.known_items} 条，"
            f"跳过 {result.skipped_items} 条，推送失败 {result.failed_deliveries} 条"
        )
        return result

    def _handle_item(self, feed: FeedConfig, cache: UrlCache, item: FeedItem,
                     result: FeedResult) -> None:
        if not item.link:
            result.skipped_items += 1
            logger.warning(f"订阅源 {feed.url} 中有条目缺少链接: {item}")
            self._notify_owner(f"订阅源 {feed.url} 中有条目缺少链接: {item}")
            return

        try:
            is_new = cache.insert(item.link)
        except UrlNormalizationError as e:
            result.skipped_items += 1
            logger.warning(f"订阅源 {feed.url} 条目链接非法 '{item.link}': {e}")
            self._notify_owner(f"订阅源 {feed.url} 条目链接非法 '{item.link}': {e}")
            return

        if not is_new:
            result.known_items += 1
            logger.debug(f"已推送过：{item.link}")
            return

        result.new_items += 1
        try:
            self.sender.send_message(feed.chat_id, format_post(item, feed.post_format),
                                     parse_mode="HTML")
        except DeliveryError as e:
            # 缓存里已记为已推送，下一轮不会重试这一条
            result.failed_deliveries += 1
            logger.error(f"推送失败 {item.link}: {e}")
            self._notify_owner(f"推送失败 {item.link}: {e}")

    def _abort(self, result: FeedResult, message: str) -> FeedResult:
        logger.error(f"订阅源 {result.feed_url} 本轮中止: {message}")
        self._notify_owner(f"订阅源 {result.feed_url} 本轮中止: {message}")
        result.error = message
        return result

    def _notify_owner(self, text: str) -> None:
        """给运维发通知，失败只记日志"""
        try:
            self.sender.send_message(self.owner_id, text)
        except Exception as e:
            logger.error(f"运维通知发送失败: {e}")
