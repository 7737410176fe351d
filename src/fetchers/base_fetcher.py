"""
base_fetcher.py - 采集器基类
所有采集器继承此类，实现 fetch() 方法
返回统一格式的 FeedItem 列表
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class FeedItem:
    """订阅源条目（字段都可能缺失）"""
    link: Optional[str] = None          # 原文链接，用于去重和推送
    title: Optional[str] = None         # 标题
    pub_date: Optional[str] = None      # 发布时间（订阅源中的原始字符串）
    author: Optional[str] = None        # 作者


class BaseFetcher(ABC):
    """采集器基类"""

    def __init__(self, timeout: float = 15):
        self.timeout = timeout

    @abstractmethod
    def fetch(self, feed_url: str) -> list[FeedItem]:
        """
        抓取并解析订阅源
        :param feed_url: 订阅源地址
        :return: 按文档顺序排列的 FeedItem 列表
        :raises FeedFetchError: 下载或解析失败
        """
        pass
