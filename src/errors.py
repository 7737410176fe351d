"""
errors.py - 异常定义
URL 规范化、缓存读写、订阅源抓取、消息投递、配置加载各自的异常类型
"""


class FeedBotError(Exception):
    """所有业务异常的基类"""


class UrlNormalizationError(FeedBotError):
    """条目 URL 无法转换为规范标识"""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"{reason}: {url!r}")


class InvalidUrlError(UrlNormalizationError):
    """不是合法的绝对 URL（相对地址也算）"""

    def __init__(self, url: str, reason: str = "URL 格式不合法"):
        super().__init__(url, reason)


class NoDomainError(UrlNormalizationError):
    """URL 没有域名"""

    def __init__(self, url: str):
        super().__init__(url, "URL 没有域名")


class CacheStorageError(FeedBotError):
    """缓存文件读写失败"""

    def __init__(self, path, message: str):
        self.path = path
        super().__init__(f"{message}: {path}")


class StorageReadError(CacheStorageError):
    pass


class StorageWriteError(CacheStorageError):
    pass


class FeedFetchError(FeedBotError):
    """订阅源下载或解析失败"""

    def __init__(self, feed_url: str, message: str):
        self.feed_url = feed_url
        super().__init__(f"{message} ({feed_url})")


class DeliveryError(FeedBotError):
    """消息发送失败"""

    def __init__(self, chat_id: str, message: str):
        self.chat_id = chat_id
        super().__init__(f"发送到 {chat_id} 失败: {message}")


class ConfigError(FeedBotError):
    """配置缺失或不合法"""
