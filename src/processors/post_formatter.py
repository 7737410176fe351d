"""
post_formatter.py - 推送消息模板渲染
模板占位符：$title / $url / $date / $author，字面量 "\\n" 转换为换行
字段值做 HTML 转义（消息以 HTML 模式发送）
"""
import html

from src.fetchers.base_fetcher import FeedItem

DEFAULT_POST_FORMAT = "$title\n\n$url"


def _escape(value) -> str:
    return html.escape(value or "", quote=False)


def format_post(item: FeedItem, post_format: str = DEFAULT_POST_FORMAT) -> str:
    """按模板渲染一条推送消息"""
    return (
        post_format
        .replace("\\n", "\n")
        .replace("$title", _escape(item.title))
        .replace("$url", _escape(item.link))
        .replace("$date", _escape(item.pub_date))
        .replace("$author", _escape(item.author))
    )
