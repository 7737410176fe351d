"""
settings.py - 配置模型与校验
把 settings.yaml 解析出的字典转换为 BotConfig，缺省值与原配置保持一致：
  - post_format    默认 "$title\\n\\n$url"
  - url_cache_size 默认 1000
"""
from dataclasses import dataclass, field
from typing import List

from src.errors import ConfigError
from src.processors.post_formatter import DEFAULT_POST_FORMAT

DEFAULT_CACHE_SIZE = 1000


@dataclass
class GeneralConfig:
    owner_id: str                       # 接收异常通知的运维会话
    debug: bool = False
    cache_dir: str = "cache"
    log_file: str = "data/run.log"
    max_workers: int = 4
    request_timeout: float = 15


@dataclass
class FeedConfig:
    url: str
    chat_id: str
    post_format: str = DEFAULT_POST_FORMAT
    url_cache_size: int = DEFAULT_CACHE_SIZE


@dataclass
class BotConfig:
    general: GeneralConfig
    feeds: List[FeedConfig] = field(default_factory=list)
    bot_token: str = ""


def _require(section: dict, key: str, where: str) -> str:
    value = section.get(key)
    if value is None or str(value).strip() == "":
        raise ConfigError(f"缺少配置项 {where}.{key}")
    return str(value).strip()


def _int_option(section: dict, key: str, default: int, where: str, minimum: int = 0) -> int:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise ConfigError(f"配置项 {where}.{key} 必须是 >= {minimum} 的整数，当前为 {value!r}")
    return value


def parse_general(raw: dict) -> GeneralConfig:
    if not isinstance(raw, dict):
        raise ConfigError("缺少 general 配置段")
    timeout = raw.get("request_timeout", 15)
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        raise ConfigError(f"配置项 general.request_timeout 必须是正数，当前为 {timeout!r}")
    return GeneralConfig(
        owner_id=_require(raw, "owner_id", "general"),
        debug=bool(raw.get("debug", False)),
        cache_dir=str(raw.get("cache_dir") or "cache"),
        log_file=str(raw.get("log_file") or "data/run.log"),
        max_workers=_int_option(raw, "max_workers", 4, "general", minimum=1),
        request_timeout=timeout,
    )


def parse_feed(raw: dict, index: int) -> FeedConfig:
    where = f"feeds[{index}]"
    if not isinstance(raw, dict):
        raise ConfigError(f"{where} 必须是映射")
    post_format = raw.get("post_format", DEFAULT_POST_FORMAT)
    if not isinstance(post_format, str):
        raise ConfigError(f"配置项 {where}.post_format 必须是字符串")
    return FeedConfig(
        url=_require(raw, "url", where),
        chat_id=_require(raw, "chat_id", where),
        post_format=post_format,
        url_cache_size=_int_option(raw, "url_cache_size", DEFAULT_CACHE_SIZE, where),
    )


def parse_config(raw: dict, bot_token: str = "") -> BotConfig:
    """
    校验并转换配置字典
    :param raw: yaml.safe_load 的结果
    :param bot_token: 来自环境变量的 Bot token
    :raises ConfigError: 配置缺失或不合法
    """
    if not isinstance(raw, dict):
        raise ConfigError("配置文件内容必须是映射")

    general = parse_general(raw.get("general"))
    raw_feeds = raw.get("feeds") or []
    if not isinstance(raw_feeds, list):
        raise ConfigError("feeds 必须是列表")
    feeds = [parse_feed(f, i) for i, f in enumerate(raw_feeds)]

    # 同一（chat_id, url）共用一个缓存文件，不允许重复配置
    seen = set()
    for feed in feeds:
        key = (feed.chat_id, feed.url)
        if key in seen:
            raise ConfigError(f"订阅源重复配置：{feed.url} -> {feed.chat_id}")
        seen.add(key)

    return BotConfig(general=general, feeds=feeds, bot_token=bot_token)
