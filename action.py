"""
action.py - RSS → Telegram 推送机器人 唯一入口
用法：
  python action.py                          # 处理所有订阅源一次后退出（适合 cron）
  python action.py --config config.json     # 指定配置文件（YAML / JSON）
  python action.py --interval 600           # 常驻运行，每 600 秒轮询一次
  python action.py --debug                  # 输出 DEBUG 日志

Bot token 从环境变量 TELEGRAM_BOT_TOKEN（或 .env）读取。
"""
import argparse
import logging
import logging.handlers
import os
import sys
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List

import yaml
from dotenv import load_dotenv

from src.errors import ConfigError
from src.feed_processor import FeedProcessor, FeedResult
from src.fetchers.rss_fetcher import RSSFetcher
from src.settings import BotConfig, parse_config
from src.telegram_client import TelegramClient

DEFAULT_CONFIG_PATH = "config/settings.yaml"

logger = logging.getLogger(__name__)


def setup_logging(debug: bool = False, log_file: str = "data/run.log") -> None:
    """日志配置：同时输出到控制台和文件"""
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[
            logging.handlers.RotatingFileHandler(
                log_file, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"
            ),
            logging.StreamHandler(sys.stdout),
        ],
        force=True,
    )
    # requests 的 DEBUG 日志会带出含 token 的 URL
    logging.getLogger("urllib3").setLevel(logging.WARNING)


# ─────────────────────────────────────────
# 配置加载
# ─────────────────────────────────────────

def load_config(path: str = DEFAULT_CONFIG_PATH) -> BotConfig:
    """加载配置文件 + .env，返回校验后的 BotConfig"""
    load_dotenv()
    cfg_path = Path(path)
    if not cfg_path.exists():
        raise ConfigError(f"未找到配置文件 {cfg_path}，请确认工作目录正确")
    try:
        with open(cfg_path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"配置文件 {cfg_path} 格式错误: {e}") from e

    token = os.getenv("TELEGRAM_BOT_TOKEN", "").strip()
    if not token:
        raise ConfigError("未设置环境变量 TELEGRAM_BOT_TOKEN")
    return parse_config(raw, bot_token=token)


# ─────────────────────────────────────────
# 运行
# ─────────────────────────────────────────

def run_feeds(config: BotConfig, processor: FeedProcessor) -> List[FeedResult]:
    """并发处理所有订阅源，每个订阅源独占自己的缓存"""
    if not config.feeds:
        logger.warning("配置中没有订阅源")
        return []

    workers = min(config.general.max_workers, len(config.feeds))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        results = list(pool.map(processor.process, config.feeds))

    failed = [r for r in results if not r.ok]
    logger.info(f"本轮完成：{len(results)} 个订阅源，失败 {len(failed)} 个")
    for r in failed:
        logger.error(f"  {r.feed_url} -> {r.chat_id}: {r.error}")
    return results


def build_processor(config: BotConfig) -> FeedProcessor:
    timeout = config.general.request_timeout
    Path(config.general.cache_dir).mkdir(parents=True, exist_ok=True)
    return FeedProcessor(
        fetcher=RSSFetcher(timeout=timeout),
        sender=TelegramClient(config.bot_token, timeout=timeout),
        owner_id=config.general.owner_id,
        cache_dir=config.general.cache_dir,
    )


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="RSS → Telegram 推送机器人")
    parser.add_argument(
        "--config", default=DEFAULT_CONFIG_PATH,
        help=f"配置文件路径（默认 {DEFAULT_CONFIG_PATH}）"
    )
    parser.add_argument("--debug", action="store_true", help="输出 DEBUG 日志")
    parser.add_argument(
        "--interval", type=float, default=None,
        help="常驻模式下两轮之间的间隔秒数；不指定则只运行一轮"
    )
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"[错误] {e}", file=sys.stderr)
        return 2

    setup_logging(debug=args.debug or config.general.debug, log_file=config.general.log_file)
    logger.debug("已启用 DEBUG 日志")

    processor = build_processor(config)
    logger.info(f"启动，共 {len(config.feeds)} 个订阅源")

    while True:
        results = run_feeds(config, processor)
        if args.interval is None:
            break
        logger.info(f"休眠 {args.interval} 秒...")
        try:
            time.sleep(args.interval)
        except KeyboardInterrupt:
            logger.info("收到中断，退出。")
            break

    return 0 if all(r.ok for r in results) else 1


if __name__ == "__main__":
    sys.exit(main())
