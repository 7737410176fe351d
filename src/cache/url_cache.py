"""
url_cache.py - 有界 URL 去重缓存
每个（推送目标, 订阅源）对应一个缓存文件：cache/<chat_id>-<编码后的订阅源 URL>.txt

存储策略：
  - 文件内容：每行一个规范标识，按插入顺序从旧到新，无表头
  - 内存结构：deque 保存顺序（决定淘汰顺序），set 负责 O(1) 判重，两者元素始终一致
  - 容量固定，超出时淘汰最旧的一条（FIFO）
  - 加载时若文件条数超过容量（例如配置调小了），只保留最新的若干条
  - 保存时先写临时文件再原子替换，读取方不会看到写了一半的文件

使用顺序：load()（最多一次）→ insert() 若干次 → save()（最多一次）
"""
import logging
import os
import stat
import tempfile
from collections import deque
from pathlib import Path
from typing import List
from urllib.parse import quote_plus

from src.cache.url_normalizer import normalize_url
from src.errors import StorageReadError, StorageWriteError

logger = logging.getLogger(__name__)

# 新建缓存文件的权限
NEW_FILE_MODE = 0o644


def cache_filename(chat_id: str, feed_url: str) -> str:
    """由推送目标和订阅源 URL 生成固定的缓存文件名（URL 做表单编码，不含路径分隔符）"""
    encoded = quote_plus(feed_url, safe="*").replace("~", "%7E")
    return f"{chat_id}-{encoded}.txt"


class UrlCache:
    """
    有界 URL 缓存：
      - load()       : 从缓存文件恢复（文件不存在视为空缓存）
      - insert(url)  : 首次出现返回 True，已见过返回 False
      - save()       : 整体覆盖写回缓存文件
    """

    def __init__(self, path, capacity: int):
        if capacity < 0:
            raise ValueError(f"缓存容量不能为负数: {capacity}")
        self.path = Path(path)
        self.capacity = capacity
        self._order: deque = deque()
        self._members: set = set()

    @classmethod
    def for_feed(cls, cache_dir, chat_id: str, feed_url: str, capacity: int) -> "UrlCache":
        return cls(Path(cache_dir) / cache_filename(chat_id, feed_url), capacity)

    # ── 公开接口 ──────────────────────────────────────────────

    def load(self) -> None:
        """
        从缓存文件加载规范标识。
        文件不存在 → 空缓存；文件存在但读不了 → StorageReadError。
        """
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug(f"缓存文件不存在，视为空缓存：{self.path}")
            self._order = deque()
            self._members = set()
            return
        except (OSError, UnicodeDecodeError) as e:
            raise StorageReadError(self.path, f"读取缓存文件失败（{e}）") from e

        lines = [line for line in text.split("\n") if line]
        if len(lines) > self.capacity:
            logger.info(
                f"缓存文件 {self.path} 有 {len(lines)} 条，超过容量 {self.capacity}，丢弃最旧的部分"
            )
            lines = lines[len(lines) - self.capacity:]

        self._order = deque(lines)
        self._members = set(lines)
        logger.debug(f"已加载缓存 {self.path}：{len(self._order)} 条")

    def insert(self, url: str) -> bool:
        """
        记录一个条目链接。
        :return: True 表示首次出现（应推送），False 表示已推送过
        :raises InvalidUrlError / NoDomainError: 链接无法规范化（缓存不变）
        """
        identity = normalize_url(url)
        if identity in self._members:
            return False

        self._members.add(identity)
        self._order.append(identity)
        if len(self._order) > self.capacity:
            oldest = self._order.popleft()
            self._members.discard(oldest)
        return True

    def save(self) -> None:
        """
        把当前标识按从旧到新写回缓存文件（原子替换）。
        缓存目录需事先存在，这里不负责创建。
        """
        content = "\n".join(self._order)
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(content)
            # mkstemp 建的文件是 0600，替换前沿用原文件权限
            os.chmod(tmp_path, self._file_mode())
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise StorageWriteError(self.path, f"写入缓存文件失败（{e}）") from e
        logger.debug(f"已保存缓存 {self.path}：{len(self._order)} 条")

    def _file_mode(self) -> int:
        try:
            return stat.S_IMODE(os.stat(self.path).st_mode)
        except FileNotFoundError:
            return NEW_FILE_MODE

    def entries(self) -> List[str]:
        """按从旧到新返回当前缓存的规范标识"""
        return list(self._order)

    def __contains__(self, identity: str) -> bool:
        return identity in self._members

    def __len__(self) -> int:
        return len(self._order)
