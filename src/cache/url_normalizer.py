"""
url_normalizer.py - URL 规范化
把条目链接转换为去重用的规范标识（域名 + "/" + 文章标识），
只用于缓存比对，不影响实际推送出去的链接。

规则：
  - 协议、"www." 前缀、首尾斜杠、.htm/.html 后缀都不影响标识
  - 路径非空时忽略查询串；路径为空时保留查询串（如 ?p=123 形式的博客）
  - 路径先消去 "." / ".." 段并做百分号编码，"/café" 与 "/caf%C3%A9" 视为同一篇
"""
import ipaddress
from urllib.parse import quote, urlsplit

from src.errors import InvalidUrlError, NoDomainError

# 这些协议必须带主机名，否则视为格式错误
SPECIAL_SCHEMES = {"http", "https", "ws", "wss", "ftp"}

POST_SUFFIXES = (".htm", ".html")

_FORBIDDEN_HOST_CHARS = set(" \t\n\r<>\\^|%[]")

# 路径中保持原样的字符：已有的 %XX 转义和 WHATWG 路径编码集之外的 ASCII 符号
_PATH_SAFE_CHARS = "/%!$&'()*+,;=:@[]^|~"

_DOT_SEGMENTS = {".", "%2e"}
_DOUBLE_DOT_SEGMENTS = {"..", ".%2e", "%2e.", "%2e%2e"}


def normalize_url(raw_url: str) -> str:
    """
    计算 URL 的规范标识
    :param raw_url: 订阅源条目中的原始链接
    :return: 形如 "example.com/2023/post" 的标识
    :raises InvalidUrlError: 不是合法的绝对 URL
    :raises NoDomainError: URL 没有域名（如 mailto:、IP 地址主机）
    """
    url = raw_url.strip()
    try:
        parts = urlsplit(url)
        parts.port  # 端口非法时抛 ValueError
    except ValueError as e:
        raise InvalidUrlError(raw_url, f"URL 解析失败（{e}）") from e

    # 相对地址不做解析，直接拒绝
    if not parts.scheme:
        raise InvalidUrlError(raw_url, "不是绝对 URL")

    host = parts.hostname or ""
    if not host:
        if parts.scheme.lower() in SPECIAL_SCHEMES:
            raise InvalidUrlError(raw_url, "URL 缺少主机名")
        raise NoDomainError(raw_url)
    if _FORBIDDEN_HOST_CHARS.intersection(host):
        raise InvalidUrlError(raw_url, "主机名包含非法字符")
    if _is_ip_address(host):
        raise NoDomainError(raw_url)
    if not host.isascii():
        try:
            host = host.encode("idna").decode("ascii")
        except UnicodeError as e:
            raise InvalidUrlError(raw_url, "国际化域名无法编码") from e

    domain = host[len("www."):] if host.startswith("www.") else host

    path = parts.path
    if parts.scheme.lower() in SPECIAL_SCHEMES:
        path = path.replace("\\", "/")
    post_identifier = _serialize_path(path).strip("/")
    if not post_identifier:
        # 空查询串（"http://a.com/?"）也算有查询串
        if parts.query or "?" in url.split("#", 1)[0]:
            post_identifier = "?" + parts.query
    else:
        for suffix in POST_SUFFIXES:
            if post_identifier.endswith(suffix):
                post_identifier = post_identifier[:-len(suffix)]
                break

    return f"{domain}/{post_identifier}"


def _is_ip_address(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


def _serialize_path(path: str) -> str:
    """
    按浏览器的方式序列化路径：消去 "." / ".." 段，再对空格、非 ASCII 等字符做百分号编码。
    "/café" 与 "/caf%C3%A9" 得到同一结果。
    """
    segments = path.split("/")[1:] if path.startswith("/") else path.split("/")
    output = []
    for i, segment in enumerate(segments):
        is_last = i == len(segments) - 1
        lowered = segment.lower()
        if lowered in _DOUBLE_DOT_SEGMENTS:
            if output:
                output.pop()
            if is_last:
                output.append("")
        elif lowered in _DOT_SEGMENTS:
            if is_last:
                output.append("")
        else:
            output.append(segment)
    serialized = "/" + "/".join(output) if path.startswith("/") else "/".join(output)
    return quote(serialized, safe=_PATH_SAFE_CHARS)
