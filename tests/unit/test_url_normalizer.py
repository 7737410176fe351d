"""
Unit tests for URL normalization.

Tests canonical identity computation and the rejection of URLs that
cannot be used as dedup keys.
"""

import pytest

from src.cache.url_normalizer import normalize_url
from src.errors import InvalidUrlError, NoDomainError, UrlNormalizationError


class TestNormalizeUrl:
    """Test suite for normalize_url()."""

    def test_basic_url(self):
        """Test domain and path are joined with a slash."""
        assert normalize_url('http://a.com/1') == 'a.com/1'

    def test_is_deterministic(self):
        """Test the same input always yields the same identity."""
        url = 'https://example.com/2023/10/post?utm_source=rss'
        assert normalize_url(url) == normalize_url(url)

    def test_cosmetic_variants_share_identity(self):
        """Test protocol, www prefix, trailing slash and suffix are ignored."""
        variants = [
            'http://example.com/blog/post',
            'https://example.com/blog/post',
            'https://www.example.com/blog/post',
            'https://example.com/blog/post/',
            'https://example.com/blog/post.html',
            'https://www.example.com/blog/post.htm',
            'http://www.example.com//blog/post//',
        ]

        identities = {normalize_url(v) for v in variants}

        assert identities == {'example.com/blog/post'}

    def test_query_ignored_for_non_empty_path(self):
        """Test tracking parameters on a regular post URL are dropped."""
        assert normalize_url('https://example.com/post?utm_source=feed&id=7') == 'example.com/post'

    def test_query_kept_for_empty_path(self):
        """Test query-addressed posts keep their query."""
        assert normalize_url('https://example.com/?p=123') == 'example.com/?p=123'
        assert normalize_url('https://example.com?p=123') == 'example.com/?p=123'
        assert normalize_url('https://example.com/?p=123') != normalize_url('https://example.com/?p=124')

    def test_empty_query_kept_for_empty_path(self):
        """Test a bare question mark is part of the identity."""
        assert normalize_url('https://example.com/?') == 'example.com/?'

    def test_root_url(self):
        """Test a URL without path maps to the domain root."""
        assert normalize_url('https://example.com') == 'example.com/'
        assert normalize_url('https://www.example.com/') == 'example.com/'

    def test_only_one_suffix_stripped(self):
        """Test suffix stripping is not recursive."""
        assert normalize_url('https://example.com/page.html.htm') == 'example.com/page.html'
        assert normalize_url('https://example.com/page.htm.html') == 'example.com/page.htm'

    def test_other_suffixes_kept(self):
        """Test suffixes other than .htm/.html are identity-relevant."""
        assert normalize_url('https://example.com/page.php') == 'example.com/page.php'

    def test_fragment_ignored(self):
        """Test the fragment does not take part in the identity."""
        assert normalize_url('https://example.com/post#comments') == 'example.com/post'

    def test_host_lowercased_path_case_kept(self):
        """Test host case is normalized while path case is preserved."""
        assert normalize_url('HTTPS://WWW.Example.COM/Post') == 'example.com/Post'

    def test_www_only_stripped_as_prefix(self):
        """Test www. inside the host is not touched."""
        assert normalize_url('https://blog.www.example.com/a') == 'blog.www.example.com/a'
        assert normalize_url('https://www2.example.com/a') == 'www2.example.com/a'

    def test_port_and_credentials_ignored(self):
        """Test userinfo and port do not leak into the identity."""
        assert normalize_url('https://user:pw@example.com:8443/a') == 'example.com/a'

    def test_non_http_scheme_with_host(self):
        """Test any scheme with an authority is accepted."""
        assert normalize_url('ftp://ftp.example.com/pub/file.htm') == 'ftp.example.com/pub/file'

    def test_internationalized_domain(self):
        """Test unicode domains are converted to punycode."""
        assert normalize_url('https://bücher.de/katalog') == 'xn--bcher-kva.de/katalog'

    def test_non_ascii_path_matches_percent_encoded(self):
        """Test raw and percent-encoded paths share one identity."""
        assert normalize_url('https://example.com/café') == 'example.com/caf%C3%A9'
        assert normalize_url('https://example.com/caf%C3%A9') == 'example.com/caf%C3%A9'
        assert normalize_url('https://example.com/a b.html') == 'example.com/a%20b'

    def test_dot_segments_resolved(self):
        """Test . and .. path segments are resolved before comparison."""
        assert normalize_url('https://example.com/blog/../post') == 'example.com/post'
        assert normalize_url('https://example.com/./blog/./post.html') == 'example.com/blog/post'
        assert normalize_url('https://example.com/blog/%2E%2E/post') == 'example.com/post'
        assert normalize_url('https://example.com/../../post') == 'example.com/post'

    def test_surrounding_whitespace_ignored(self):
        """Test leading and trailing whitespace is stripped before parsing."""
        assert normalize_url('  https://example.com/a \n') == 'example.com/a'

    @pytest.mark.parametrize('url', [
        '',
        '/posts/1',
        'example.com/posts/1',
        '//example.com/posts/1',
        'http://',
        'https:///path-only',
        'http://example.com:99999/a',
        'http://exa mple.com/a',
    ])
    def test_invalid_urls(self, url):
        """Test relative and malformed URLs are rejected."""
        with pytest.raises(InvalidUrlError):
            normalize_url(url)

    @pytest.mark.parametrize('url', [
        'mailto:editor@example.com',
        'urn:isbn:0451450523',
        'file:///etc/hosts',
        'http://127.0.0.1/admin',
        'http://[::1]/admin',
    ])
    def test_urls_without_domain(self, url):
        """Test URLs without a domain raise NoDomainError."""
        with pytest.raises(NoDomainError):
            normalize_url(url)

    def test_error_carries_url(self):
        """Test normalization errors expose the offending URL."""
        with pytest.raises(UrlNormalizationError) as exc_info:
            normalize_url('mailto:editor@example.com')

        assert exc_info.value.url == 'mailto:editor@example.com'
        assert 'mailto:editor@example.com' in str(exc_info.value)
