"""
Shared pytest fixtures for the RSS bot tests.
"""

import pytest

from src.fetchers.base_fetcher import FeedItem
from src.settings import FeedConfig


@pytest.fixture
def feed_config():
    """Fixture providing a feed with a small cache."""
    return FeedConfig(
        url='https://example.com/feed.xml',
        chat_id='@channel',
        post_format='$title\n\n$url',
        url_cache_size=10,
    )


@pytest.fixture
def sample_items():
    """Fixture providing three items with cosmetically different URLs."""
    return [
        FeedItem(link='https://example.com/posts/1.html', title='First post',
                 pub_date='Mon, 02 Oct 2023 10:00:00 GMT', author='alice@example.com'),
        FeedItem(link='https://example.com/posts/2/', title='Second <post>'),
        FeedItem(link='https://www.example.com/posts/3', title='Third & last'),
    ]
