from typing import List

from pydantic import BaseModel


class FeedItem(BaseModel):
    id: str
    url: str
    title: str
    date_published: str
    summary: str


class JsonFeed(BaseModel):
    """JSON Feed version 1 document."""

    version: str = "https://jsonfeed.org/version/1"
    title: str
    home_page_url: str
    feed_url: str
    items: List[FeedItem]
