from blogfront.models.record import Record


class Post(Record):
    slug: str = ""
    title: str = ""
    body: str = ""
    content: str = ""
    excerpt: str = ""
    tags: str = ""  # comma-separated
    category: str = ""
    published: bool = False
    published_at: str = ""
    date: str = ""

    @property
    def html(self) -> str:
        """Body HTML, falling back to the legacy ``content`` field."""
        return self.body or self.content

    @property
    def timestamp(self) -> str:
        return self.published_at or self.date
