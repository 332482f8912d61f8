from pydantic import Field

from blogfront.models.record import Record


class Page(Record):
    """A static page, routed by its ``url`` rather than its slug."""

    url: str = ""
    slug: str = ""
    title: str = ""
    body: str = ""
    content: str = ""
    menu_visible: bool = Field(default=False, alias="menuVisible")
    menu_order: float = Field(default=0, alias="menuOrder")
    menu_title: str = Field(default="", alias="menuTitle")
    published: bool = False
    published_at: str = ""
    date: str = ""

    @property
    def html(self) -> str:
        return self.body or self.content

    @property
    def menu_label(self) -> str:
        return self.menu_title or self.title
