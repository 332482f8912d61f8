"""Tests for the content resolvers."""

import asyncio

from blogfront.services import content, filters
from tests.conftest import make_backend


def _sorts(stub):
    return [r.url.params.get("sort") for r in stub.list_calls("posts")]


class TestListPostsSorted:
    def test_newest_first_by_published_at(self, stub):
        stub.add_post("old", published_at="2024-01-01 00:00:00.000Z")
        stub.add_post("new", published_at="2024-03-01 00:00:00.000Z")

        posts = asyncio.run(content.list_posts_sorted(make_backend(stub)))

        assert [p.slug for p in posts.items] == ["new", "old"]
        assert _sorts(stub) == ["-published_at"]

    def test_falls_back_to_date_once(self, stub):
        stub.failing_sorts = {"-published_at"}
        stub.add_post("a", date="2023-05-01")
        stub.add_post("b", date="2023-06-01")

        posts = asyncio.run(content.list_posts_sorted(make_backend(stub)))

        assert [p.slug for p in posts.items] == ["b", "a"]
        assert _sorts(stub) == ["-published_at", "-date"]

    def test_both_sorts_failing_returns_empty_after_one_retry(self, stub):
        stub.failing_sorts = {"-published_at", "-date"}
        stub.add_post("a")

        posts = asyncio.run(content.list_posts_sorted(make_backend(stub)))

        assert posts.items == []
        assert posts.total_pages == 0
        assert _sorts(stub) == ["-published_at", "-date"]

    def test_unpublished_posts_are_excluded(self, stub):
        stub.add_post("draft", published=False, published_at="2024-01-01")
        stub.add_post("live", published_at="2024-01-02")

        posts = asyncio.run(content.list_posts_sorted(make_backend(stub)))

        assert [p.slug for p in posts.items] == ["live"]

    def test_pagination_metadata(self, stub):
        for i in range(25):
            stub.add_post(f"post-{i:02d}", published_at=f"2024-01-{i + 1:02d}")

        posts = asyncio.run(content.list_posts_sorted(make_backend(stub), page=3, per_page=10))

        assert posts.total_pages == 3
        assert posts.total_items == 25
        assert [p.slug for p in posts.items] == [f"post-{i:02d}" for i in range(4, -1, -1)]


class TestSingleRecordLookups:
    def test_post_by_slug(self, stub):
        stub.add_post("hello-world", title="Hello")
        post = asyncio.run(content.get_post_by_slug(make_backend(stub), "hello-world"))
        assert post is not None
        assert post.title == "Hello"

    def test_unpublished_post_is_absent(self, stub):
        stub.add_post("secret", published=False)
        assert asyncio.run(content.get_post_by_slug(make_backend(stub), "secret")) is None

    def test_slug_is_escaped_in_the_filter(self, stub):
        stub.add_post("visible")
        slug = 'x" || slug != "'

        post = asyncio.run(content.get_post_by_slug(make_backend(stub), slug))

        assert post is None
        sent = stub.list_calls("posts")[0].url.params["filter"]
        assert sent == filters.all_of(filters.eq("slug", slug), filters.PUBLISHED)
        assert '\\"' in sent

    def test_backend_failure_reads_as_absent(self, stub):
        stub.failing_collections.add("posts")
        assert asyncio.run(content.get_post_by_slug(make_backend(stub), "anything")) is None

    def test_empty_slug_skips_the_backend(self, stub):
        assert asyncio.run(content.get_post_by_slug(make_backend(stub), "")) is None
        assert stub.requests == []

    def test_page_by_url(self, stub):
        stub.add_page("/about/", title="About", body="<p>me</p>")
        page = asyncio.run(content.get_page_by_url(make_backend(stub), "/about/"))
        assert page is not None
        assert page.html == "<p>me</p>"

    def test_missing_page(self, stub):
        assert asyncio.run(content.get_page_by_url(make_backend(stub), "/nowhere/")) is None


class TestPagesMenu:
    def test_only_visible_published_pages_in_order(self, stub):
        stub.add_page("/b/", title="B", menuVisible=True, menuOrder=2)
        stub.add_page("/a/", title="A", menuVisible=True, menuOrder=1, menuTitle="First")
        stub.add_page("/hidden/", title="Hidden", menuVisible=False, menuOrder=0)
        stub.add_page("/draft/", title="Draft", menuVisible=True, menuOrder=3, published=False)

        menu = asyncio.run(content.get_pages_menu(make_backend(stub)))

        assert [p.url for p in menu] == ["/a/", "/b/"]
        assert menu[0].menu_label == "First"
        assert menu[1].menu_label == "B"
        params = stub.list_calls("pages")[0].url.params
        assert params["perPage"] == "200"
        assert params["sort"] == "menuOrder"

    def test_failure_gives_empty_menu(self, stub):
        stub.failing_collections.add("pages")
        assert asyncio.run(content.get_pages_menu(make_backend(stub))) == []


class TestAdjacentPosts:
    def _seed(self, stub):
        stub.add_post("jan", published_at="2024-01-15 00:00:00.000Z")
        stub.add_post("feb", published_at="2024-02-15 00:00:00.000Z")
        stub.add_post("mar", published_at="2024-03-15 00:00:00.000Z")

    def _adjacent(self, stub, slug):
        backend = make_backend(stub)

        async def run():
            post = await content.get_post_by_slug(backend, slug)
            return await content.get_adjacent_posts(backend, post)

        return asyncio.run(run())

    def test_middle_post_has_both_neighbours(self, stub):
        self._seed(stub)
        adjacent = self._adjacent(stub, "feb")
        assert adjacent.newer.slug == "mar"
        assert adjacent.older.slug == "jan"

    def test_newest_post_has_no_newer(self, stub):
        self._seed(stub)
        adjacent = self._adjacent(stub, "mar")
        assert adjacent.newer is None
        assert adjacent.older.slug == "feb"

    def test_oldest_post_has_no_older(self, stub):
        self._seed(stub)
        adjacent = self._adjacent(stub, "jan")
        assert adjacent.newer.slug == "feb"
        assert adjacent.older is None

    def test_date_is_used_without_published_at(self, stub):
        stub.add_post("one", date="2023-01-01")
        stub.add_post("two", date="2023-02-01")
        adjacent = self._adjacent(stub, "two")
        assert adjacent.older.slug == "one"
        assert adjacent.newer is None

    def test_no_timestamp_means_no_neighbours(self, stub):
        stub.add_post("undated")
        adjacent = self._adjacent(stub, "undated")
        assert adjacent == content.AdjacentPosts(None, None)

    def test_missing_post(self, stub):
        adjacent = asyncio.run(content.get_adjacent_posts(make_backend(stub), None))
        assert adjacent == content.AdjacentPosts(None, None)
        assert stub.requests == []


class TestCollectTags:
    def test_sorted_union_of_tags(self, stub):
        stub.add_post("a", tags="python, web", published_at="2024-01-01")
        stub.add_post("b", tags="web,async ,", published_at="2024-01-02")
        stub.add_post("c", tags="hidden", published=False)

        tags = asyncio.run(content.collect_tags(make_backend(stub)))

        assert tags == ["async", "python", "web"]

    def test_failure_gives_no_tags(self, stub):
        stub.failing_collections.add("posts")
        assert asyncio.run(content.collect_tags(make_backend(stub))) == []


class TestMalformedRecords:
    """Records that do not fit the models read as absent, like backend failures."""

    def test_fractional_menu_order_is_accepted(self, stub):
        stub.add_page("/b/", title="B", menuVisible=True, menuOrder=2)
        stub.add_page("/a/", title="A", menuVisible=True, menuOrder=1.5)

        menu = asyncio.run(content.get_pages_menu(make_backend(stub)))

        assert [p.url for p in menu] == ["/a/", "/b/"]
        assert menu[0].menu_order == 1.5

    def test_malformed_menu_page_gives_empty_menu(self, stub):
        stub.add_page("/about/", title={"en": "About"}, menuVisible=True, menuOrder=1)
        assert asyncio.run(content.get_pages_menu(make_backend(stub))) == []

    def test_malformed_post_by_slug_is_absent(self, stub):
        stub.add_post("broken", title=["not", "a", "string"])
        assert asyncio.run(content.get_post_by_slug(make_backend(stub), "broken")) is None

    def test_malformed_page_by_url_is_absent(self, stub):
        stub.add_page("/broken/", body={"html": "<p>x</p>"})
        assert asyncio.run(content.get_page_by_url(make_backend(stub), "/broken/")) is None

    def test_malformed_listing_is_empty_after_one_retry(self, stub):
        stub.add_post("fine", published_at="2024-01-01")
        stub.add_post("broken", tags=["a", "b"], published_at="2024-01-02")

        posts = asyncio.run(content.list_posts_sorted(make_backend(stub)))

        assert posts.items == []
        assert _sorts(stub) == ["-published_at", "-date"]

    def test_malformed_neighbour_is_absent(self, stub):
        stub.add_post("jan", title={"x": 1}, published_at="2024-01-15")
        stub.add_post("feb", published_at="2024-02-15")
        stub.add_post("mar", published_at="2024-03-15")
        backend = make_backend(stub)

        async def run():
            post = await content.get_post_by_slug(backend, "feb")
            return await content.get_adjacent_posts(backend, post)

        adjacent = asyncio.run(run())

        assert adjacent.newer.slug == "mar"
        assert adjacent.older is None

    def test_malformed_page_listing_is_empty(self, stub):
        stub.add_page("/broken/", title=42.5)
        assert asyncio.run(content.list_published_pages(make_backend(stub))) == []
