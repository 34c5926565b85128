from catalog_scraper.adapters.base import RenderedPage
from catalog_scraper.adapters.extractor import ListingExtractor
from catalog_scraper.adapters.matchers import CardMatcher, TextMatcher, first_match

PAGE_URL = "https://shop.example.com/c/home_appliances/"


def page(body: str) -> RenderedPage:
    return RenderedPage(url=PAGE_URL, html=f"<html><body>{body}</body></html>")


def card(href: str, inner: str) -> str:
    return f'<div data-testid="product-card"><a href="{href}">link</a>{inner}</div>'


def test_full_card_is_extracted():
    html = card(
        "/product/fridge",
        '<h3>Fridge 300L</h3><span class="price">D 1,299 D 1,599</span>'
        '<img src="//cdn.example.com/fridge.jpg">',
    )
    [record] = ListingExtractor().extract(page(html))
    assert record.to_dict() == {
        "id": 1,
        "title": "Fridge 300L",
        "price": "AED 1,299",
        "image": "https://cdn.example.com/fridge.jpg",
        "url": "https://shop.example.com/product/fridge",
    }


def test_duplicate_urls_keep_first_card():
    html = (
        card("/product/a", "<h2>First</h2>")
        + card("/product/b", "<h2>Other</h2>")
        + card("/product/a#reviews", "<h2>Second</h2>")
    )
    records = ListingExtractor().extract(page(html))
    assert [r.title for r in records] == ["First", "Other"]
    assert [r.id for r in records] == [1, 2]


def test_card_with_neither_title_nor_price_is_dropped():
    html = (
        card("/product/title-only", "<h2>Only title</h2>")
        + card("/product/nothing", '<img src="/x.jpg">')
        + card("/product/price-only", '<div class="price">D 99</div>')
    )
    records = ListingExtractor().extract(page(html))
    assert [(r.id, r.title, r.price) for r in records] == [
        (1, "Only title", "N/A"),
        (2, "N/A", "AED 99"),
    ]
    assert records[0].image == ""


def test_card_without_product_link_is_rejected():
    html = card("/category/tv", "<h2>Category</h2>") + card("/product/tv", "<h2>TV</h2>")
    records = ListingExtractor().extract(page(html))
    assert [r.url for r in records] == ["https://shop.example.com/product/tv"]


def test_title_priority_prefers_h2():
    html = card("/product/a", '<span class="name">Name</span><h3>Heading 3</h3><h2>Heading 2</h2>')
    [record] = ListingExtractor().extract(page(html))
    assert record.title == "Heading 2"


def test_empty_heading_falls_through_to_next_lookup():
    html = card("/product/a", '<h2>  </h2><div class="item-title">Kettle</div>')
    [record] = ListingExtractor().extract(page(html))
    assert record.title == "Kettle"


def test_first_matching_card_strategy_wins():
    html = (
        card("/product/semantic", "<h2>Semantic</h2>")
        + '<div class="product-card-v2"><a href="/product/classy"><h2>Class</h2></a></div>'
        + '<a href="/product/loose"><h2>Loose link</h2></a>'
    )
    records = ListingExtractor().extract(page(html))
    assert [r.title for r in records] == ["Semantic"]


def test_falls_back_to_bare_product_links():
    html = (
        '<a href="/product/x"><h4>X</h4><span class="Price">D 5</span></a>'
        '<a href="/about">About us</a>'
    )
    [record] = ListingExtractor().extract(page(html))
    assert record.title == "X"
    assert record.price == "AED 5"


def test_card_wrapped_by_product_link_uses_wrapper():
    html = (
        '<a href="/product/wrapped"><div class="ProductCard">'
        '<h3>Wrapped</h3><span class="price">D 10</span>'
        '<img data-src="//cdn.example.com/w.jpg"></div></a>'
    )
    [record] = ListingExtractor().extract(page(html))
    assert record.url == "https://shop.example.com/product/wrapped"
    assert record.title == "Wrapped"
    assert record.image == "https://cdn.example.com/w.jpg"


def test_lazy_image_falls_back_to_data_src():
    html = card("/product/a", '<h2>A</h2><img src="" data-src="//cdn.example.com/lazy.jpg">')
    [record] = ListingExtractor().extract(page(html))
    assert record.image == "https://cdn.example.com/lazy.jpg"


def test_price_normalizer_is_replaceable():
    html = card("/product/a", '<span class="price"> 12.50\n EUR </span>')
    extractor = ListingExtractor(price_normalizer=lambda text: "EUR " + text.split()[0])
    [record] = extractor.extract(page(html))
    assert record.price == "EUR 12.50"


def test_custom_product_path():
    html = '<a href="/p/1"><h2>One</h2></a><a href="/product/2"><h2>Two</h2></a>'
    records = ListingExtractor(product_path="/p/").extract(page(html))
    assert [r.title for r in records] == ["One"]


def test_page_without_cards_yields_nothing():
    assert ListingExtractor().extract(page("<p>Nothing here</p>")) == []


def test_extract_is_deterministic():
    html = card("/product/a", "<h2>A</h2>") + card("/product/b", "<h2>B</h2>")
    extractor = ListingExtractor()
    assert extractor.extract(page(html)) == extractor.extract(page(html))


def test_first_match_commits_to_first_hit():
    from bs4 import BeautifulSoup

    soup = BeautifulSoup("<div><h3>three</h3><h4>four</h4></div>", "html.parser")
    assert first_match([TextMatcher("h2"), TextMatcher("h4"), TextMatcher("h3")], soup) == "four"
    assert first_match([CardMatcher("li")], soup) is None
