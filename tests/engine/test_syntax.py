from __future__ import annotations

from mdrender.engine import Buffer, Document, HtmlRenderer
from mdrender.flags import Extension, RenderFlag


def render(text: str, extensions: Extension) -> str:
    ob = Buffer(64)
    Document(HtmlRenderer(RenderFlag(0)), extensions).render(
        ob, text.encode("utf-8")
    )
    return ob.data.decode("utf-8")


def test_highlight():
    assert render("a ==marked *text*== b", Extension.HIGHLIGHT) == (
        "<p>a <mark>marked <em>text</em></mark> b</p>\n"
    )
    assert "<mark>" not in render("==marked==", Extension(0))


def test_highlight_requires_closing_marker():
    assert render("a == b", Extension.HIGHLIGHT) == "<p>a == b</p>\n"


def test_superscript_word_and_group():
    out = render("2^10 and x^(a b) end", Extension.SUPERSCRIPT)

    assert out == "<p>2<sup>10</sup> and x<sup>a b</sup> end</p>\n"


def test_superscripts_in_one_paragraph_keep_text_between():
    out = render(
        "x^2 and y^3 then ==a== b ==c==",
        Extension.SUPERSCRIPT | Extension.HIGHLIGHT,
    )

    assert out == (
        "<p>x<sup>2</sup> and y<sup>3</sup> then <mark>a</mark> b <mark>c</mark></p>\n"
    )


def test_superscript_stops_at_emphasis_marker():
    out = render("e^x*y*", Extension.SUPERSCRIPT)

    assert out == "<p>e<sup>x</sup><em>y</em></p>\n"


def test_lone_caret_is_text():
    assert render("a ^ b", Extension.SUPERSCRIPT) == "<p>a ^ b</p>\n"


def test_quote():
    assert render('say "hello there" now', Extension.QUOTE) == (
        "<p>say <q>hello there</q> now</p>\n"
    )
    assert "<q>" not in render('say "hi"', Extension(0))


def test_autolink_bare_urls():
    out = render(
        "Visit https://example.com/path. Or www.example.org!", Extension.AUTOLINK
    )

    assert '<a href="https://example.com/path">https://example.com/path</a>.' in out
    assert '<a href="http://www.example.org">www.example.org</a>!' in out


def test_autolink_skips_existing_links():
    out = render("[https://a.example](https://b.example)", Extension.AUTOLINK)

    assert out == '<p><a href="https://b.example">https://a.example</a></p>\n'


def test_autolink_disabled():
    assert "<a" not in render("https://example.com", Extension(0))
