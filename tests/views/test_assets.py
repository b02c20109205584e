"""
Test asset sets and bundles.
"""

from viewer.views import AssetBundle, AssetSet, ScriptSet, StylesheetSet


def test_insertion_order_and_uniqueness():
    assets = AssetSet(["b.css", "a.css", "b.css"])
    assets.add("c.css")
    assets.add("a.css")

    assert list(assets) == ["b.css", "a.css", "c.css"]
    assert len(assets) == 3
    assert "a.css" in assets


def test_union_leaves_operands_untouched():
    left = StylesheetSet(["a.css"])
    right = StylesheetSet(["b.css", "a.css"])

    merged = left | right

    assert isinstance(merged, StylesheetSet)
    assert list(merged) == ["a.css", "b.css"]
    assert list(left) == ["a.css"]
    assert list(right) == ["b.css", "a.css"]


def test_register_merges_in_place():
    assets = ScriptSet(["app.js"])
    result = assets.register(["vendor.js", "app.js"])

    assert result is assets
    assert list(assets) == ["app.js", "vendor.js"]


def test_discard():
    assets = AssetSet(["a", "b"])
    assets.discard("a")
    assets.discard("missing")
    assert list(assets) == ["b"]


def test_stylesheet_tags():
    assets = StylesheetSet(["site.css", "print.css"])
    assert str(assets) == (
        '<link rel="stylesheet" type="text/css" href="site.css">\n'
        '<link rel="stylesheet" type="text/css" href="print.css">'
    )


def test_script_tags_escape_references():
    assets = ScriptSet(['a.js?x=1&y="2"'])
    assert str(assets) == '<script src="a.js?x=1&amp;y=&#34;2&#34;"></script>'


def test_empty_set_renders_empty():
    assert str(StylesheetSet()) == ""


def test_bundle_register_and_copy():
    parent = AssetBundle(["page.css"], ["page.js"])
    child = AssetBundle(["card.css", "page.css"], ["card.js"])

    snapshot = parent.copy()
    parent.register(child)

    assert list(parent.css) == ["page.css", "card.css"]
    assert list(parent.js) == ["page.js", "card.js"]
    assert list(snapshot.css) == ["page.css"]


def test_bundle_render():
    bundle = AssetBundle(["a.css"], ["a.js"])
    assert bundle.render() == (
        '<link rel="stylesheet" type="text/css" href="a.css">\n'
        '<script src="a.js"></script>'
    )
    assert AssetBundle().render() == ""
