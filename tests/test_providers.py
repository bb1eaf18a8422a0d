"""Tests for tile URL providers."""

from slippymap.providers import src_set, wikimedia


def test_wikimedia_urls() -> None:
    assert wikimedia(1, 2, 3) == "https://maps.wikimedia.org/osm-intl/3/1/2.png"
    assert wikimedia(1, 2, 3, 1) == "https://maps.wikimedia.org/osm-intl/3/1/2.png"
    assert wikimedia(1, 2, 3, 2) == "https://maps.wikimedia.org/osm-intl/3/1/2@2x.png"
    assert wikimedia(1, 2, 3, 3.5) == "https://maps.wikimedia.org/osm-intl/3/1/2@2x.png"


def test_src_set_lists_each_ratio() -> None:
    assert src_set([1, 2], wikimedia, 1, 2, 3) == (
        "https://maps.wikimedia.org/osm-intl/3/1/2.png, "
        "https://maps.wikimedia.org/osm-intl/3/1/2@2x.png 2x"
    )


def test_src_set_with_custom_provider() -> None:
    def provider(x, y, z, dpr=None):
        return f"tiles/{z}/{x}/{y}?dpr={dpr}"

    assert src_set([1.5], provider, 4, 5, 6) == "tiles/6/4/5?dpr=1.5 1.5x"


def test_src_set_empty() -> None:
    assert src_set([], wikimedia, 0, 0, 0) == ""
