import pytest

from theming.palette import generate_color_palette, hex_to_hsl, normalize_hex


def test_hex_to_hsl_surgical_teal():
    assert hex_to_hsl("#00a0a0") == (180, 100, 31)


def test_hex_to_hsl_dark_blue():
    assert hex_to_hsl("#112233") == (210, 50, 13)


def test_hex_to_hsl_grey_has_no_hue_or_saturation():
    assert hex_to_hsl("#808080") == (0, 0, 50)


def test_hex_to_hsl_short_form_matches_long_form():
    assert hex_to_hsl("#f00") == hex_to_hsl("#ff0000") == (0, 100, 50)


def test_hex_to_hsl_rejects_non_hex():
    with pytest.raises(ValueError):
        hex_to_hsl("teal")


def test_normalize_hex():
    assert normalize_hex(" #112233 ") == "#112233"
    assert normalize_hex("#abc") == "#abc"
    assert normalize_hex("#12345") is None
    assert normalize_hex("rgb(0,0,0)") is None
    assert normalize_hex(None) is None


def test_palette_keeps_hue_and_saturation():
    palette = generate_color_palette("#00a0a0")
    assert list(palette) == [50, 100, 200, 300, 400, 500, 600, 700, 800, 900]
    assert palette[50] == "hsl(180, 100%, 95%)"
    assert palette[500] == "hsl(180, 100%, 45%)"
    assert palette[900] == "hsl(180, 100%, 14%)"
