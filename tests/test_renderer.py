from directory import Attendee, Role
from layout import default_layout
from renderer import ImageElement, TextElement, badge_html, render

ATTENDEE = Attendee(
    id=7,
    name="Ada Lovelace",
    email="ada@example.com",
    company="Analytical Engines",
    mobile="",
    designation="",
    role=Role.FACULTY,
    barcode="0b7e2c4e-1111-4222-8333-444455556666",
)


def _by_field(elements):
    return {el.field: el for el in elements}


def test_default_layout_elements_in_order():
    elements = render(default_layout(), ATTENDEE)
    assert [el.field for el in elements] == [
        "name",
        "email",
        "company",
        "mobile",
        "designation",
        "role",
        "barcode",
    ]


def test_text_element_positions_and_style():
    name = _by_field(render(default_layout(), ATTENDEE))["name"]
    assert name == TextElement(
        field="name", text="Ada Lovelace", x=20, y=20, font_size=20, bold=True
    )


def test_empty_optional_fields_use_placeholder():
    els = _by_field(render(default_layout(), ATTENDEE))
    assert els["mobile"].text == "—"
    assert els["designation"].text == "—"
    assert els["role"].text == "Faculty"


def test_id_field_format():
    layout = default_layout()
    layout["fields"]["id"]["enabled"] = True
    assert _by_field(render(layout, ATTENDEE))["id"].text == "ID: 7"


def test_render_is_deterministic():
    layout = default_layout()
    layout["fields"]["qrcode"]["enabled"] = True
    assert render(layout, ATTENDEE) == render(layout, ATTENDEE)
    assert badge_html(layout, render(layout, ATTENDEE)) == badge_html(
        layout, render(layout, ATTENDEE)
    )


def test_disabling_one_field_removes_only_that_element():
    layout = default_layout()
    before = render(layout, ATTENDEE)
    layout["fields"]["mobile"]["enabled"] = False
    after = render(layout, ATTENDEE)
    assert [el for el in before if el.field != "mobile"] == after


def test_barcode_and_qr_reference_the_token():
    layout = default_layout()
    layout["fields"]["qrcode"]["enabled"] = True
    els = _by_field(render(layout, ATTENDEE))
    assert els["barcode"] == ImageElement(
        field="barcode",
        kind="code128",
        data=ATTENDEE.barcode,
        x=230,
        y=60,
        width=90,
        height=45,
        scale=1.0,
    )
    qr = els["qrcode"]
    assert (qr.kind, qr.data, qr.width, qr.height) == ("qr", ATTENDEE.barcode, 70, 70)
    assert els["barcode"].src.startswith("/barcode-img?data=0b7e2c4e-")
    assert "&w=90&h=45&s=1" in els["barcode"].src
    assert qr.src == f"/qr-img?data={ATTENDEE.barcode}&size=70"


def test_missing_fields_are_skipped_and_partial_fields_use_defaults():
    layout = {"fields": {"name": {"enabled": True, "x": 5}}}
    elements = render(layout, ATTENDEE)
    assert elements == [
        TextElement(field="name", text="Ada Lovelace", x=5, y=20, font_size=20, bold=True)
    ]
    assert render({}, ATTENDEE) == []


def test_badge_html_positions_and_escapes():
    attendee = ATTENDEE.model_copy(update={"name": "<b>Bobby</b>"})
    layout = default_layout()
    layout["card"]["border"] = False
    html = badge_html(layout, render(layout, attendee))
    assert 'class="badge-print"' in html
    assert "width:336px;height:210px;background:#ffffff;border:none;" in html
    assert "&lt;b&gt;Bobby&lt;/b&gt;" in html
    assert "<b>Bobby" not in html
    assert "left:20px;top:20px;" in html
    assert "font-size:20px;font-weight:bold;" in html
    assert 'src="/barcode-img?data=' in html


def test_non_numeric_layout_values_fall_back_to_defaults():
    hostile = '0;"><script>alert(1)</script>'
    layout = default_layout()
    layout["fields"]["name"]["x"] = hostile
    layout["fields"]["name"]["fontSize"] = "nan"
    layout["fields"]["barcode"]["width"] = hostile
    layout["card"]["width"] = hostile
    layout["card"]["background"] = '#fff"><script>alert(2)</script>'

    elements = render(layout, ATTENDEE)
    name = _by_field(elements)["name"]
    assert (name.x, name.font_size) == (20, 20)
    assert _by_field(elements)["barcode"].width == 90

    html = badge_html(layout, elements)
    assert "<script>" not in html
    assert "width:336px;" in html
    assert "left:20px;top:20px;" in html


def test_numeric_strings_are_accepted():
    layout = default_layout()
    layout["fields"]["name"]["x"] = "35"
    assert _by_field(render(layout, ATTENDEE))["name"].x == 35
