"""HTML pages, built as f-strings styled with Tailwind from the CDN."""

import json
from html import escape
from typing import List, Optional

from directory import Attendee, Role
from layout import TEXT_FIELDS

TAILWIND = '<script src="https://cdn.tailwindcss.com"></script>'

FIELD_LABELS = {
    "name": "Name",
    "email": "Email",
    "company": "Company",
    "mobile": "Mobile",
    "designation": "Designation",
    "role": "Role",
    "id": "ID",
}


def _page(title: str, body: str, body_class: str = "bg-gray-100 p-6", head: str = "") -> str:
    return f"""<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <title>{escape(title)}</title>
    {TAILWIND}
    {head}
  </head>
  <body class="{body_class}">
{body}
  </body>
</html>
"""


def _role_options(selected: str, include_all: bool = False) -> str:
    options = []
    if include_all:
        sel = " selected" if not selected else ""
        options.append(f'<option value=""{sel}>All Roles</option>')
    for role in Role:
        sel = " selected" if role.value == selected else ""
        options.append(f'<option value="{role.value}"{sel}>{role.value}</option>')
    return "".join(options)


def message_page(title: str, message: str, link: str = "/", link_text: str = "Back Home") -> str:
    body = f"""
    <div class="max-w-sm mx-auto bg-white p-6 rounded shadow text-center space-y-3">
      <h2 class="text-xl font-bold">{escape(title)}</h2>
      <p>{escape(message)}</p>
      <a href="{escape(link)}" class="text-blue-600 underline text-sm">{escape(link_text)}</a>
    </div>"""
    return _page(title, body)


# -------------------
# --- REGISTRATION ---
# -------------------
def home_page() -> str:
    body = f"""
    <div class="max-w-md mx-auto bg-white p-6 rounded-2xl shadow-xl space-y-4">
      <h1 class="text-2xl font-bold text-gray-800">Event Registration</h1>
      <form method="post" action="/register" class="space-y-3">
        <input name="name" required placeholder="Full Name *" class="w-full border rounded-lg px-3 py-2">
        <input name="email" type="email" required placeholder="Email *" class="w-full border rounded-lg px-3 py-2">
        <input name="company" placeholder="Company" class="w-full border rounded-lg px-3 py-2">
        <input name="mobile" placeholder="Mobile" class="w-full border rounded-lg px-3 py-2">
        <input name="designation" placeholder="Designation" class="w-full border rounded-lg px-3 py-2">
        <select name="role" class="w-full border rounded-lg px-3 py-2">{_role_options(Role.DELEGATE.value)}</select>
        <button type="submit" class="w-full bg-blue-600 hover:bg-blue-700 text-white font-semibold py-2 rounded-lg">Register &amp; Print Badge</button>
      </form>
      <div class="flex justify-center gap-4 text-sm">
        <a href="/scan" class="text-indigo-600 underline">USB Scan</a>
        <a href="/camera-scan" class="text-green-600 underline">Camera Scan</a>
        <a href="/admin" class="text-gray-600 underline">Admin</a>
      </div>
    </div>"""
    return _page("Event Registration", body, "bg-gray-100 flex flex-col items-center min-h-screen p-4")


# -------------------
# --- ADMIN ---
# -------------------
def _attendee_row(a: Attendee) -> str:
    row_color = "bg-green-100" if a.checked_in else ("bg-blue-100" if a.printed else "")
    inp = "border px-1 py-0.5 text-xs rounded"
    return f"""
<tr class="{row_color}">
  <td class="px-2 py-1">
    <form method="post" action="/update" class="inline-flex flex-wrap gap-2 items-center">
      <input name="id" value="{a.id}" readonly class="w-14 bg-gray-200 px-1 py-0.5 text-xs text-center rounded">
      <input name="name" value="{escape(a.name)}" class="w-32 {inp}">
      <input name="email" value="{escape(a.email)}" class="w-48 {inp}">
      <input name="company" value="{escape(a.company)}" class="w-32 {inp}">
      <input name="mobile" value="{escape(a.mobile)}" class="w-28 {inp}">
      <input name="designation" value="{escape(a.designation)}" class="w-32 {inp}">
      <select name="role" class="{inp}">{_role_options(a.role.value)}</select>
      <input value="{escape(a.barcode)}" readonly class="w-40 bg-gray-200 px-1 py-0.5 text-xs rounded">
      <button title="Save" class="text-green-600 px-1">Save</button>
    </form>
    <a href="/print?id={a.id}" target="_blank" title="Print" class="text-blue-600 px-1">Print</a>
    <form method="post" action="/delete" class="inline" onsubmit="return confirm({escape(json.dumps('Delete ' + a.name + '?'))})">
      <input type="hidden" name="id" value="{a.id}">
      <button title="Delete" class="text-red-600 px-1">Delete</button>
    </form>
  </td>
</tr>"""


def admin_page(
    user: str,
    attendees: List[Attendee],
    search: str = "",
    role: str = "",
    notice: Optional[str] = None,
) -> str:
    rows = "".join(_attendee_row(a) for a in attendees)
    if not rows:
        rows = '<tr><td class="p-4 text-center text-gray-500">No attendees.</td></tr>'
    notice_html = (
        f'<div class="mb-4 px-3 py-2 rounded bg-yellow-100 text-sm">{escape(notice)}</div>'
        if notice
        else ""
    )
    body = f"""
  <div class="max-w-full mx-auto bg-white p-6 rounded shadow">
    <h1 class="text-2xl font-bold mb-4">Admin Panel</h1>
    <p class="text-sm text-gray-600 mb-4">Signed in as {escape(user)}</p>
    {notice_html}
    <div class="flex flex-wrap gap-4 mb-4 items-center text-sm">
      <a href="/print-designer" target="_blank" class="text-purple-600 underline">Print Designer</a>
      <a href="/camera-scan" target="_blank" class="text-green-600 underline">Camera Scan</a>
      <a href="/scan" target="_blank" class="text-indigo-600 underline">USB Scan</a>
      <a href="/" class="text-blue-600 underline">Home</a>
      <a href="/export-csv" class="text-teal-600 underline">Export CSV</a>
    </div>

    <form method="get" action="/admin" class="flex flex-wrap gap-2 mb-4 text-sm">
      <input name="search" placeholder="Search..." value="{escape(search)}" class="border px-2 py-1 rounded">
      <select name="role" class="border px-2 py-1 rounded">{_role_options(role, include_all=True)}</select>
      <button class="bg-blue-600 text-white px-3 py-1 rounded">Search/Filter</button>
      <a href="/admin" class="underline text-gray-600 px-2 py-1">Reset</a>
    </form>

    <form action="/upload-csv" method="post" enctype="multipart/form-data" class="flex gap-2 mb-6 text-sm items-center">
      <input type="file" name="csvfile" accept=".csv" required class="text-sm">
      <button class="bg-green-600 text-white px-3 py-1 rounded">Upload CSV</button>
    </form>

    <div class="text-xs mb-2 space-x-2">
      <span class="px-2 py-1 rounded bg-blue-100">Printed</span>
      <span class="px-2 py-1 rounded bg-green-100">Checked-In</span>
      <span class="px-2 py-1 rounded bg-gray-100 border">Pending</span>
    </div>

    <div class="overflow-x-auto">
      <table class="min-w-full text-left text-xs sm:text-sm">
        <tbody>
          {rows}
        </tbody>
      </table>
    </div>
  </div>"""
    return _page("Admin Panel", body)


# -------------------
# --- SCANNING ---
# -------------------
def scan_page() -> str:
    body = """
  <div class="max-w-sm mx-auto bg-white p-6 rounded shadow text-center space-y-3">
    <h2 class="text-xl font-bold mb-2">USB Barcode Scan</h2>
    <form method="post" action="/verify" class="space-y-2">
      <input name="barcode" autofocus autocomplete="off" placeholder="Scan barcode here" class="w-full border px-3 py-2 rounded">
      <button class="w-full bg-blue-600 text-white py-2 rounded">Verify</button>
    </form>
    <a href="/" class="text-blue-600 underline text-sm">Back Home</a>
  </div>"""
    return _page("USB Scan", body)


def camera_scan_page() -> str:
    body = """
  <h2 class="text-2xl font-bold mb-4">Camera Scan</h2>
  <div id="interactive" class="mx-auto w-full max-w-md aspect-video bg-black"></div>
  <div id="result" class="mt-4 text-lg">Waiting...</div>
  <script>
    Quagga.init({
      inputStream: {
        name: "Live",
        type: "LiveStream",
        target: document.querySelector('#interactive'),
        constraints: { facingMode: "environment" }
      },
      decoder: { readers: ["code_128_reader"] }
    }, function (err) {
      if (err) { console.error(err); document.getElementById('result').innerText = 'Camera error'; return; }
      Quagga.start();
    });
    Quagga.onDetected(function (data) {
      const code = data.codeResult.code;
      document.getElementById('result').innerText = 'Scanned: ' + code;
      Quagga.stop();
      setTimeout(() => { window.location = '/verify-camera?barcode=' + encodeURIComponent(code); }, 500);
    });
  </script>
  <a href="/" class="text-blue-600 underline text-sm">Back Home</a>"""
    head = '<script src="https://unpkg.com/quagga/dist/quagga.min.js"></script>'
    return _page("Camera Scan", body, "bg-gray-100 p-6 text-center", head)


def verified_page(attendee: Attendee, again: str) -> str:
    body = f"""
  <div class="max-w-sm mx-auto bg-white p-6 rounded shadow text-center space-y-3">
    <h2 class="text-2xl font-bold text-green-700">Verified</h2>
    <p>Name: {escape(attendee.name)}</p>
    <p>Role: {escape(attendee.role.value)}</p>
    <a href="{again}" class="text-blue-600 underline text-sm">Scan another</a>
  </div>"""
    return _page("Verified", body)


# -------------------
# --- PRINTING ---
# -------------------
def print_page(attendee: Attendee, badge: str) -> str:
    head = """<style>
@media print {
 body * { visibility: hidden; }
 .badge-print, .badge-print * { visibility: visible; }
 .badge-print { position: absolute; top: 0; left: 0; box-shadow: none; }
 .print-btn { display: none !important; }
}
.badge-print { box-shadow: 0 0 8px rgba(0,0,0,.2); margin: auto; font-family: sans-serif; }
</style>"""
    body = f"""
<div class="print-btn mb-4 space-x-4">
  <button onclick="window.print()" class="bg-blue-600 text-white px-3 py-1 rounded">Print</button>
  <a href="/admin" class="text-blue-600 underline">Back</a>
</div>
{badge}"""
    return _page(f"Print Badge: {attendee.name}", body, "bg-gray-100 p-10", head)


def _number(name: str, label: str, value, cls: str = "block", step: str = "1") -> str:
    return (
        f'<label class="{cls}">{label}<input type="number" step="{step}" name="{name}" '
        f'value="{escape(str(value))}" class="w-full border px-2 py-1 rounded"></label>'
    )


def _checkbox(name: str, label: str, checked) -> str:
    return (
        f'<label class="inline-flex items-center gap-2 col-span-2"><input type="checkbox" '
        f'name="{name}"{" checked" if checked else ""}> {label}</label>'
    )


def _section(doc, key: str) -> dict:
    value = doc.get(key) if isinstance(doc, dict) else None
    return value if isinstance(value, dict) else {}


def _control(title: str, inner: str) -> str:
    return f"""
  <div class="border rounded p-3">
    <h3 class="font-semibold mb-2">{title}</h3>
    <div class="grid grid-cols-2 gap-2">{inner}</div>
  </div>"""


def _field_controls(layout: dict) -> str:
    fields = _section(layout, "fields")
    parts = []
    for key in TEXT_FIELDS:
        o = _section(fields, key)
        parts.append(
            _control(
                FIELD_LABELS[key],
                _checkbox(f"{key}.enabled", "Show", o.get("enabled"))
                + _number(f"{key}.x", "X", o.get("x", 0))
                + _number(f"{key}.y", "Y", o.get("y", 0))
                + _number(f"{key}.fontSize", "Font(px)", o.get("fontSize", 14), "block col-span-2")
                + _checkbox(f"{key}.bold", "Bold", o.get("bold")),
            )
        )
    b = _section(fields, "barcode")
    parts.append(
        _control(
            "Barcode",
            _checkbox("barcode.enabled", "Show", b.get("enabled"))
            + _number("barcode.x", "X", b.get("x", 0))
            + _number("barcode.y", "Y", b.get("y", 0))
            + _number("barcode.width", "Width", b.get("width", 90))
            + _number("barcode.height", "Height", b.get("height", 45))
            + _number("barcode.scale", "Scale", b.get("scale", 1.0), "block col-span-2", "0.1"),
        )
    )
    q = _section(fields, "qrcode")
    parts.append(
        _control(
            "QR Code",
            _checkbox("qrcode.enabled", "Show", q.get("enabled"))
            + _number("qrcode.x", "X", q.get("x", 0))
            + _number("qrcode.y", "Y", q.get("y", 0))
            + _number("qrcode.size", "Size(px)", q.get("size", 70), "block col-span-2"),
        )
    )
    return "".join(parts)


def designer_page(layout: dict, attendee: Attendee, preview_id: Optional[int], badge: str) -> str:
    card = _section(layout, "card")
    # </script> inside a JSON string would end the script block early
    layout_json = json.dumps(layout).replace("</", "<\\/")
    background = escape(str(card.get("background", "#ffffff")))
    card_controls = _control(
        "Card",
        _number("card.width", "Width(px)", card.get("width", 336))
        + _number("card.height", "Height(px)", card.get("height", 210))
        + '<label class="block col-span-2">Background<input type="color" name="card.background" '
        + f'value="{background}" class="w-full h-8 border rounded"></label>'
        + _checkbox("card.border", "Show Border", card.get("border")),
    )
    text_fields = json.dumps(list(TEXT_FIELDS))
    body = f"""
  <div class="grid md:grid-cols-2 gap-6">
    <div>
      <h1 class="text-xl font-bold mb-2">Print Designer</h1>
      <p class="text-sm mb-4">Adjust layout. Save to apply for future prints.</p>
      <form id="layoutForm" class="space-y-4 text-sm">
        {card_controls}
        {_field_controls(layout)}
        <button type="button" id="saveBtn" class="bg-blue-600 text-white px-4 py-2 rounded text-sm">Save Layout</button>
        <span id="saveStatus" class="text-green-600 text-xs hidden">Saved!</span>
      </form>

      <hr class="my-4">
      <form method="get" action="/print-designer" class="flex items-center gap-2 text-sm">
        <label>Preview ID:<input type="number" name="id" value="{preview_id or ''}" class="border px-2 py-1 rounded w-24"></label>
        <button class="bg-gray-600 text-white px-3 py-1 rounded">Load</button>
      </form>
      <div class="mt-4 text-sm">
        <a href="/admin" class="text-blue-600 underline">Back to Admin</a>
      </div>
    </div>

    <div>
      <h2 class="font-semibold mb-2">Live Preview: {escape(attendee.name)}</h2>
      <div id="badgePreview" class="mx-auto">{badge}</div>
    </div>
  </div>

<script>
const layoutData = {layout_json};
const previewId = {json.dumps(preview_id)};

function getVal(form, path, def) {{
  const el = form.querySelector('[name="' + path + '"]');
  if (!el) return def;
  if (el.type === 'checkbox') return el.checked;
  if (el.type === 'number') return Number(el.value);
  return el.value;
}}
function pick(f, key, def, names) {{
  const out = {{}};
  names.forEach(n => out[n] = getVal(f, key + '.' + n, (def || {{}})[n]));
  return out;
}}
function buildLayoutFromForm() {{
  const f = document.getElementById('layoutForm');
  const d = layoutData.fields || {{}};
  const fields = {{}};
  {text_fields}.forEach(k => fields[k] = pick(f, k, d[k], ['enabled', 'x', 'y', 'fontSize', 'bold']));
  fields.barcode = pick(f, 'barcode', d.barcode, ['enabled', 'x', 'y', 'width', 'height', 'scale']);
  fields.qrcode = pick(f, 'qrcode', d.qrcode, ['enabled', 'x', 'y', 'size']);
  const card = pick(f, 'card', layoutData.card, ['width', 'height', 'background', 'border']);
  card.unit = 'px';
  return {{ card: card, fields: fields }};
}}
let pending = null;
async function renderPreview() {{
  const body = JSON.stringify({{ layout: buildLayoutFromForm(), id: previewId }});
  const current = pending = fetch('/api/preview', {{
    method: 'POST',
    headers: {{ 'Content-Type': 'application/json' }},
    body: body
  }});
  const resp = await current;
  if (current !== pending || !resp.ok) return;
  document.getElementById('badgePreview').innerHTML = await resp.text();
}}
document.getElementById('layoutForm').addEventListener('input', renderPreview);
document.getElementById('saveBtn').addEventListener('click', () => {{
  fetch('/save-layout', {{
    method: 'POST',
    headers: {{ 'Content-Type': 'application/json' }},
    body: JSON.stringify(buildLayoutFromForm())
  }})
    .then(r => r.ok ? r.text() : Promise.reject())
    .then(() => {{
      document.getElementById('saveStatus').classList.remove('hidden');
      setTimeout(() => document.getElementById('saveStatus').classList.add('hidden'), 1500);
    }})
    .catch(() => alert('Save failed'));
}});
</script>"""
    return _page("Print Designer", body, "bg-gray-100 p-4")
