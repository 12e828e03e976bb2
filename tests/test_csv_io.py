import csv
from io import StringIO

from csv_io import EXPORT_HEADER, export_csv, import_csv
from directory import Role


def test_import_registers_rows_in_order(directory):
    text = (
        "\ufeffName, Email ,Company,Mobile,Designation,Role\n"
        "Ada,ada@example.com,ACME,123,CTO,Faculty\n"
        "Grace,grace@example.com,,,,\n"
    )
    result = import_csv(text, directory)

    assert [a.id for a in result.imported] == [1, 2]
    assert result.skipped_rows == []
    ada, grace = directory.list()
    assert (ada.name, ada.company, ada.mobile, ada.designation, ada.role) == (
        "Ada",
        "ACME",
        "123",
        "CTO",
        Role.FACULTY,
    )
    assert grace.role is Role.DELEGATE
    assert ada.barcode != grace.barcode


def test_import_fills_gaps(directory, make_attendee):
    for i in range(3):
        make_attendee(email=f"a{i}@example.com")
    directory.delete(2)

    result = import_csv("name,email\nX,x@example.com\nY,y@example.com\n", directory)
    assert [a.id for a in result.imported] == [2, 4]


def test_import_skips_rows_without_name_or_email(directory):
    text = "name,email,role\n,nobody@example.com,\nAda,ada@example.com,Wizard\nBob,,\n"
    result = import_csv(text, directory)

    assert result.skipped_rows == [2, 4]
    assert [a.name for a in result.imported] == ["Ada"]
    assert result.imported[0].role is Role.DELEGATE


def test_export_columns_and_flags(directory, make_attendee):
    a = make_attendee(company="ACME", role="Organiser")
    b = make_attendee(name="Grace", email="grace@example.com")
    directory.mark_printed(a.id)
    directory.check_in(b.barcode)

    rows = list(csv.reader(StringIO(export_csv(directory.list()).getvalue())))
    assert rows[0] == EXPORT_HEADER
    assert rows[1] == [
        "1",
        "Ada Lovelace",
        "ada@example.com",
        "ACME",
        "",
        "",
        "Organiser",
        a.barcode,
        "1",
        "0",
    ]
    assert rows[2][-2:] == ["0", "1"]
    assert len(rows) == 3
