import csv
import logging
from dataclasses import dataclass, field
from io import StringIO
from typing import Iterable, List

from directory import Attendee, AttendeeDirectory, Role, parse_attendee
from errors import ValidationError

logger = logging.getLogger(__name__)

IMPORT_COLUMNS = ["name", "email", "company", "mobile", "designation", "role"]
EXPORT_HEADER = [
    "ID",
    "Name",
    "Email",
    "Company",
    "Mobile",
    "Designation",
    "Role",
    "Barcode",
    "Printed",
    "Checked-In",
]


@dataclass
class ImportResult:
    imported: List[Attendee] = field(default_factory=list)
    skipped_rows: List[int] = field(default_factory=list)


def import_csv(text: str, directory: AttendeeDirectory) -> ImportResult:
    """Register one attendee per CSV row; rows without name or email are skipped."""
    result = ImportResult()
    reader = csv.DictReader(StringIO(text.lstrip("\ufeff")))
    roles = {r.value for r in Role}

    # Data rows start on line 2, after the header
    for line_no, row in enumerate(reader, start=2):
        clean_row = {k.lower().strip(): (v or "").strip() for k, v in row.items() if k}
        data = {col: clean_row.get(col, "") for col in IMPORT_COLUMNS}
        if data["role"] not in roles:
            data["role"] = Role.DELEGATE
        try:
            attendee_in = parse_attendee(**data)
        except ValidationError as e:
            logger.info("Skipping CSV line %d: %s", line_no, e)
            result.skipped_rows.append(line_no)
            continue
        result.imported.append(directory.register(attendee_in))

    logger.info(
        "Imported %d attendees from CSV, skipped %d rows",
        len(result.imported),
        len(result.skipped_rows),
    )
    return result


def export_csv(attendees: Iterable[Attendee]) -> StringIO:
    """Full attendee export with flags written as 0/1."""
    output = StringIO()
    writer = csv.writer(output)
    writer.writerow(EXPORT_HEADER)
    writer.writerows(
        [
            a.id,
            a.name,
            a.email,
            a.company,
            a.mobile,
            a.designation,
            a.role.value,
            a.barcode,
            int(a.printed),
            int(a.checked_in),
        ]
        for a in attendees
    )
    output.seek(0)
    return output
