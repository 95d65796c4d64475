"""
Tests for the applicant CSV export helpers.
Run: pytest tests/test_export.py -v
"""

import csv
import io
from datetime import datetime

from onboard.utils.export import (
    APPLICANT_COLUMNS,
    create_csv_response_headers,
    export_applicants_to_csv,
)


def parse(content):
    return list(csv.DictReader(io.StringIO(content)))


class TestExportApplicants:

    def test_header_only_when_empty(self):
        content = export_applicants_to_csv([])

        assert content.strip() == ",".join(APPLICANT_COLUMNS)

    def test_rows_use_external_status(self):
        applicants = [
            {
                "status": "Selected",
                "date_applied": datetime(2026, 3, 14, 9, 30),
                "job_seeker_doc": {
                    "email": "ada@onboard.io",
                    "personal_info": {"full_name": "Ada Lovelace", "skills": ["python", "math"]},
                },
            },
            {"status": "Pending", "date_applied": None, "job_seeker_doc": None},
        ]

        rows = parse(export_applicants_to_csv(applicants))

        assert rows[0] == {
            "Full Name": "Ada Lovelace",
            "Email": "ada@onboard.io",
            "Status": "Approved",
            "Skills": "python, math",
            "Date Applied": "2026-03-14",
        }
        assert rows[1]["Status"] == "Pending"
        assert rows[1]["Email"] == ""

    def test_response_headers(self):
        headers = create_csv_response_headers("applicants_x")

        assert headers["Content-Disposition"] == "attachment; filename=applicants_x.csv"
        assert headers["Content-Type"] == "text/csv"
