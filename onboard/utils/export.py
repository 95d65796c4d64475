"""
CSV export of a session's applicants.
Used by organizations to download everyone who applied to one of their sessions.
"""

import csv
import io
from datetime import datetime
from typing import Any, Dict, List

from onboard.schemas.status import to_external

APPLICANT_COLUMNS = [
    'Full Name',
    'Email',
    'Status',
    'Skills',
    'Date Applied',
]


def export_applicants_to_csv(applicants: List[Dict[str, Any]]) -> str:
    """
    Export applicants of one session to CSV format.

    Args:
        applicants: Application documents, each stitched with a ``job_seeker_doc``

    Returns:
        CSV string ready to be downloaded
    """

    output = io.StringIO()

    writer = csv.DictWriter(output, fieldnames=APPLICANT_COLUMNS)
    writer.writeheader()

    for app in applicants:
        seeker = app.get('job_seeker_doc') or {}
        info = seeker.get('personal_info') or {}
        applied = app.get('date_applied')

        writer.writerow({
            'Full Name': info.get('full_name') or '',
            'Email': seeker.get('email', ''),
            'Status': to_external(app.get('status', '')),
            'Skills': ', '.join(info.get('skills') or []),
            'Date Applied': applied.strftime('%Y-%m-%d') if isinstance(applied, datetime) else '',
        })

    csv_string = output.getvalue()
    output.close()

    return csv_string


def create_csv_response_headers(filename: str) -> Dict[str, str]:
    """Headers for a CSV download response (``filename`` without extension)."""

    return {
        "Content-Disposition": f"attachment; filename={filename}.csv",
        "Content-Type": "text/csv"
    }
