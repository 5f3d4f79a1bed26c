"""Best-effort mirror of accepted marks into an Excel workbook.

One worksheet per class. Rows are only ever appended. A failure here is
logged and never reaches the caller that submitted the mark.
"""
import logging
import os
import threading
from threading import Thread
from typing import Dict, Optional

import openpyxl
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

HEADERS = ['Student Name', 'Admission Number', 'Subject', 'CE', 'TE', 'Total', 'Result', 'Submitted At']
ROW_KEYS = ['studentName', 'admissionNumber', 'subject', 'ce', 'te', 'total', 'result', 'submittedAt']

# Characters Excel refuses in sheet titles
_INVALID_TITLE_CHARS = '[]:*?/\\'


def sheet_title(class_name: str) -> str:
    title = ''.join('_' if ch in _INVALID_TITLE_CHARS else ch for ch in (class_name or 'Unassigned'))
    return title[:31] or 'Unassigned'


class SheetMirror:
    def __init__(self, workbook_path: Optional[str] = None, run_async: bool = True):
        self.logger = logging.getLogger(__name__)
        self.workbook_path = workbook_path
        self.run_async = run_async
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return bool(self.workbook_path)

    def mirror(self, class_name: str, row: Dict) -> Optional[Thread]:
        """Queue ``row`` for the class sheet. Never raises."""
        if not self.enabled:
            return None
        if not self.run_async:
            self._safe_append(class_name, row)
            return None
        thread = Thread(target=self._safe_append, args=(class_name, row), daemon=True)
        thread.start()
        return thread

    def _safe_append(self, class_name: str, row: Dict) -> bool:
        try:
            self.append_row(class_name, row)
            return True
        except Exception:
            self.logger.exception(
                "Failed to mirror mark for %s/%s to %s",
                row.get('admissionNumber'), row.get('subject'), self.workbook_path,
            )
            return False

    def append_row(self, class_name: str, row: Dict) -> None:
        with self._lock:
            if os.path.exists(self.workbook_path):
                wb = openpyxl.load_workbook(self.workbook_path)
            else:
                directory = os.path.dirname(self.workbook_path)
                if directory:
                    os.makedirs(directory, exist_ok=True)
                wb = openpyxl.Workbook()
                # Drop the default empty sheet; class sheets are created on demand
                wb.remove(wb.active)
            ws = self._class_sheet(wb, class_name)
            ws.append([row.get(key) for key in ROW_KEYS])
            wb.save(self.workbook_path)

    def _class_sheet(self, wb, class_name: str):
        title = sheet_title(class_name)
        if title in wb.sheetnames:
            return wb[title]
        ws = wb.create_sheet(title)
        header_font = Font(bold=True, color="FFFFFF")
        header_fill = PatternFill(start_color="333333", end_color="333333", fill_type="solid")
        for col, header in enumerate(HEADERS, 1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.font = header_font
            cell.fill = header_fill
            ws.column_dimensions[get_column_letter(col)].width = max(12, len(header) + 4)
        return ws

