"""
Print status model.

A PrintStatus is produced once per print attempt by whichever transport
completed, returned to the caller, and logged. It is never stored.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Any, Optional


@dataclass(frozen=True)
class PrintStatus:
    """
    Normalized outcome of a print attempt.

    Exactly one of these holds:
        success=True  with printer_name and job_id, no error
        success=False with error, no printer_name or job_id

    Construct through create_success() / create_failed().
    """

    success: bool
    printer_name: Optional[str] = None
    job_id: Optional[str] = None
    error: Optional[str] = None

    def __post_init__(self):
        if self.success:
            if not self.printer_name or not self.job_id:
                raise ValueError("Successful PrintStatus needs printer_name and job_id")
            if self.error:
                raise ValueError("Successful PrintStatus cannot carry an error")
        else:
            if not self.error:
                raise ValueError("Failed PrintStatus needs an error message")
            if self.printer_name or self.job_id:
                raise ValueError("Failed PrintStatus cannot carry printer_name or job_id")

    @classmethod
    def create_success(cls, printer_name: str, job_id: str) -> "PrintStatus":
        """
        Create a status for a completed print.

        Args:
            printer_name: Printer that accepted the job ("thermal" for ESC/POS)
            job_id: Job identifier from the print subsystem

        Returns:
            PrintStatus with success=True
        """
        return cls(success=True, printer_name=printer_name, job_id=job_id)

    @classmethod
    def create_failed(cls, error: str) -> "PrintStatus":
        """
        Create a status for a failed print.

        Args:
            error: Description of the failure (empty messages get a placeholder)

        Returns:
            PrintStatus with success=False
        """
        return cls(success=False, error=error or "Unknown print error")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase JSON shape."""
        data: Dict[str, Any] = {"success": self.success}
        if self.printer_name:
            data["printerName"] = self.printer_name
        if self.job_id:
            data["jobId"] = self.job_id
        if self.error:
            data["error"] = self.error
        return data
