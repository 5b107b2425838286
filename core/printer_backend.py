"""
Platform print backends.

Each backend knows how to enumerate system printers and how to hand a
PDF file to the OS print subsystem. A backend is selected ONCE at
application startup (select_backend) instead of branching on the
platform for every print.

Variants:
    LinuxBackend    - CUPS: lpstat / lp
    MacOSBackend    - CUPS: lpstat / lpr / lpq
    WindowsBackend  - PowerShell: Win32_Printer / Start-Process -Verb Print,
                      with one PrintTo fallback

Contract:
    list_printers()  -> list of printer names (empty on failure)
    print_file()     -> job id (or None if the OS gave none);
                        raises PrintCommandError when no success marker
    fallback_print() -> True if the alternate mechanism reported success
"""

from __future__ import annotations

import logging
import platform
import re
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence

from .exceptions import PrintCommandError


DEFAULT_COMMAND_TIMEOUT = 30.0

# lp: "request id is Office-42 (1 file(s))"
LP_REQUEST_ID = re.compile(r"request id is (\S+)")


class PrinterBackend:
    """
    Base class for OS print backends.

    Subclasses implement _list_command(), _parse_printers() and
    print_file(). Command execution, timeouts and error conversion live
    here.
    """

    name = "generic"
    supports_fallback = False

    def __init__(
        self,
        timeout_seconds: float = DEFAULT_COMMAND_TIMEOUT,
        logger: Optional[logging.Logger] = None
    ):
        self.timeout_seconds = timeout_seconds
        self._logger = logger or logging.getLogger(
            f"order_print_server.core.printer_backend.{self.name}"
        )

    def _run(self, command: Sequence[str]) -> subprocess.CompletedProcess:
        """
        Run a command and return the completed process.

        Raises:
            PrintCommandError: On missing executable, timeout or non-zero exit
        """
        self._logger.debug(f"Running: {' '.join(command)}")
        try:
            result = subprocess.run(
                list(command),
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
            )
        except FileNotFoundError as e:
            raise PrintCommandError(command, f"executable not found ({e})")
        except subprocess.TimeoutExpired:
            raise PrintCommandError(command, f"timed out after {self.timeout_seconds:.0f}s")

        if result.returncode != 0:
            reason = (result.stderr or result.stdout or "no output").strip()
            raise PrintCommandError(command, reason, result.returncode, result.stdout or "")

        return result

    def _list_command(self) -> List[str]:
        raise NotImplementedError

    def _parse_printers(self, stdout: str) -> List[str]:
        raise NotImplementedError

    def list_printers(self) -> List[str]:
        """Enumerate system printers. Failures are logged and yield []."""
        try:
            result = self._run(self._list_command())
        except PrintCommandError as e:
            self._logger.warning(f"Failed to list printers: {e.message}")
            return []

        printers = self._parse_printers(result.stdout or "")
        self._logger.info(f"Available printers: {printers}")
        return printers

    def print_file(self, path: Path, printer: Optional[str] = None) -> Optional[str]:
        raise NotImplementedError

    def fallback_print(self, path: Path) -> bool:
        """Alternate print mechanism. Only Windows has one."""
        return False


class _CupsBackend(PrinterBackend):
    """Shared CUPS printer enumeration for Linux and macOS."""

    def _list_command(self) -> List[str]:
        return ["lpstat", "-p"]

    def _parse_printers(self, stdout: str) -> List[str]:
        # Parse "printer NAME is idle.  enabled since ..." lines
        printers = []
        for line in stdout.splitlines():
            parts = line.split()
            if len(parts) >= 2 and parts[0] == "printer":
                printers.append(parts[1])
        return printers


class LinuxBackend(_CupsBackend):
    """CUPS `lp` backend."""

    name = "linux"

    def print_file(self, path: Path, printer: Optional[str] = None) -> Optional[str]:
        command = ["lp"]
        if printer:
            command += ["-d", printer]
        command.append(str(path))

        result = self._run(command)
        match = LP_REQUEST_ID.search(result.stdout or "")
        if not match:
            raise PrintCommandError(command, "no request id in output", output=result.stdout or "")
        return match.group(1)


class MacOSBackend(_CupsBackend):
    """CUPS `lpr` backend. lpr is silent, so the job id comes from lpq."""

    name = "macos"

    def print_file(self, path: Path, printer: Optional[str] = None) -> Optional[str]:
        command = ["lpr"]
        if printer:
            command += ["-P", printer]
        command.append(str(path))

        self._run(command)
        return self._last_job_id(printer)

    def _last_job_id(self, printer: Optional[str]) -> Optional[str]:
        command = ["lpq"] + (["-P", printer] if printer else [])
        try:
            result = self._run(command)
        except PrintCommandError as e:
            self._logger.debug(f"Could not read job id: {e.message}")
            return None

        # Rank  Owner  Job  File(s)  Total Size
        lines = [ln for ln in (result.stdout or "").splitlines() if ln.strip()]
        if not lines:
            return None
        columns = lines[-1].split()
        if len(columns) >= 3 and columns[2].isdigit():
            return columns[2]
        return None


class WindowsBackend(PrinterBackend):
    """PowerShell backend with a single PrintTo fallback."""

    name = "windows"
    supports_fallback = True

    POWERSHELL = ["powershell", "-NoProfile", "-NonInteractive", "-WindowStyle", "Hidden", "-Command"]

    @staticmethod
    def _quote(value: str) -> str:
        """Quote a value for a single-quoted PowerShell string."""
        return "'" + value.replace("'", "''") + "'"

    def _list_command(self) -> List[str]:
        return self.POWERSHELL + [
            "Get-CimInstance -ClassName Win32_Printer | ForEach-Object { $_.Name }"
        ]

    def _parse_printers(self, stdout: str) -> List[str]:
        return [line.strip() for line in stdout.splitlines() if line.strip()]

    def print_file(self, path: Path, printer: Optional[str] = None) -> Optional[str]:
        # The Print verb always targets the default printer
        script = (
            f"try {{ Start-Process -FilePath {self._quote(str(path))} -Verb Print "
            f"-WindowStyle Hidden -Wait -ErrorAction Stop; Write-Output 'SUCCESS' }} "
            f"catch {{ Write-Output 'ERROR' }}"
        )
        command = self.POWERSHELL + [script]
        result = self._run(command)
        if "SUCCESS" not in (result.stdout or ""):
            raise PrintCommandError(command, "no success marker in output", output=result.stdout or "")
        return None

    def fallback_print(self, path: Path) -> bool:
        script = (
            "$printer = Get-CimInstance -ClassName Win32_Printer | "
            "Where-Object { $_.Default } | Select-Object -First 1; "
            "if ($printer) { "
            f"try {{ Start-Process -FilePath {self._quote(str(path))} -Verb PrintTo "
            "-ArgumentList ('\"' + $printer.Name + '\"') -WindowStyle Hidden -Wait -ErrorAction Stop; "
            "Write-Output 'FALLBACK_SUCCESS' } catch { Write-Output 'ERROR' } "
            "} else { Write-Output 'NO_PRINTER' }"
        )
        try:
            result = self._run(self.POWERSHELL + [script])
        except PrintCommandError as e:
            self._logger.error(f"Fallback print failed: {e.message}")
            return False
        return "FALLBACK_SUCCESS" in (result.stdout or "")


def select_backend(
    system: Optional[str] = None,
    timeout_seconds: float = DEFAULT_COMMAND_TIMEOUT
) -> PrinterBackend:
    """
    Pick the backend for the running OS.

    Args:
        system: platform.system() value (detected if omitted)
        timeout_seconds: Per-command timeout

    Returns:
        PrinterBackend instance
    """
    system = system or platform.system()
    if system == "Windows":
        return WindowsBackend(timeout_seconds)
    if system == "Darwin":
        return MacOSBackend(timeout_seconds)
    return LinuxBackend(timeout_seconds)
