"""
Environment probes

The snapshot reports locale, platform, screen and connection descriptors.
Where they come from depends on the host, so the assembler only sees the
EnvironmentProbe interface:

- StaticEnvironmentProbe: fixed values (replays, tests)
- BrowserEnvironmentProbe: reads navigator/screen/window objects handed over
  by a browser bridge
- HostEnvironmentProbe: descriptors of the local Python process
"""

from abc import ABC, abstractmethod
from typing import Any, Optional
import locale
import logging
import platform
import time

from creativity_telemetry.telemetry.capture import read_field, read_number
from creativity_telemetry.telemetry.schemas import EnvironmentInfo

logger = logging.getLogger(__name__)


class EnvironmentProbe(ABC):
    """Source of host descriptors for a snapshot"""

    @abstractmethod
    def describe(self) -> EnvironmentInfo:
        pass


class StaticEnvironmentProbe(EnvironmentProbe):

    def __init__(self, info: Optional[EnvironmentInfo] = None, **fields: Any):
        self.info = info or EnvironmentInfo(**fields)

    def describe(self) -> EnvironmentInfo:
        return self.info


class BrowserEnvironmentProbe(EnvironmentProbe):
    """
    Reads the browser globals exposed by a bridge

    Any of navigator/screen/window may be a mapping, an object or missing;
    absent values fall back to EnvironmentInfo defaults.
    """

    def __init__(self, navigator: Any = None, screen: Any = None, window: Any = None, timezone: str = None):
        self.navigator = navigator
        self.screen = screen
        self.window = window
        self.timezone = timezone

    def describe(self) -> EnvironmentInfo:
        defaults = EnvironmentInfo()
        connection = read_field(self.navigator, "connection")
        pixel_ratio = read_number(self.window, "devicePixelRatio") or defaults.device_pixel_ratio

        return EnvironmentInfo(
            language=str(read_field(self.navigator, "language", defaults.language)),
            platform=str(read_field(self.navigator, "platform", defaults.platform)),
            user_agent=str(read_field(self.navigator, "userAgent", defaults.user_agent)),
            screen_resolution=f"{int(read_number(self.screen, 'width'))}x{int(read_number(self.screen, 'height'))}",
            viewport=f"{int(read_number(self.window, 'innerWidth'))}x{int(read_number(self.window, 'innerHeight'))}",
            timezone=self.timezone or defaults.timezone,
            device_pixel_ratio=pixel_ratio,
            connection_type=str(read_field(connection, "effectiveType", defaults.connection_type)),
        )


class HostEnvironmentProbe(EnvironmentProbe):
    """Descriptors of the Python host (desktop shells, kiosks)"""

    def describe(self) -> EnvironmentInfo:
        try:
            language = locale.getlocale()[0] or "unknown"
        except ValueError:
            language = "unknown"
        return EnvironmentInfo(
            language=language.replace("_", "-"),
            platform=platform.system() or "unknown",
            user_agent=f"python/{platform.python_version()}",
            timezone=time.tzname[0] if time.tzname else "UTC",
        )
