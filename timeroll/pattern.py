"""File name pattern analysis: parse a ``%d`` template once, render it for any instant.

A template such as ``logs/app.%d{yyyy-MM-dd_HH}.log.gz`` is split into a
literal prefix, a date sub-format and a literal suffix. The sub-format uses
the Java ``SimpleDateFormat`` letters (``yyyy``, ``MM``, ``dd``, ``HH`` ...),
which is what existing rolling-file configurations are written in.

Rotation granularity is never classified. Two instants belong to the same
rotation period iff rendering the template at both yields the same string.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone, tzinfo
from enum import Enum
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from timeroll.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_DATE_FORMAT = "yyyy-MM-dd"

_FIELD_LETTERS = frozenset("yMdHhkKmsSEaDwuZz")

_MONTHS = (
    "January", "February", "March", "April", "May", "June", "July",
    "August", "September", "October", "November", "December",
)
_WEEKDAYS = (
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
)


class CompressionSuffix(Enum):
    NONE = ""
    GZIP = ".gz"
    ZIP = ".zip"

    @property
    def extension(self) -> str:
        return self.value

    @property
    def length(self) -> int:
        return len(self.value)

    @classmethod
    def detect(cls, name: str) -> "CompressionSuffix":
        """Return the compression kind implied by the ending of *name*."""
        if name.endswith(cls.GZIP.value):
            return cls.GZIP
        if name.endswith(cls.ZIP.value):
            return cls.ZIP
        return cls.NONE

    def strip(self, name: str) -> str:
        """Remove this suffix from *name*, giving the uncompressed base name."""
        if self.length == 0:
            return name
        return name[:len(name) - self.length]


def compile_date_format(fmt: str) -> tuple:
    """Compile a SimpleDateFormat-style pattern into ``(letter, count)`` tokens.

    Literal text is emitted as ``(None, text)``. Text between single quotes
    is literal and ``''`` stands for one quote.
    """
    tokens = []
    literal: list[str] = []
    i = 0
    n = len(fmt)

    while i < n:
        ch = fmt[i]
        if ch == "'":
            if i + 1 < n and fmt[i + 1] == "'":
                literal.append("'")
                i += 2
                continue
            j = i + 1
            while True:
                if j >= n:
                    raise ConfigurationError(f"Unterminated quote in date format [{fmt}]")
                if fmt[j] == "'":
                    if j + 1 < n and fmt[j + 1] == "'":
                        literal.append("'")
                        j += 2
                        continue
                    break
                literal.append(fmt[j])
                j += 1
            i = j + 1
            continue

        if ch.isascii() and ch.isalpha():
            if ch not in _FIELD_LETTERS:
                raise ConfigurationError(
                    f"Unsupported pattern letter '{ch}' in date format [{fmt}]"
                )
            j = i
            while j < n and fmt[j] == ch:
                j += 1
            if literal:
                tokens.append((None, "".join(literal)))
                literal = []
            tokens.append((ch, j - i))
            i = j
            continue

        literal.append(ch)
        i += 1

    if literal:
        tokens.append((None, "".join(literal)))
    return tuple(tokens)


# Field widths strftime renders exactly. Names and AM/PM stay in English so
# archive names do not depend on the host locale.
_STRFTIME_CODES = {
    ("y", 4): "%Y",
    ("y", 2): "%y",
    ("M", 2): "%m",
    ("d", 2): "%d",
    ("H", 2): "%H",
    ("h", 2): "%I",
    ("m", 2): "%M",
    ("s", 2): "%S",
    ("D", 3): "%j",
    ("w", 2): "%V",
    ("u", 1): "%u",
}


def _format_field(letter: str, count: int, dt: datetime) -> str:
    code = _STRFTIME_CODES.get((letter, count))
    if code is not None:
        return dt.strftime(code)
    if letter == "Z":
        return dt.strftime("%z")
    if letter == "z":
        return dt.strftime("%Z")
    if letter == "M" and count >= 3:
        name = _MONTHS[dt.month - 1]
        return name if count >= 4 else name[:3]
    if letter == "E":
        name = _WEEKDAYS[dt.weekday()]
        return name if count >= 4 else name[:3]
    if letter == "a":
        return "AM" if dt.hour < 12 else "PM"

    value = {
        "y": dt.year,
        "M": dt.month,
        "d": dt.day,
        "H": dt.hour,
        "h": dt.hour % 12 or 12,
        "k": dt.hour or 24,
        "K": dt.hour % 12,
        "m": dt.minute,
        "s": dt.second,
        "S": dt.microsecond // 1000,
        "D": dt.timetuple().tm_yday,
        "w": dt.isocalendar()[1],
        "u": dt.isoweekday(),
    }[letter]
    return f"{value:0{count}d}"


def format_instant(tokens: tuple, dt: datetime) -> str:
    return "".join(
        text if letter is None else _format_field(letter, text, dt)
        for letter, text in tokens
    )


def _resolve_time_zone(name: str | None) -> tzinfo | None:
    if name is None:
        return None
    if name.upper() in ("UTC", "GMT", "Z"):
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigurationError(f"Unknown time zone [{name}] in FileNamePattern") from exc


@dataclass(frozen=True)
class RotationTemplate:
    raw: str
    date_format: str
    prefix: str
    suffix: str
    time_zone: str | None = None
    _tokens: tuple = field(default=(), repr=False, compare=False)
    _tzinfo: tzinfo | None = field(default=None, repr=False, compare=False)

    def to_datetime(self, instant_ms: int) -> datetime:
        seconds, millis = divmod(int(instant_ms), 1000)
        if self._tzinfo is None:
            dt = datetime.fromtimestamp(seconds).astimezone()
        else:
            dt = datetime.fromtimestamp(seconds, self._tzinfo)
        return dt + timedelta(milliseconds=millis)

    def render(self, instant_ms: int) -> str:
        return self.prefix + format_instant(self._tokens, self.to_datetime(instant_ms)) + self.suffix


def parse(template: str | None) -> RotationTemplate:
    """Parse a file name template containing exactly one ``%d`` placeholder.

    ``%d`` may carry a date sub-format and a time zone as brace options:
    ``%d``, ``%d{yyyy-MM}``, ``%d{yyyy-MM-dd_HH}{UTC}``. ``%%`` is a literal
    percent sign. Raises ConfigurationError for anything else.
    """
    if not template:
        raise ConfigurationError("FileNamePattern must be set")

    literal: list[str] = []
    prefix = None
    date_format = DEFAULT_DATE_FORMAT
    time_zone = None
    i = 0
    n = len(template)

    while i < n:
        ch = template[i]
        if ch != "%":
            literal.append(ch)
            i += 1
            continue

        if i + 1 >= n:
            raise ConfigurationError(f"FileNamePattern [{template}] ends with a dangling '%'")
        conversion = template[i + 1]
        if conversion == "%":
            literal.append("%")
            i += 2
            continue
        if conversion != "d":
            raise ConfigurationError(
                f"FileNamePattern [{template}] contains unsupported conversion specifier %{conversion}"
            )
        if prefix is not None:
            raise ConfigurationError(
                f"FileNamePattern [{template}] contains more than one date format specifier"
            )

        prefix = "".join(literal)
        literal = []
        i += 2

        options = []
        while i < n and template[i] == "{" and len(options) < 2:
            end = template.find("}", i)
            if end == -1:
                raise ConfigurationError(f"FileNamePattern [{template}] has an unterminated '{{'")
            options.append(template[i + 1:end].strip())
            i = end + 1
        if options and options[0]:
            date_format = options[0]
        if len(options) > 1 and options[1]:
            time_zone = options[1]

    if prefix is None:
        raise ConfigurationError(
            f"FileNamePattern [{template}] does not contain a valid date format specifier"
        )

    parsed = RotationTemplate(
        raw=template,
        date_format=date_format,
        prefix=prefix,
        suffix="".join(literal),
        time_zone=time_zone,
        _tokens=compile_date_format(date_format),
        _tzinfo=_resolve_time_zone(time_zone),
    )
    logger.debug("Parsed FileNamePattern %r: %r", template, parsed)
    return parsed


def render(template: RotationTemplate, instant_ms: int) -> str:
    """Render *template* at *instant_ms* (epoch milliseconds). Pure."""
    return template.render(instant_ms)
