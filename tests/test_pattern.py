"""Tests for the file name pattern analyzer."""

from datetime import datetime, timezone

import pytest

from timeroll.errors import ConfigurationError
from timeroll.pattern import (
    DEFAULT_DATE_FORMAT,
    CompressionSuffix,
    compile_date_format,
    parse,
    render,
)


class TestParse:
    def test_bare_placeholder_uses_default_format(self):
        t = parse("logs/foo.%d")
        assert t.prefix == "logs/foo."
        assert t.suffix == ""
        assert t.date_format == DEFAULT_DATE_FORMAT
        assert t.time_zone is None

    def test_explicit_format_and_suffix(self):
        t = parse("/wombat/foo.%d{yyyy-MM}.log")
        assert t.prefix == "/wombat/foo."
        assert t.date_format == "yyyy-MM"
        assert t.suffix == ".log"

    def test_empty_braces_use_default_format(self):
        assert parse("foo.%d{}.log").date_format == DEFAULT_DATE_FORMAT

    def test_time_zone_option(self):
        t = parse("foo.%d{yyyy-MM-dd_HH}{UTC}.log")
        assert t.date_format == "yyyy-MM-dd_HH"
        assert t.time_zone == "UTC"
        assert t.suffix == ".log"

    def test_escaped_percent_is_literal(self):
        t = parse("100%%.%d")
        assert t.prefix == "100%."

    def test_raw_is_kept(self):
        assert parse("foo.%d.gz").raw == "foo.%d.gz"

    @pytest.mark.parametrize("template", [None, ""])
    def test_missing_pattern(self, template):
        with pytest.raises(ConfigurationError, match="must be set"):
            parse(template)

    def test_no_date_specifier(self):
        with pytest.raises(ConfigurationError, match="valid date format specifier"):
            parse("logs/foo.log")

    def test_two_date_specifiers(self):
        with pytest.raises(ConfigurationError, match="more than one"):
            parse("logs/%d/foo.%d.log")

    def test_unsupported_specifier(self):
        with pytest.raises(ConfigurationError, match="%i"):
            parse("logs/foo.%d.%i.log")

    def test_dangling_percent(self):
        with pytest.raises(ConfigurationError, match="dangling"):
            parse("logs/foo.%d.%")

    def test_unterminated_brace(self):
        with pytest.raises(ConfigurationError, match="unterminated"):
            parse("logs/foo.%d{yyyy-MM")

    def test_unknown_time_zone(self):
        with pytest.raises(ConfigurationError, match="time zone"):
            parse("foo.%d{yyyy}{Not/AZone}")


class TestCompileDateFormat:
    def test_tokens(self):
        assert compile_date_format("yyyy-MM-dd") == (
            ("y", 4), (None, "-"), ("M", 2), (None, "-"), ("d", 2),
        )

    def test_quoted_literal(self):
        assert compile_date_format("dd'T'HH") == (("d", 2), (None, "T"), ("H", 2))

    def test_escaped_quote(self):
        assert compile_date_format("HH''mm") == (("H", 2), (None, "'"), ("m", 2))

    def test_unknown_letter(self):
        with pytest.raises(ConfigurationError, match="'Q'"):
            compile_date_format("yyyy-QQ")

    def test_unterminated_quote(self):
        with pytest.raises(ConfigurationError, match="Unterminated quote"):
            compile_date_format("yyyy'oops")


class TestRender:
    def test_default_format_is_daily(self, at):
        t = parse("foo.%d")
        morning = render(t, at(2004, 11, 23, 0, 0, 0))
        night = render(t, at(2004, 11, 23, 23, 59, 59, 999))
        assert morning == night == "foo.2004-11-23"
        assert render(t, at(2004, 11, 24, 0, 0, 0)) == "foo.2004-11-24"

    def test_monthly(self, at):
        t = parse("/wombat/foo.%d{yyyy-MM}.log")
        assert render(t, at(2004, 10, 1)) == "/wombat/foo.2004-10.log"
        assert render(t, at(2004, 10, 31, 23, 59, 59)) == "/wombat/foo.2004-10.log"
        assert render(t, at(2004, 11, 1)) == "/wombat/foo.2004-11.log"

    def test_time_fields(self, at):
        t = parse("app.%d{yyyy-MM-dd'T'HH-mm-ss.SSS}.log")
        assert render(t, at(2004, 11, 23, 7, 5, 9, 42)) == "app.2004-11-23T07-05-09.042.log"

    def test_text_fields(self, at):
        t = parse("app.%d{EEE dd MMM yy}")
        assert render(t, at(2004, 11, 23)) == "app.Tue 23 Nov 04"
        t = parse("app.%d{EEEE MMMM}")
        assert render(t, at(2004, 11, 23)) == "app.Tuesday November"

    def test_twelve_hour_clock(self, at):
        t = parse("app.%d{hh a}")
        assert render(t, at(2004, 11, 23, 0, 30)) == "app.12 AM"
        assert render(t, at(2004, 11, 23, 13, 30)) == "app.01 PM"

    def test_day_of_year_and_week(self, at):
        t = parse("app.%d{yyyy-DDD.ww.u}")
        assert render(t, at(2004, 11, 23)) == "app.2004-328.48.2"

    def test_utc_zone(self):
        t = parse("app.%d{yyyy-MM-dd HH Z}{UTC}")
        instant = int(datetime(2004, 11, 23, 22, 0, tzinfo=timezone.utc).timestamp()) * 1000
        assert render(t, instant) == "app.2004-11-23 22 +0000"


class TestCompressionSuffix:
    @pytest.mark.parametrize("name,expected", [
        ("foo.2004-11-23.gz", CompressionSuffix.GZIP),
        ("foo.2004-11-23.zip", CompressionSuffix.ZIP),
        ("foo.2004-11-23.log", CompressionSuffix.NONE),
        ("foo.2004-11-23", CompressionSuffix.NONE),
    ])
    def test_detect(self, name, expected):
        assert CompressionSuffix.detect(name) is expected

    def test_lengths(self):
        assert CompressionSuffix.NONE.length == 0
        assert CompressionSuffix.GZIP.length == 3
        assert CompressionSuffix.ZIP.length == 4

    def test_strip_none_is_identity(self):
        assert CompressionSuffix.NONE.strip("foo.log") == "foo.log"

    @pytest.mark.parametrize("template", ["foo.%d.gz", "logs/foo.%d{yyyy-MM-dd_HH}.log.zip"])
    def test_strip_reproduces_base_name(self, template, at):
        t = parse(template)
        for instant in (at(2004, 11, 23), at(2004, 12, 31, 23, 59, 59), at(2005, 1, 1, 0, 0, 1)):
            rendered = render(t, instant)
            suffix = CompressionSuffix.detect(rendered)
            assert suffix is not CompressionSuffix.NONE
            assert suffix.strip(rendered) + suffix.extension == rendered


class TestFieldWidths:
    def test_unpadded_fields(self, at):
        t = parse("app.%d{y.M.d H:m:s}")
        assert render(t, at(2004, 3, 5, 7, 8, 9)) == "app.2004.3.5 7:8:9"

    def test_hour_variants(self, at):
        t = parse("app.%d{kk.KK}")
        assert render(t, at(2004, 11, 23, 0, 0)) == "app.24.00"
        assert render(t, at(2004, 11, 23, 15, 0)) == "app.15.03"
