"""Tests for journal.domains.entries.entities."""

import re
from datetime import datetime, timedelta, timezone
from urllib.parse import quote, unquote

import pytest

from journal.domains.entries import entities
from journal.domains.entries.entities import (
    Entry,
    EntryMetadata,
    entry_id_from_key,
    make_preview,
    storage_key,
)

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class TestConstruct:
    def test_defaults(self):
        entry = Entry()
        assert entry.id is None
        assert entry.title == "Untitled"
        assert entry.content == ""
        assert entry.preview == ""
        assert entry.date.tzinfo is not None
        assert entry.created_at <= entry.updated_at
        assert entry.is_new()

    def test_empty_title_becomes_untitled(self):
        assert Entry(title="").title == "Untitled"

    def test_parses_iso_strings(self):
        entry = Entry(date="2026-03-01T12:00:00Z", created_at="2026-03-01T12:00:00+00:00")
        assert entry.date == T0
        assert entry.created_at == T0

    def test_naive_datetime_treated_as_utc(self):
        entry = Entry(date=datetime(2026, 3, 1, 12, 0))
        assert entry.date == T0

    def test_malformed_timestamps_default_to_now(self):
        before = datetime.now(timezone.utc)
        entry = Entry.from_client_json(
            {"content": "x", "date": "not-a-date", "createdAt": "2026-13-40", "updatedAt": "yesterday"}
        )
        assert entry.date >= before
        assert entry.date.tzinfo is not None
        assert entry.created_at == entry.date
        assert entry.updated_at == entry.date


class TestPreview:
    def test_empty_content(self):
        assert Entry().generate_preview() == ""

    def test_plain_text(self):
        entry = Entry(content="Hello")
        assert entry.generate_preview() == "Hello"
        assert entry.preview == "Hello"

    def test_strips_markdown(self):
        content = "# Title\n\nSome **bold** and _italic_ ~~gone~~ `code`\n## Next\nsee [the docs](https://x.io)"
        assert make_preview(content) == "Title Some bold and italic gone code Next see the docs"

    def test_header_marker_only_at_line_start(self):
        assert make_preview("a # not a header") == "a # not a header"

    def test_truncates_with_ellipsis(self):
        preview = make_preview("x" * 500)
        assert preview == "x" * 200 + "..."

    def test_exact_length_not_truncated(self):
        assert make_preview("y" * 200) == "y" * 200

    def test_custom_max_length(self):
        assert Entry(content="abcdefgh").generate_preview(max_length=3) == "abc..."

    @pytest.mark.parametrize(
        "content",
        ["", "plain", "# h\n" * 100, "**" + "w " * 300, "[a](b)\n\n" * 60],
    )
    def test_bounded_and_idempotent(self, content):
        preview = make_preview(content)
        assert len(preview) <= 203
        assert make_preview(preview) == preview[:200] + ("..." if len(preview) > 200 else "")


class TestWordCount:
    def test_empty(self):
        assert Entry().word_count() == 0

    def test_whitespace_runs(self):
        assert Entry(content="  one\t two\n\nthree  ").word_count() == 3


class TestTouch:
    def test_touch_advances_updated_at(self, monkeypatch):
        entry = Entry(created_at=T0, updated_at=T0)
        monkeypatch.setattr(entities, "utcnow", lambda: T0 + timedelta(seconds=5))
        assert entry.touch() is entry
        assert entry.updated_at == T0 + timedelta(seconds=5)
        assert entry.updated_at > entry.created_at

    def test_update_regenerates_preview(self):
        entry = Entry(content="old", preview="old")
        before = entry.updated_at
        entry.update(content="**new** text", title="T")
        assert entry.preview == "new text"
        assert entry.title == "T"
        assert entry.updated_at >= before


class TestValidate:
    def test_valid(self):
        result = Entry(user_id="u", content="hi").validate()
        assert result.is_valid
        assert result.errors == []

    def test_empty_content_not_checked_here(self):
        assert Entry(user_id="u", content="").validate().is_valid

    def test_all_errors_in_order(self):
        entry = Entry(title="t" * 201, content="a" * (10 * 1024 * 1024 + 1))
        result = entry.validate()
        assert not result.is_valid
        assert result.errors == [
            "userId is required",
            "title must be 200 characters or less",
            "content must be 10MB or less",
        ]

    def test_content_size_counts_bytes(self):
        # 'ж' is two bytes in UTF-8
        entry = Entry(user_id="u", content="ж" * (5 * 1024 * 1024 + 1))
        assert entry.validate().errors == ["content must be 10MB or less"]

    def test_title_at_limit(self):
        assert Entry(user_id="u", title="t" * 200).validate().is_valid


class TestClientJson:
    def test_roundtrip(self):
        entry = Entry(
            id="1-abc",
            user_id="u",
            title="Day",
            content="text",
            date=T0,
            preview="text",
            created_at=T0,
            updated_at=T0 + timedelta(microseconds=1500),
        )
        data = entry.to_client_json()
        assert data["date"] == "2026-03-01T12:00:00Z"
        restored = Entry.from_client_json(data)
        assert restored == entry
        assert vars(restored) == vars(entry)

    def test_summary_has_no_content(self):
        data = Entry(id="1", user_id="u", content="secret").to_summary_json()
        assert "content" not in data
        assert set(data) == {"id", "userId", "title", "date", "preview", "createdAt", "updatedAt"}

    def test_clone_is_independent(self):
        entry = Entry(id="1", user_id="u", content="a")
        copy = entry.clone()
        copy.content = "b"
        assert entry.content == "a"


class TestStorage:
    def test_key_scheme(self):
        assert storage_key("u1", "e1") == "users/u1/e1.md"
        assert Entry(id="e1", user_id="u1").storage_key == "users/u1/e1.md"
        assert entry_id_from_key("users/u1/e1.md") == "e1"

    def test_user_id_is_escaped_in_key(self):
        assert storage_key("alice/evil", "e1") == "users/alice%2Fevil/e1.md"
        assert entry_id_from_key(storage_key("alice/evil", "e1")) == "e1"

    def test_metadata_is_ascii(self):
        entry = Entry(id="1", user_id="u", title="Дневник", content="Привет **мир**", date=T0)
        entry.generate_preview()
        metadata = entry.to_storage_metadata()
        assert set(metadata) == {"title", "date", "preview", "created-at", "updated-at"}
        assert all(value.isascii() for value in metadata.values())
        assert metadata["title"] == quote("Дневник", safe="")
        assert metadata["date"] == "2026-03-01T12:00:00Z"

    def test_metadata_fits_s3_limit(self):
        entry = Entry(id="1", user_id="u", title="д" * 200, content="ж" * 300)
        entry.generate_preview()
        metadata = entry.to_storage_metadata()

        assert sum(len(k.encode()) + len(v.encode()) for k, v in metadata.items()) <= 2048
        restored = EntryMetadata.from_s3(metadata)
        assert restored.title == "д" * 200
        assert restored.preview.endswith("...")
        assert entry.preview.startswith(restored.preview[:-3])
        assert len(restored.preview) > 3

    def test_metadata_title_trimmed_when_alone_too_long(self):
        # 4-byte characters take 12 bytes each once percent-encoded
        entry = Entry(id="1", user_id="u", title="\U0001F600" * 200, content="text")
        entry.generate_preview()
        metadata = entry.to_storage_metadata()

        assert sum(len(k) + len(v) for k, v in metadata.items()) <= 2048
        title = unquote(metadata["title"])
        assert title and set(title) == {"\U0001F600"}
        assert unquote(metadata["preview"]) == "text"

    def test_from_storage_object(self):
        entry = Entry(id="e1", user_id="u", title="Дневник", content="Привет", date=T0)
        entry.generate_preview()
        restored = Entry.from_storage_object(
            {"Key": "users/u/e1.md", "Metadata": entry.to_storage_metadata()}, "u"
        )
        assert restored.id == "e1"
        assert restored.title == "Дневник"
        assert restored.preview == "Привет"
        assert restored.date == T0
        assert restored.content == ""

    def test_missing_metadata_falls_back_to_last_modified(self):
        last_modified = T0 - timedelta(days=1)
        restored = Entry.from_storage_object(
            {"Key": "users/u/e1.md", "Metadata": {}, "LastModified": last_modified}, "u"
        )
        assert restored.title == "Untitled"
        assert restored.preview == ""
        assert restored.date == last_modified
        assert restored.created_at == last_modified
        assert restored.updated_at == last_modified

    def test_with_body_derives_missing_preview(self):
        restored = Entry.from_storage_object_with_body(
            {"Body": "# Hi\nthere", "Metadata": {"title": "T"}, "LastModified": T0}, "u", "e1"
        )
        assert restored.content == "# Hi\nthere"
        assert restored.preview == "Hi there"
        assert restored.id == "e1"

    def test_malformed_metadata_timestamp_falls_back(self):
        metadata = EntryMetadata.from_s3({"date": "garbage"}, T0)
        assert metadata.date == T0

    def test_metadata_fixed_default_without_last_modified(self):
        metadata = EntryMetadata.from_s3(None)
        assert metadata.title == "Untitled"
        assert metadata.date.tzinfo is not None


class TestDisplay:
    def test_formatted_date(self):
        assert Entry(date=T0).formatted_date() == "March 1, 2026"

    @pytest.mark.parametrize(
        "delta, expected",
        [
            (timedelta(seconds=30), "Just now"),
            (timedelta(minutes=1), "1 minute ago"),
            (timedelta(minutes=5), "5 minutes ago"),
            (timedelta(hours=2), "2 hours ago"),
            (timedelta(days=1), "1 day ago"),
            (timedelta(days=7), "7 days ago"),
            (timedelta(days=8), "March 1, 2026"),
        ],
    )
    def test_relative_time(self, delta, expected):
        assert Entry(date=T0).relative_time(now=T0 + delta) == expected


def test_new_id_format():
    first, second = Entry.new_id(), Entry.new_id()
    assert re.fullmatch(r"\d{13}-[0-9a-z]{9}", first)
    assert first != second
