"""
Unit tests for core.store module.
Tests CRUD, defaults, validation and optimistic-concurrency behaviour of
the RecordStore over the platform collections.
"""
import asyncio
import datetime as dt
import itertools

import httpx
import pytest

from campus_sdk.core.errors import AlreadyExists, Conflict, NotFound, SchemaNotFound, ValidationError
from campus_sdk.core.sdk import build_sdk
from campus_sdk.models import PLATFORM_SCHEMAS


pytestmark = pytest.mark.asyncio

SAMPLE_VALUES = {
    "string": "x",
    "number": 1,
    "boolean": True,
    "date": "2025-01-01T00:00:00Z",
    "array": [],
    "object": {},
}

COURSE = {
    "title": "Intro to AI",
    "code": "AI101",
    "instructorId": "inst-1",
    "category": "computer-science",
    "level": "beginner",
    "credits": 3,
}


def minimal_record(sdk, collection):
    """A record holding only the required fields, with a valid value for each."""
    schema = sdk.registry.get(collection)
    return {f: SAMPLE_VALUES[schema.types[f].value] for f in schema.required}


@pytest.fixture
def fixed_times(monkeypatch):
    """Make RecordStore timestamps strictly increasing and predictable."""
    ticks = (f"2025-01-01T00:00:{s:02d}+00:00" for s in itertools.count())
    monkeypatch.setattr("campus_sdk.core.store.utc_now_iso", lambda: next(ticks))


class TestCreate:
    """Tests for RecordStore.create."""

    async def test_assigns_identity_and_timestamps(self, sdk):
        course = await sdk.store.create("courses", COURSE)
        assert course["id"] and course["uid"]
        assert len(course["uid"]) == 20
        int(course["uid"], 16)
        assert course["createdAt"] == course["updatedAt"]
        assert await sdk.store.read("courses", course["id"]) == course

    async def test_caller_cannot_choose_identity(self, sdk):
        course = await sdk.store.create(
            "courses", {**COURSE, "id": "mine", "uid": "mine", "createdAt": "1999-01-01T00:00:00Z"}
        )
        assert course["id"] != "mine"
        assert course["uid"] != "mine"
        assert course["createdAt"] != "1999-01-01T00:00:00Z"

    async def test_identities_are_unique(self, sdk):
        first = await sdk.store.create("courses", COURSE)
        second = await sdk.store.create("courses", {**COURSE, "code": "AI102"})
        assert first["id"] != second["id"]
        assert first["uid"] != second["uid"]

    async def test_course_defaults(self, sdk):
        course = await sdk.store.create("courses", COURSE)
        assert course["currentEnrollment"] == 0
        assert course["status"] == "draft"
        assert course["rating"] == 0
        assert course["currency"] == "USD"
        assert course["prerequisites"] == []
        assert course["title"] == "Intro to AI"

    async def test_defaults_are_not_shared_between_records(self, sdk):
        first = await sdk.store.create("courses", COURSE)
        await sdk.store.update("courses", first["id"], {"tags": ["ai"]})
        second = await sdk.store.create("courses", {**COURSE, "code": "AI102"})
        assert second["tags"] == []

    @pytest.mark.parametrize("collection", sorted(PLATFORM_SCHEMAS))
    async def test_every_collection_applies_its_defaults(self, sdk, collection):
        partial = minimal_record(sdk, collection)
        record = await sdk.store.create(collection, partial)
        schema = sdk.registry.get(collection)
        for field, default in schema.defaults.items():
            if field in partial:
                assert record[field] == partial[field]
            elif callable(default):
                assert record[field] is not None
            else:
                assert record[field] == default, field

    @pytest.mark.parametrize("collection", sorted(PLATFORM_SCHEMAS))
    async def test_missing_required_fields_never_reach_the_remote(self, sdk, fake_api, collection):
        schema = sdk.registry.get(collection)
        with pytest.raises(ValidationError) as exc_info:
            await sdk.store.create(collection, {})
        assert exc_info.value.missing == sorted(schema.required - set(schema.defaults))
        assert fake_api.requests == []

    async def test_wrong_types_are_rejected(self, sdk, fake_api):
        with pytest.raises(ValidationError) as exc_info:
            await sdk.store.create("courses", {**COURSE, "credits": "three", "tags": "ai"})
        assert exc_info.value.type_errors == {"credits": "number", "tags": "array"}
        assert fake_api.count("PUT") == 0

    async def test_unknown_collection(self, sdk, fake_api):
        with pytest.raises(SchemaNotFound):
            await sdk.store.create("spaceships", {"name": "x"})
        assert fake_api.requests == []

    async def test_unique_email_is_case_insensitive(self, sdk):
        user = {"email": "ada@example.com", "firstName": "Ada", "lastName": "Lovelace"}
        await sdk.store.create("users", user)
        with pytest.raises(AlreadyExists):
            await sdk.store.create("users", {**user, "email": "ADA@example.com"})
        assert len(await sdk.store.list("users")) == 1


class TestReadUpdateDelete:
    """Tests for read, update and delete."""

    async def test_read_missing_record(self, sdk):
        with pytest.raises(NotFound):
            await sdk.store.read("courses", "nope")

    async def test_update_merges_and_refreshes_updated_at(self, sdk, fixed_times):
        course = await sdk.store.create("courses", COURSE)
        updated = await sdk.store.update("courses", course["id"], {"status": "published", "price": 49})
        assert updated["status"] == "published"
        assert updated["price"] == 49
        assert updated["title"] == COURSE["title"]
        assert updated["createdAt"] == course["createdAt"]
        assert updated["updatedAt"] > course["updatedAt"]
        assert await sdk.store.read("courses", course["id"]) == updated

    async def test_update_cannot_change_immutable_fields(self, sdk):
        course = await sdk.store.create("courses", COURSE)
        updated = await sdk.store.update(
            "courses", course["id"],
            {"id": "other", "uid": "other", "createdAt": "1999-01-01T00:00:00Z", "title": "Renamed"},
        )
        assert updated["id"] == course["id"]
        assert updated["uid"] == course["uid"]
        assert updated["createdAt"] == course["createdAt"]
        assert updated["title"] == "Renamed"

    async def test_update_validates_the_merged_record(self, sdk):
        course = await sdk.store.create("courses", COURSE)
        with pytest.raises(ValidationError) as exc_info:
            await sdk.store.update("courses", course["id"], {"title": None, "credits": "many"})
        assert exc_info.value.missing == ["title"]
        assert exc_info.value.type_errors == {"credits": "number"}
        assert await sdk.store.read("courses", course["id"]) == course

    async def test_update_missing_record(self, sdk):
        with pytest.raises(NotFound):
            await sdk.store.update("courses", "nope", {"title": "x"})

    async def test_update_into_taken_email(self, sdk):
        await sdk.store.create("users", {"email": "a@example.com", "firstName": "A", "lastName": "A"})
        b = await sdk.store.create("users", {"email": "b@example.com", "firstName": "B", "lastName": "B"})
        with pytest.raises(AlreadyExists):
            await sdk.store.update("users", b["id"], {"email": "A@example.com"})
        # keeping one's own email is not a clash
        await sdk.store.update("users", b["id"], {"email": "b@example.com", "bio": "hi"})

    async def test_delete(self, sdk, fake_api):
        course = await sdk.store.create("courses", COURSE)
        await sdk.store.delete("courses", course["id"])
        with pytest.raises(NotFound):
            await sdk.store.read("courses", course["id"])
        assert fake_api.records("data/courses.json") == []

    async def test_delete_missing_record(self, sdk, fake_api):
        with pytest.raises(NotFound):
            await sdk.store.delete("courses", "nope")
        assert fake_api.count("PUT") == 0


class TestQueries:
    """Tests for list and find_one."""

    async def test_list_empty_collection(self, sdk):
        assert await sdk.store.list("courses") == []

    async def test_list_with_mapping_and_callable_predicates(self, sdk):
        await sdk.store.create("courses", {**COURSE, "code": "A", "credits": 3})
        await sdk.store.create("courses", {**COURSE, "code": "B", "credits": 4, "status": "published"})
        await sdk.store.create("courses", {**COURSE, "code": "C", "credits": 5, "status": "published"})

        assert len(await sdk.store.list("courses")) == 3
        published = await sdk.store.list("courses", {"status": "published"})
        assert sorted(c["code"] for c in published) == ["B", "C"]
        heavy = await sdk.store.list("courses", lambda c: c["credits"] >= 4 and c["code"] != "C")
        assert [c["code"] for c in heavy] == ["B"]

    async def test_find_one(self, sdk):
        await sdk.store.create("courses", COURSE)
        found = await sdk.store.find_one("courses", {"code": "AI101"})
        assert found["title"] == COURSE["title"]
        assert await sdk.store.find_one("courses", {"code": "nope"}) is None


class TestBulkUpdate:
    """Tests for RecordStore.bulk_update."""

    async def test_applies_every_update_in_one_commit(self, sdk, fake_api):
        a = await sdk.store.create("courses", {**COURSE, "code": "A"})
        b = await sdk.store.create("courses", {**COURSE, "code": "B"})
        puts = fake_api.count("PUT")
        updated = await sdk.store.bulk_update(
            "courses", [{"id": a["id"], "status": "published"}, {"id": b["id"], "price": 10}]
        )
        assert [u["id"] for u in updated] == [a["id"], b["id"]]
        assert fake_api.count("PUT") == puts + 1
        assert (await sdk.store.read("courses", a["id"]))["status"] == "published"
        assert (await sdk.store.read("courses", b["id"]))["price"] == 10

    async def test_nothing_is_written_when_one_update_fails(self, sdk, fake_api):
        a = await sdk.store.create("courses", COURSE)
        puts = fake_api.count("PUT")
        with pytest.raises(NotFound):
            await sdk.store.bulk_update("courses", [{"id": a["id"], "status": "published"}, {"id": "nope"}])
        assert fake_api.count("PUT") == puts
        assert (await sdk.store.read("courses", a["id"]))["status"] == "draft"

    async def test_updates_need_an_id(self, sdk, fake_api):
        with pytest.raises(ValidationError) as exc_info:
            await sdk.store.bulk_update("courses", [{"status": "published"}])
        assert exc_info.value.missing == ["id"]
        assert fake_api.requests == []


class TestConcurrency:
    """Tests for writes racing with other writers."""

    async def test_concurrent_updates_to_different_records_both_survive(self, sdk, fake_api):
        a = await sdk.store.create("courses", {**COURSE, "code": "A"})
        b = await sdk.store.create("courses", {**COURSE, "code": "B"})
        await asyncio.gather(
            sdk.store.update("courses", a["id"], {"title": "Updated A"}),
            sdk.store.update("courses", b["id"], {"title": "Updated B"}),
        )
        stored = {r["code"]: r["title"] for r in fake_api.records("data/courses.json")}
        assert stored == {"A": "Updated A", "B": "Updated B"}

    async def test_update_is_reapplied_after_another_process_commits(self, sdk, fake_api):
        a = await sdk.store.create("courses", {**COURSE, "code": "A"})
        b = await sdk.store.create("courses", {**COURSE, "code": "B"})
        writes = []

        def other_process(api, path):
            # the other process updates B once, right before our first commit lands
            if not writes:
                writes.append(path)
                records = api.records(path)
                for r in records:
                    if r["id"] == b["id"]:
                        r["title"] = "Theirs"
                api.seed(path, records)

        fake_api.before_put = other_process
        await sdk.store.update("courses", a["id"], {"title": "Ours"})

        stored = {r["code"]: r["title"] for r in fake_api.records("data/courses.json")}
        assert stored == {"A": "Ours", "B": "Theirs"}

    async def test_conflict_leaves_the_collection_as_the_other_writer_left_it(self, sdk, fake_api):
        a = await sdk.store.create("courses", COURSE)
        counter = itertools.count()

        def busy_writer(api, path):
            records = api.records(path)
            records[0]["views"] = next(counter)
            api.seed(path, records)

        fake_api.before_put = busy_writer
        with pytest.raises(Conflict):
            await sdk.store.update("courses", a["id"], {"title": "Ours"})
        assert fake_api.records("data/courses.json")[0]["title"] == COURSE["title"]

    async def test_update_sees_records_another_process_created(self, sdk, fake_api, test_settings):
        # this process reads the collection before the other one writes to it
        assert await sdk.store.list("courses") == []
        other = build_sdk(test_settings, transport=httpx.MockTransport(fake_api.handler))
        try:
            course = await other.store.create("courses", COURSE)
        finally:
            await other.aclose()

        updated = await sdk.store.update("courses", course["id"], {"rating": 4})
        assert updated["rating"] == 4
        assert fake_api.records("data/courses.json")[0]["rating"] == 4

        await sdk.store.delete("courses", course["id"])
        assert fake_api.records("data/courses.json") == []


class TestDates:
    """Tests for storage of date-typed fields."""

    async def test_datetimes_are_stored_as_iso_strings(self, sdk):
        start = dt.datetime(2025, 3, 1, 9, tzinfo=dt.timezone.utc)
        course = await sdk.store.create("courses", {**COURSE, "startDate": start, "endDate": dt.date(2025, 6, 30)})
        assert course["startDate"] == "2025-03-01T09:00:00+00:00"
        assert course["endDate"] == "2025-06-30"

        sdk.store.backend.invalidate()
        assert await sdk.store.read("courses", course["id"]) == course

    async def test_updates_convert_dates_too(self, sdk, fake_api):
        course = await sdk.store.create("courses", COURSE)
        deadline = dt.datetime(2025, 2, 15, 23, 59)  # naive, taken as UTC
        updated = await sdk.store.update("courses", course["id"], {"enrollmentDeadline": deadline})
        assert updated["enrollmentDeadline"] == "2025-02-15T23:59:00+00:00"
        assert fake_api.records("data/courses.json")[0]["enrollmentDeadline"] == updated["enrollmentDeadline"]
