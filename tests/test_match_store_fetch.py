import asyncio

import pytest

from capkeo.client.exceptions import APIRequestError, CapkeoError
from capkeo.client.store import ClientStateStorage, MatchStore
from capkeo.shared.constants import Bucket, MatchStatus, MatchType, PendingFilter, Stage

from .conftest import FIXED_NOW, TEAM_A, TEAM_B, TEAM_C, make_record


def ids(matches):
    return [m.id for m in matches]


async def test_fetch_transforms_records_for_the_team(store, fake_api):
    fake_api.records = [
        make_record("m1", MatchStatus.REQUESTED, requested_by_team=TEAM_A),
        make_record("m2", MatchStatus.CONFIRMED),
    ]

    matches = await store.fetch_bucket(Bucket.PENDING, TEAM_A)

    assert ids(matches) == ["m1"]
    assert matches[0].type == MatchType.SENT
    assert fake_api.get_calls[0] == {
        "statuses": [MatchStatus.MATCHED, MatchStatus.REQUESTED, MatchStatus.ACCEPTED],
        "team_id": TEAM_A,
        "page": 1,
        "limit": 2,
    }


async def test_second_fetch_of_a_fresh_bucket_makes_no_call(store, fake_api):
    fake_api.records = [make_record("m1", MatchStatus.MATCHED)]

    await store.fetch_bucket(Bucket.PENDING, TEAM_A, 1, False)
    again = await store.fetch_bucket(Bucket.PENDING, TEAM_A, 1, False)

    assert ids(again) == ["m1"]
    assert len(fake_api.get_calls) == 1


async def test_empty_bucket_is_fetched_again(store, fake_api):
    await store.fetch_bucket(Bucket.HISTORY, TEAM_A)
    await store.fetch_bucket(Bucket.HISTORY, TEAM_A)

    assert len(fake_api.get_calls) == 2


async def test_force_refresh_replaces_items(store, fake_api):
    fake_api.records = [make_record("m1", MatchStatus.MATCHED)]
    await store.fetch_bucket(Bucket.PENDING, TEAM_A)

    fake_api.records = [make_record("m9", MatchStatus.MATCHED)]
    matches = await store.fetch_bucket(Bucket.PENDING, TEAM_A, force_refresh=True)

    assert ids(matches) == ["m9"]
    assert len(fake_api.get_calls) == 2


async def test_pages_append_and_track_has_more(store, fake_api):
    fake_api.records = [make_record(f"m{i}", MatchStatus.CONFIRMED) for i in range(1, 6)]

    await store.fetch_bucket(Bucket.UPCOMING, TEAM_A)
    assert store.has_more(Bucket.UPCOMING)
    assert store.pagination(Bucket.UPCOMING).total_pages == 3

    await store.load_more(Bucket.UPCOMING)
    await store.load_more(Bucket.UPCOMING)

    assert ids(store.items(Bucket.UPCOMING)) == ["m1", "m2", "m3", "m4", "m5"]
    assert not store.has_more(Bucket.UPCOMING)

    await store.load_more(Bucket.UPCOMING)
    assert len(fake_api.get_calls) == 3


async def test_load_more_on_an_unfetched_bucket_loads_the_first_page(store, fake_api):
    fake_api.records = [make_record("m1", MatchStatus.FINISHED)]

    await store.load_more(Bucket.HISTORY)

    assert fake_api.get_calls[0]["page"] == 1
    assert ids(store.items(Bucket.HISTORY)) == ["m1"]


async def test_concurrent_fetches_share_one_request(store, fake_api):
    fake_api.records = [make_record("m1", MatchStatus.MATCHED)]
    fake_api.fetch_gate = asyncio.Event()

    first = asyncio.create_task(store.fetch_bucket(Bucket.PENDING, TEAM_A))
    second = asyncio.create_task(store.fetch_bucket(Bucket.PENDING, TEAM_A))
    for _ in range(3):
        await asyncio.sleep(0)
    assert store.is_loading(Bucket.PENDING)
    assert len(fake_api.get_calls) == 1

    fake_api.fetch_gate.set()
    assert ids(await first) == ["m1"]
    assert ids(await second) == ["m1"]
    assert len(fake_api.get_calls) == 1
    assert not store.is_loading(Bucket.PENDING)


async def test_failure_keeps_items_and_stores_the_message(store, fake_api):
    fake_api.records = [make_record("m1", MatchStatus.MATCHED)]
    await store.fetch_bucket(Bucket.PENDING, TEAM_A)

    fake_api.fetch_error = APIRequestError("Máy chủ bận", status_code=503)
    with pytest.raises(APIRequestError):
        await store.fetch_bucket(Bucket.PENDING, TEAM_A, force_refresh=True)

    assert ids(store.items(Bucket.PENDING)) == ["m1"]
    assert store.error(Bucket.PENDING) == "Máy chủ bận"
    assert not store.is_loading(Bucket.PENDING)

    fake_api.fetch_error = None
    await store.fetch_bucket(Bucket.PENDING, TEAM_A, force_refresh=True)
    assert store.error(Bucket.PENDING) is None


async def test_results_started_before_a_clear_are_discarded(store, fake_api):
    fake_api.records = [make_record("m1", MatchStatus.MATCHED)]
    fake_api.fetch_gate = asyncio.Event()

    pending = asyncio.create_task(store.fetch_bucket(Bucket.PENDING, TEAM_A))
    await asyncio.sleep(0)
    store.clear_all_data()
    fake_api.fetch_gate.set()
    await pending

    assert store.items(Bucket.PENDING) == []
    assert not store.tabs.is_fetched(TEAM_A, Bucket.PENDING)


async def test_switch_team_clears_everything(store, fake_api):
    fake_api.records = [
        make_record("m1", MatchStatus.MATCHED),
        make_record("m2", MatchStatus.MATCHED, team_a_id=TEAM_C, team_b_id=TEAM_B),
    ]
    await store.fetch_bucket(Bucket.PENDING, TEAM_A)

    store.switch_team(TEAM_C)
    assert store.items(Bucket.PENDING) == []

    matches = await store.fetch_bucket(Bucket.PENDING, TEAM_C)
    assert ids(matches) == ["m2"]


async def test_switching_to_the_same_team_keeps_the_cache(store, fake_api):
    fake_api.records = [make_record("m1", MatchStatus.MATCHED)]
    await store.fetch_bucket(Bucket.PENDING, TEAM_A)

    store.switch_team(TEAM_A)

    assert ids(store.items(Bucket.PENDING)) == ["m1"]


async def test_pending_filter_narrows_the_query_and_resets_the_bucket(store, fake_api):
    fake_api.records = [
        make_record("m1", MatchStatus.MATCHED),
        make_record("m2", MatchStatus.ACCEPTED),
    ]
    await store.fetch_bucket(Bucket.PENDING, TEAM_A)

    store.set_pending_filter(PendingFilter.REQUESTED)
    assert store.items(Bucket.PENDING) == []

    matches = await store.fetch_bucket(Bucket.PENDING, TEAM_A)
    assert ids(matches) == ["m2"]
    assert fake_api.get_calls[-1]["statuses"] == [MatchStatus.REQUESTED, MatchStatus.ACCEPTED]


async def test_load_more_needs_an_active_team(fake_api, settings):
    store = MatchStore(fake_api, settings=settings, storage=ClientStateStorage())
    with pytest.raises(CapkeoError):
        await store.load_more(Bucket.PENDING)


async def test_selectors_group_by_stage_and_type(store, fake_api):
    fake_api.records = [
        make_record("live", MatchStatus.CONFIRMED, date="2025-03-01", time="18:30"),
        make_record("later", MatchStatus.CONFIRMED, date="2025-03-02", time="18:30"),
        make_record("sent", MatchStatus.REQUESTED, requested_by_team=TEAM_A),
        make_record("received", MatchStatus.REQUESTED, requested_by_team=TEAM_B),
    ]
    await store.fetch_bucket(Bucket.UPCOMING, TEAM_A)
    await store.fetch_bucket(Bucket.PENDING, TEAM_A)

    # 18:30 at UTC+7 is 11:30 UTC, half an hour before FIXED_NOW
    by_stage = store.upcoming_by_stage()
    assert ids(by_stage[Stage.LIVE]) == ["live"]
    assert ids(by_stage[Stage.UPCOMING]) == ["later"]
    assert by_stage[Stage.FINISHED] == []

    by_type = store.pending_by_type()
    assert ids(by_type[MatchType.SENT]) == ["sent"]
    assert ids(by_type[MatchType.RECEIVED]) == ["received"]

    live = store.find_match("live")
    assert store.stage(live) == Stage.LIVE
    assert store.stage(store.find_match("sent")) is None
    assert store.ui_bucket(live, now=FIXED_NOW.replace(hour=23)).value == "finished"


async def test_fetching_for_another_team_does_not_leak_into_the_first(store, fake_api):
    fake_api.records = [
        make_record("m-ab", MatchStatus.MATCHED),
        make_record("m-bc", MatchStatus.MATCHED, team_a_id=TEAM_B, team_b_id=TEAM_C),
    ]
    await store.fetch_bucket(Bucket.PENDING, TEAM_A)

    other = await store.fetch_bucket(Bucket.PENDING, TEAM_C)
    assert ids(other) == ["m-bc"]
    assert store.active_team_id == TEAM_C

    again = await store.fetch_bucket(Bucket.PENDING, TEAM_A)
    assert ids(again) == ["m-ab"]
    assert len(fake_api.get_calls) == 3
    assert fake_api.get_calls[-1]["team_id"] == TEAM_A


async def test_refresh_for_another_team_switches_to_it(store, fake_api):
    fake_api.records = [
        make_record("m-ab", MatchStatus.MATCHED),
        make_record("m-bc", MatchStatus.MATCHED, team_a_id=TEAM_B, team_b_id=TEAM_C),
    ]
    await store.load_schedule()

    await store.refresh_all(TEAM_C)

    assert store.active_team_id == TEAM_C
    assert ids(store.items(Bucket.PENDING)) == ["m-bc"]
    assert store.find_match("m-ab") is None


async def test_concurrent_load_more_calls_share_the_next_page(store, fake_api):
    fake_api.records = [make_record(f"m{i}", MatchStatus.CONFIRMED) for i in range(1, 6)]
    await store.fetch_bucket(Bucket.UPCOMING, TEAM_A)
    fake_api.fetch_gate = asyncio.Event()

    first = asyncio.create_task(store.load_more(Bucket.UPCOMING))
    second = asyncio.create_task(store.load_more(Bucket.UPCOMING))
    for _ in range(3):
        await asyncio.sleep(0)
    assert store.is_loading(Bucket.UPCOMING)
    assert [c["page"] for c in fake_api.get_calls] == [1, 2]

    fake_api.fetch_gate.set()
    assert ids(await first) == ["m1", "m2", "m3", "m4"]
    assert ids(await second) == ["m1", "m2", "m3", "m4"]
    assert len(fake_api.get_calls) == 2
    assert store.pagination(Bucket.UPCOMING).page == 2


async def test_load_more_waits_for_a_running_first_page_refresh(store, fake_api):
    fake_api.records = [make_record(f"m{i}", MatchStatus.CONFIRMED) for i in range(1, 6)]
    await store.fetch_bucket(Bucket.UPCOMING, TEAM_A)
    fake_api.fetch_gate = asyncio.Event()

    refresh = asyncio.create_task(
        store.fetch_bucket(Bucket.UPCOMING, TEAM_A, force_refresh=True)
    )
    for _ in range(3):
        await asyncio.sleep(0)
    more = asyncio.create_task(store.load_more(Bucket.UPCOMING))
    for _ in range(3):
        await asyncio.sleep(0)
    assert [c["page"] for c in fake_api.get_calls] == [1, 1]

    fake_api.fetch_gate.set()
    assert ids(await more) == ["m1", "m2"]
    assert ids(await refresh) == ["m1", "m2"]
    assert store.pagination(Bucket.UPCOMING).page == 1

    await store.load_more(Bucket.UPCOMING)
    assert [c["page"] for c in fake_api.get_calls] == [1, 1, 2]
    assert ids(store.items(Bucket.UPCOMING)) == ["m1", "m2", "m3", "m4"]
