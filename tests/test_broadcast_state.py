from datetime import timedelta

import pytest

from cliptime.api.services.broadcast_state import BroadcastStateService
from cliptime.shared.errors import YouTubeAPIError
from cliptime.shared.models import LiveStreamingDetails, VideoSearchResult

from .conftest import BROADCAST_START, CHANNEL_ID, CHAT_ID


@pytest.fixture
def service(broadcast_repo, youtube):
    return BroadcastStateService(broadcast_repo, youtube)


@pytest.mark.asyncio
async def test_no_row_returns_none(service, youtube):
    assert await service.get_active_broadcast(CHANNEL_ID) is None
    youtube.get_live_details.assert_not_awaited()


@pytest.mark.asyncio
async def test_hydrated_row_is_returned_without_provider_call(service, broadcast_repo, youtube):
    broadcast_repo.add(channel_id=CHANNEL_ID, video_id="vid1", stream_start_time=BROADCAST_START)
    state = await service.get_active_broadcast(CHANNEL_ID)
    assert state.stream_start_time == BROADCAST_START
    youtube.get_live_details.assert_not_awaited()


@pytest.mark.asyncio
async def test_hydrates_actual_start_and_persists(service, broadcast_repo, youtube):
    row = broadcast_repo.add(channel_id=CHANNEL_ID, video_id="vid1", chat_id=CHAT_ID)
    youtube.get_live_details.return_value = LiveStreamingDetails(
        actual_start=BROADCAST_START,
        scheduled_start=BROADCAST_START - timedelta(minutes=15),
    )

    state = await service.get_active_broadcast(CHANNEL_ID)

    assert state.stream_start_time == BROADCAST_START
    youtube.get_live_details.assert_awaited_once_with("vid1")
    assert broadcast_repo.start_time_writes == [(row.id, BROADCAST_START)]


@pytest.mark.asyncio
async def test_falls_back_to_scheduled_start(service, broadcast_repo, youtube):
    broadcast_repo.add(channel_id=CHANNEL_ID, video_id="vid1")
    scheduled = BROADCAST_START - timedelta(minutes=5)
    youtube.get_live_details.return_value = LiveStreamingDetails(scheduled_start=scheduled)

    state = await service.get_active_broadcast(CHANNEL_ID)
    assert state.stream_start_time == scheduled


@pytest.mark.asyncio
async def test_second_read_does_not_call_provider_again(service, broadcast_repo, youtube):
    broadcast_repo.add(channel_id=CHANNEL_ID, video_id="vid1")
    youtube.get_live_details.return_value = LiveStreamingDetails(actual_start=BROADCAST_START)

    await service.get_active_broadcast(CHANNEL_ID)
    await service.get_active_broadcast(CHANNEL_ID)

    assert youtube.get_live_details.await_count == 1


@pytest.mark.asyncio
async def test_hydration_memo_covers_lagging_store_reads(service, broadcast_repo, youtube):
    broadcast_repo.add(channel_id=CHANNEL_ID, video_id="vid1")
    youtube.get_live_details.return_value = LiveStreamingDetails(actual_start=BROADCAST_START)

    async def lost_write(state_id, start):
        pass

    # The write succeeds but a replica keeps serving the old row
    broadcast_repo.set_start_time = lost_write
    first = await service.get_active_broadcast(CHANNEL_ID)
    second = await service.get_active_broadcast(CHANNEL_ID)

    assert first.stream_start_time == second.stream_start_time == BROADCAST_START
    assert youtube.get_live_details.await_count == 1


@pytest.mark.asyncio
async def test_missing_start_time_is_retried_later(service, broadcast_repo, youtube):
    broadcast_repo.add(channel_id=CHANNEL_ID, video_id="vid1")
    youtube.get_live_details.return_value = LiveStreamingDetails()

    assert (await service.get_active_broadcast(CHANNEL_ID)).stream_start_time is None
    assert (await service.get_active_broadcast(CHANNEL_ID)).stream_start_time is None
    assert youtube.get_live_details.await_count == 2
    assert broadcast_repo.start_time_writes == []


@pytest.mark.asyncio
async def test_provider_error_returns_unhydrated_row(service, broadcast_repo, youtube):
    broadcast_repo.add(channel_id=CHANNEL_ID, video_id="vid1")
    youtube.get_live_details.side_effect = YouTubeAPIError("quota", status=403)

    state = await service.get_active_broadcast(CHANNEL_ID)
    assert state is not None
    assert state.stream_start_time is None


@pytest.mark.asyncio
async def test_newest_row_supersedes_older(service, broadcast_repo):
    broadcast_repo.add(channel_id=CHANNEL_ID, video_id="old", stream_start_time=BROADCAST_START)
    broadcast_repo.add(channel_id=CHANNEL_ID, video_id="new", stream_start_time=BROADCAST_START)
    assert (await service.get_active_broadcast(CHANNEL_ID)).video_id == "new"


@pytest.mark.asyncio
async def test_completed_broadcast_requires_start_and_end(service, youtube):
    youtube.search_videos.return_value = [VideoSearchResult("vid9", "Last stream")]
    youtube.get_live_details.return_value = LiveStreamingDetails(actual_start=BROADCAST_START)

    assert await service.get_most_recent_completed_broadcast(CHANNEL_ID) is None
    youtube.search_videos.assert_awaited_once_with(CHANNEL_ID, "completed", order="date", max_results=1)


@pytest.mark.asyncio
async def test_completed_broadcast_resolved(service, youtube):
    end = BROADCAST_START + timedelta(hours=3)
    youtube.search_videos.return_value = [VideoSearchResult("vid9", "Last stream")]
    youtube.get_live_details.return_value = LiveStreamingDetails(
        actual_start=BROADCAST_START, actual_end=end, active_live_chat_id="chat9"
    )

    broadcast = await service.get_most_recent_completed_broadcast(CHANNEL_ID)

    assert broadcast.video_id == "vid9"
    assert broadcast.title == "Last stream"
    assert broadcast.actual_start == BROADCAST_START
    assert broadcast.actual_end == end
    assert broadcast.live_chat_id == "chat9"


@pytest.mark.asyncio
async def test_completed_lookup_errors_yield_none(service, youtube):
    youtube.search_videos.side_effect = YouTubeAPIError("boom", status=500)
    assert await service.get_most_recent_completed_broadcast(CHANNEL_ID) is None


@pytest.mark.asyncio
async def test_register_and_chat_id_exists(service):
    assert not await service.chat_id_exists(CHAT_ID)
    state = await service.register_live_broadcast(CHANNEL_ID, CHAT_ID, "vid1", "Live!")
    assert state.status == "live"
    assert state.marked is False
    assert state.stream_start_time is None
    assert await service.chat_id_exists(CHAT_ID)
