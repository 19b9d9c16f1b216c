from __future__ import annotations

import unittest
from datetime import timedelta

from tests.fakes import (
    CHANNEL_ID,
    NOW,
    UPLOADS_ID,
    FakeGateway,
    channel_meta,
    make_feed,
    make_video,
    videos_for,
)
from tracker.errors import NotFoundError, UpstreamError
from tracker.feed_walker import Backfill, Incremental
from tracker.models import ChannelState, FeedEntry, StoreSnapshot
from tracker.orchestrator import IngestionOrchestrator
from tracker.store import MemoryStore


def _gateway_with_feed(feed, **kwargs) -> FakeGateway:
    return FakeGateway(
        channels={CHANNEL_ID: channel_meta()},
        feeds={UPLOADS_ID: feed},
        videos=videos_for(feed),
        **kwargs,
    )


class IngestionOrchestratorTest(unittest.TestCase):
    def setUp(self) -> None:
        self.store = MemoryStore()

    def _orchestrator(self, gateway: FakeGateway, **kwargs) -> IngestionOrchestrator:
        return IngestionOrchestrator(gateway, self.store, **kwargs)

    def test_incremental_ingest_stores_videos_and_sets_cursor(self) -> None:
        feed = make_feed(12)
        gateway = _gateway_with_feed(feed)

        result = self._orchestrator(gateway).ingest(CHANNEL_ID, Incremental())

        self.assertEqual(result.added, 12)
        self.assertEqual(result.channel_id, CHANNEL_ID)
        state = self.store.get_channel(CHANNEL_ID)
        self.assertIsNotNone(state)
        self.assertEqual(len(state.videos), 12)
        self.assertEqual(state.last_seen_video_id, "v0")
        self.assertEqual(state.last_published_at, feed[0].published_at)
        self.assertIsNotNone(state.meta)

    def test_second_incremental_run_without_new_uploads_is_a_no_op(self) -> None:
        feed = make_feed(5)
        gateway = _gateway_with_feed(feed)
        orchestrator = self._orchestrator(gateway)
        orchestrator.ingest(CHANNEL_ID, Incremental())
        before = self.store.get_channel(CHANNEL_ID)
        saves = self.store.save_count

        result = orchestrator.ingest(CHANNEL_ID, Incremental())

        self.assertEqual(result.added, 0)
        after = self.store.get_channel(CHANNEL_ID)
        self.assertEqual(after.last_seen_video_id, before.last_seen_video_id)
        self.assertEqual(after.last_published_at, before.last_published_at)
        self.assertEqual(self.store.save_count, saves)

    def test_cursor_never_moves_backwards(self) -> None:
        feed = make_feed(3, newest=NOW - timedelta(days=3))
        gateway = _gateway_with_feed(feed)
        orchestrator = self._orchestrator(gateway)
        seen = []

        for day in range(3):
            newer = make_feed(2, newest=NOW - timedelta(days=2 - day), prefix=f"d{day}_")
            feed = newer + feed
            gateway.feeds[UPLOADS_ID] = feed
            gateway.videos.update(videos_for(newer))
            result = orchestrator.ingest(CHANNEL_ID, Incremental())
            seen.append(self.store.get_channel(CHANNEL_ID).last_published_at)
            self.assertGreater(result.added, 0)

        self.assertEqual(seen, sorted(seen))
        self.assertEqual(self.store.get_channel(CHANNEL_ID).last_seen_video_id, "d2_0")

    def test_incremental_only_fetches_uploads_newer_than_cursor(self) -> None:
        feed = make_feed(4)
        gateway = _gateway_with_feed(feed)
        orchestrator = self._orchestrator(gateway)
        orchestrator.ingest(CHANNEL_ID, Incremental())

        newer = make_feed(2, newest=NOW + timedelta(hours=12), prefix="n")
        gateway.feeds[UPLOADS_ID] = newer + feed
        gateway.videos.update(videos_for(newer))
        gateway.video_batches.clear()

        result = orchestrator.ingest(CHANNEL_ID, Incremental())

        self.assertEqual(result.added, 2)
        self.assertEqual(gateway.video_batches, [["n1", "n0"]])
        self.assertEqual(self.store.get_channel(CHANNEL_ID).last_seen_video_id, "n0")

    def test_backfill_never_touches_cursor(self) -> None:
        feed = make_feed(20)
        gateway = _gateway_with_feed(feed)
        orchestrator = self._orchestrator(gateway)
        gateway.feeds[UPLOADS_ID] = feed[:5]
        orchestrator.ingest(CHANNEL_ID, Incremental())
        cursor = self.store.get_channel(CHANNEL_ID)

        gateway.feeds[UPLOADS_ID] = feed
        result = orchestrator.ingest(CHANNEL_ID, Backfill(since=feed[-1].published_at))

        self.assertEqual(result.added, 20)
        state = self.store.get_channel(CHANNEL_ID)
        self.assertEqual(len(state.videos), 20)
        self.assertEqual(state.last_seen_video_id, cursor.last_seen_video_id)
        self.assertEqual(state.last_published_at, cursor.last_published_at)

    def test_backfill_on_fresh_channel_leaves_cursor_unset(self) -> None:
        gateway = _gateway_with_feed(make_feed(6))

        self._orchestrator(gateway).ingest(CHANNEL_ID, Backfill())

        state = self.store.get_channel(CHANNEL_ID)
        self.assertIsNone(state.last_seen_video_id)
        self.assertIsNone(state.last_published_at)

    def test_reingest_overwrites_mutable_stats(self) -> None:
        feed = make_feed(3)
        gateway = _gateway_with_feed(feed)
        orchestrator = self._orchestrator(gateway)
        orchestrator.ingest(CHANNEL_ID, Backfill())
        gateway.videos["v1"] = make_video("v1", feed[1].published_at, views=999)

        orchestrator.ingest(CHANNEL_ID, Backfill())

        state = self.store.get_channel(CHANNEL_ID)
        self.assertEqual(len(state.videos), 3)
        self.assertEqual(state.videos["v1"].views, 999)

    def test_cursor_follows_feed_even_when_newest_video_is_unavailable(self) -> None:
        feed = make_feed(4)
        gateway = _gateway_with_feed(feed)
        del gateway.videos["v0"]

        result = self._orchestrator(gateway).ingest(CHANNEL_ID, Incremental())

        self.assertEqual(result.added, 3)
        state = self.store.get_channel(CHANNEL_ID)
        self.assertNotIn("v0", state.videos)
        self.assertEqual(state.last_seen_video_id, "v0")

    def test_record_cap_applies(self) -> None:
        gateway = _gateway_with_feed(make_feed(30))

        result = self._orchestrator(gateway, max_records=10).ingest(CHANNEL_ID, Incremental())

        self.assertEqual(result.added, 10)
        self.assertEqual(self.store.get_channel(CHANNEL_ID).last_seen_video_id, "v0")

    def test_cached_uploads_playlist_skips_channel_lookup(self) -> None:
        feed = make_feed(2)
        snapshot = StoreSnapshot()
        snapshot.channel(CHANNEL_ID).meta = channel_meta()
        self.store = MemoryStore(snapshot)
        gateway = _gateway_with_feed(feed)

        self._orchestrator(gateway).ingest(CHANNEL_ID, Incremental())

        self.assertEqual(gateway.calls["get_uploads_playlist_id"], 0)
        self.assertEqual(gateway.calls["get_channel"], 0)

    def test_missing_uploads_playlist_raises_not_found(self) -> None:
        gateway = FakeGateway(channels={CHANNEL_ID: channel_meta(uploads_id=None)})

        with self.assertRaises(NotFoundError):
            self._orchestrator(gateway).ingest(CHANNEL_ID, Incremental())
        self.assertEqual(self.store.save_count, 0)

    def test_unknown_channel_raises_not_found(self) -> None:
        with self.assertRaises(NotFoundError):
            self._orchestrator(FakeGateway()).ingest(CHANNEL_ID, Incremental())

    def test_meta_refresh_failure_does_not_fail_ingestion(self) -> None:
        gateway = _gateway_with_feed(make_feed(3), fail_get_channel=True)

        result = self._orchestrator(gateway).ingest(CHANNEL_ID, Incremental())

        self.assertEqual(result.added, 3)
        state = self.store.get_channel(CHANNEL_ID)
        self.assertIsNone(state.meta)
        self.assertEqual(state.uploads_playlist_id, UPLOADS_ID)
        self.assertEqual(gateway.calls["get_channel"], 1)

    def test_upstream_errors_propagate(self) -> None:
        class BrokenFeedGateway(FakeGateway):
            def list_playlist_items(self, playlist_id, page_token=None, page_size=50):
                raise UpstreamError("playlistItems.list failed", status=503)

        gateway = BrokenFeedGateway(channels={CHANNEL_ID: channel_meta()})

        with self.assertRaises(UpstreamError):
            self._orchestrator(gateway).ingest(CHANNEL_ID, Incremental())
        self.assertEqual(self.store.save_count, 0)

    def test_handle_is_resolved_before_ingesting(self) -> None:
        gateway = _gateway_with_feed(make_feed(2), search_channels={"testhandle": CHANNEL_ID})

        result = self._orchestrator(gateway).ingest("@testhandle", Incremental())

        self.assertEqual(result.channel_id, CHANNEL_ID)
        self.assertEqual(result.added, 2)

    def test_private_item_without_details_still_advances_cursor(self) -> None:
        feed = [FeedEntry(video_id="hidden", published_at=None)] + make_feed(2)
        gateway = _gateway_with_feed(feed)

        self._orchestrator(gateway).ingest(CHANNEL_ID, Incremental())

        state: ChannelState = self.store.get_channel(CHANNEL_ID)
        self.assertEqual(state.last_seen_video_id, "hidden")
        # No publish time on the cursor item: the timestamp falls back to the previous value.
        self.assertIsNone(state.last_published_at)


if __name__ == "__main__":
    unittest.main()
