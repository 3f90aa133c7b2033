"""Tests for webhook delivery deduplication."""

import threading

from gh_triage.webhooks.deduplicator import DeliveryDeduplicator, RegistrationResult


class FakeClock:
    def __init__(self, now_ms: int = 1_000_000):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms


class TestDeliveryDeduplicator:
    """Test DeliveryDeduplicator."""

    def test_second_registration_is_duplicate(self) -> None:
        """Test the same delivery is accepted once."""
        dedup = DeliveryDeduplicator(clock=FakeClock())

        assert dedup.register_if_first_seen("github", "d-1") is RegistrationResult.ACCEPTED
        assert dedup.register_if_first_seen("github", "d-1") is RegistrationResult.DUPLICATE
        assert len(dedup) == 1

    def test_keys_are_scoped_by_source(self) -> None:
        """Test identical ids from different sources do not collide."""
        dedup = DeliveryDeduplicator(clock=FakeClock())

        dedup.register_if_first_seen("github", "d-1")
        assert dedup.register_if_first_seen("gitlab", "d-1") is RegistrationResult.ACCEPTED

    def test_unregister_allows_retry(self) -> None:
        """Test a failed delivery can be processed again."""
        dedup = DeliveryDeduplicator(clock=FakeClock())
        dedup.register_if_first_seen("github", "d-1")

        dedup.unregister("github", "d-1")

        assert dedup.register_if_first_seen("github", "d-1") is RegistrationResult.ACCEPTED

    def test_entry_expires_after_ttl(self) -> None:
        """Test expired entries are purged and the id is accepted again."""
        clock = FakeClock()
        dedup = DeliveryDeduplicator(clock=clock)
        dedup.register_if_first_seen("github", "d-1", ttl_seconds=60)

        clock.now_ms += 59_999
        assert dedup.register_if_first_seen("github", "d-1", ttl_seconds=60) is (
            RegistrationResult.DUPLICATE
        )
        clock.now_ms += 1
        assert dedup.register_if_first_seen("github", "d-1", ttl_seconds=60) is (
            RegistrationResult.ACCEPTED
        )

    def test_stale_received_at_does_not_shorten_ttl(self) -> None:
        """Test the expiry baseline is never earlier than now."""
        clock = FakeClock()
        dedup = DeliveryDeduplicator(clock=clock)
        dedup.register_if_first_seen(
            "github", "d-1", received_at_ms=clock.now_ms - 3_600_000, ttl_seconds=10
        )

        clock.now_ms += 9_000
        assert dedup.register_if_first_seen("github", "d-1") is RegistrationResult.DUPLICATE

    def test_ttl_floor(self) -> None:
        """Test a zero or negative TTL is raised to one second."""
        clock = FakeClock()
        dedup = DeliveryDeduplicator(clock=clock)
        dedup.register_if_first_seen("github", "d-1", ttl_seconds=0)

        clock.now_ms += 999
        assert dedup.register_if_first_seen("github", "d-1") is RegistrationResult.DUPLICATE
        clock.now_ms += 1
        assert len(dedup) == 1
        dedup.register_if_first_seen("github", "d-2", ttl_seconds=-5)
        assert len(dedup) == 1

    def test_concurrent_registration_accepts_once(self) -> None:
        """Test check-and-set is atomic across threads."""
        dedup = DeliveryDeduplicator()
        results: list[RegistrationResult] = []
        barrier = threading.Barrier(8)

        def register() -> None:
            barrier.wait()
            results.append(dedup.register_if_first_seen("github", "same-id"))

        threads = [threading.Thread(target=register) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results.count(RegistrationResult.ACCEPTED) == 1
        assert results.count(RegistrationResult.DUPLICATE) == 7
