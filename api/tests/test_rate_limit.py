from roomie.services.rate_limit import SlidingWindowLimiter


def test_limiter_blocks_after_limit_and_recovers():
    limiter = SlidingWindowLimiter()
    assert limiter.check("like:user:a", limit=2, window_seconds=60, now=1000.0).allowed is True
    assert limiter.check("like:user:a", limit=2, window_seconds=60, now=1001.0).allowed is True

    denied = limiter.check("like:user:a", limit=2, window_seconds=60, now=1002.0)
    assert denied.allowed is False
    assert denied.retry_after_seconds == 58

    assert limiter.check("like:user:b", limit=2, window_seconds=60, now=1002.0).allowed is True
    assert limiter.check("like:user:a", limit=2, window_seconds=60, now=1061.0).allowed is True
