from ao_wallet_bot.utils.rate_limit import RateLimiter


class FakeClock:
    def __init__(self) -> None:
        self.now = 1_000.0

    def __call__(self) -> float:
        return self.now


def test_rate_limiter_blocks_after_limit() -> None:
    clock = FakeClock()
    limiter = RateLimiter(limit_per_minute=2, clock=clock)

    assert limiter.allow(1)
    assert limiter.allow(1)
    assert not limiter.allow(1)
    assert limiter.allow(2)


def test_rate_limiter_window_slides() -> None:
    clock = FakeClock()
    limiter = RateLimiter(limit_per_minute=1, clock=clock)

    assert limiter.allow(1)
    clock.now += 30
    assert not limiter.allow(1)
    assert limiter.retry_after(1) == 30.0

    clock.now += 30
    assert limiter.allow(1)
    assert limiter.retry_after(2) == 0.0


def test_rate_limiter_disabled_with_zero_limit() -> None:
    limiter = RateLimiter(limit_per_minute=0)
    assert all(limiter.allow(1) for _ in range(100))
