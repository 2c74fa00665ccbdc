import pytest

from apps.core.rate_limit import RateLimiter, create_rate_limiter


def test_blocks_after_max_attempts(clock):
    limiter = create_rate_limiter(3, 600_000, clock=clock)

    assert [limiter('guest@example.com') for _ in range(4)] == [True, True, True, False]
    assert limiter.attempts('guest@example.com') == 3


def test_window_resets_after_expiry(clock):
    limiter = create_rate_limiter(3, 600_000, clock=clock)
    for _ in range(4):
        limiter('guest@example.com')

    clock.advance(600_001)

    assert limiter('guest@example.com') is True
    assert limiter.attempts('guest@example.com') == 1


def test_window_is_fixed_not_sliding(clock):
    limiter = create_rate_limiter(2, 1_000, clock=clock)
    limiter('key')
    clock.advance(900)
    limiter('key')
    clock.advance(99)

    assert limiter('key') is False
    clock.advance(2)
    assert limiter('key') is True


def test_keys_are_independent(clock):
    limiter = create_rate_limiter(1, 600_000, clock=clock)

    assert limiter('user-1') is True
    assert limiter('user-1') is False
    assert limiter('user-2') is True
    assert limiter.attempts('unknown') == 0


def test_rejected_calls_are_logged(clock, caplog):
    limiter = create_rate_limiter(1, 600_000, clock=clock)
    limiter('anonymous')

    with caplog.at_level('WARNING', logger='apps.core.rate_limit'):
        limiter('anonymous')

    assert 'Rate limit exceeded for anonymous' in caplog.text


@pytest.mark.parametrize("max_attempts, window_ms", [(0, 1_000), (3, 0)])
def test_invalid_configuration(max_attempts, window_ms):
    with pytest.raises(ValueError):
        RateLimiter(max_attempts, window_ms)
