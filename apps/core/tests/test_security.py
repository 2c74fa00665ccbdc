"""Tests for input sanitizers."""

import pytest

from apps.core.security import (
    sanitize_email,
    sanitize_phone,
    sanitize_text,
    validate_password,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ('  <b>Hello</b>  ', 'bHellob'),
        ('Say "hi"', 'Say hi'),
        ('javascript:alert(1)', 'alert(1)'),
        ('JavaScript:alert(1)', 'alert(1)'),
        ('data:text/html,boom', 'texthtml,boom'),
        ('<img src=x onerror=alert(1)>', 'img src=x alert(1)'),
        ('', ''),
        (None, ''),
    ],
)
def test_sanitize_text(raw, expected):
    assert sanitize_text(raw) == expected


@pytest.mark.parametrize(
    "raw",
    [
        'jajavascript:vascript:alert(1)',
        'ononclick==x',
        ' <<a>> ',
        'data:data::',
        'x' * 999 + ' <',
        '   ' + 'y' * 1200,
        'onload=javascript:/"',
    ],
)
def test_sanitize_text_is_idempotent(raw):
    once = sanitize_text(raw)
    assert sanitize_text(once) == once


def test_sanitize_text_truncates():
    assert len(sanitize_text('a' * 5000)) == 1000


def test_sanitize_email_accepts_and_lowercases():
    assert sanitize_email('  John.Doe@Example.COM ') == 'john.doe@example.com'
    assert sanitize_email('guest+trip@mail.co.uk') == 'guest+trip@mail.co.uk'


@pytest.mark.parametrize(
    "raw",
    ['not-an-email', 'user@localhost', 'user@domain.c', '@example.com', 'user@@example.com', ''],
)
def test_sanitize_email_rejects(raw):
    assert sanitize_email(raw) == ''


def test_sanitize_phone():
    assert sanitize_phone(' +1 (555) 123-4567 ') == '+1 (555) 123-4567'
    assert sanitize_phone('tel: 555.1234') == '5551234'
    assert sanitize_phone('12+34') == '1234'
    assert sanitize_phone('call me!') == ''
    assert len(sanitize_phone('1' * 40)) == 20


def test_validate_password():
    assert validate_password('Secret123') is None
    assert 'at least 8' in validate_password('Ab1')
    assert 'uppercase' in validate_password('secret123')
    assert 'uppercase' in validate_password('SecretPass')
