from alerts.dispatch import AlertDispatcher
from alerts.formatter import format_amount, format_price_alert
from models.records import Watch


def _watch(**kw):
    base = dict(
        id=7, scope_id="g1", channel_id="c1", user_id="u1", item_id="X", item_name="Bitcoin",
        item_key="bitcoin", max_price=5000, once=False, created_at=1,
    )
    base.update(kw)
    return Watch(**base)


def test_format_amount():
    assert format_amount(4800, "₽") == "4,800 ₽"
    assert format_amount(1234567) == "1,234,567"


def test_alert_mentions_user_and_prices():
    msg = format_price_alert(_watch(), 4800, currency="₽")
    assert msg.text == "🚨 <@u1> **Bitcoin** is now **4,800 ₽** (≤ 5,000 ₽)"
    assert msg.title == "Price alert: Bitcoin"
    assert len(msg.lines) == 2


def test_once_alert_says_it_was_removed():
    msg = format_price_alert(_watch(once=True), 4800, currency="")
    assert "one-time" in msg.lines[-1]


def test_payload_only_pings_users():
    payload = format_price_alert(_watch(), 4800, currency="₽").to_payload()
    assert payload["allowed_mentions"] == {"parse": ["users"]}
    assert payload["embeds"][0]["title"] == "Price alert: Bitcoin"


class FakeDispatcher:
    def __init__(self, resp):
        self.resp = resp
        self.calls = []

    def send_discord(self, channel_id, message):
        self.calls.append((channel_id, message))
        return self.resp


def test_alert_goes_to_the_watch_channel():
    fake = FakeDispatcher({"ok": True})
    resp = AlertDispatcher(dispatcher=fake).dispatch_price_alert(_watch(channel_id="c9"), 4800, sweep_id="s1")
    assert resp == {"ok": True}
    assert fake.calls[0][0] == "c9"
    assert "<@u1>" in fake.calls[0][1].text


def test_alert_failure_is_returned_not_raised():
    fake = FakeDispatcher({"ok": False, "error_type": "DispatchFailure"})
    assert AlertDispatcher(dispatcher=fake).dispatch_price_alert(_watch(), 4800)["ok"] is False
