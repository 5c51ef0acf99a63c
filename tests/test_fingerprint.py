"""
Tests for the store data fingerprint used to invalidate cached insights.

Covers:
  - Known hash vectors (including UTF-16 surrogate pairs and int32 wrap)
  - Base-36 encoding of negative accumulators
  - Compact JSON serialization (integral floats, key order, unicode)
  - Determinism and sensitivity on a real DataSummary
"""
from conftest import NOW, _run, sample_store

from app.models.store import RevenuePeriod
from app.services.insights_aggregator import InsightsAggregator
from app.utils.helpers import canonical_json, fingerprint_data, string_hash, to_base36


def _hash36(text):
    return to_base36(string_hash(text))


# ────────────────────────────────────────────
# HASH VECTORS
# ────────────────────────────────────────────


class TestStringHash:
    def test_empty_string(self):
        assert string_hash("") == 0
        assert _hash36("") == "0"

    def test_single_char(self):
        assert string_hash("a") == 97
        assert _hash36("a") == "2p"

    def test_hello(self):
        assert string_hash("hello") == 99162322
        assert _hash36("hello") == "1n1e4y"

    def test_wraps_to_signed_int32(self):
        # 31-multiplier hash of this string lands exactly on -2**31
        assert string_hash("polygenelubricants") == -2147483648
        assert _hash36("polygenelubricants") == "-zik0zk"

    def test_stays_in_int32_range_for_long_input(self):
        h = string_hash("x" * 10_000)
        assert -2**31 <= h < 2**31

    def test_non_ascii_uses_utf16_code_units(self):
        assert string_hash("£") == 163
        # U+1F600 is the surrogate pair D83D DE00
        assert string_hash("\U0001F600") == 0xD83D * 31 + 0xDE00


class TestBase36:
    def test_zero(self):
        assert to_base36(0) == "0"

    def test_positive(self):
        assert to_base36(35) == "z"
        assert to_base36(36) == "10"

    def test_negative_has_minus_prefix(self):
        assert to_base36(-36) == "-10"


# ────────────────────────────────────────────
# SERIALIZATION
# ────────────────────────────────────────────


class TestCanonicalJson:
    def test_compact_separators(self):
        assert canonical_json({"a": 1, "b": [1, 2]}) == '{"a":1,"b":[1,2]}'

    def test_integral_floats_written_as_ints(self):
        assert canonical_json({"revenue": 1200.0, "ratio": 1.5}) == '{"revenue":1200,"ratio":1.5}'
        assert fingerprint_data({"revenue": 1200.0}) == fingerprint_data({"revenue": 1200})

    def test_booleans_untouched(self):
        assert canonical_json({"ok": True}) == '{"ok":true}'

    def test_unicode_not_escaped(self):
        assert canonical_json({"name": "Café"}) == '{"name":"Café"}'

    def test_key_order_is_preserved(self):
        first = canonical_json({"a": 1, "b": 2})
        second = canonical_json({"b": 2, "a": 1})
        assert first == '{"a":1,"b":2}'
        assert second == '{"b":2,"a":1}'
        assert fingerprint_data({"a": 1, "b": 2}) != fingerprint_data({"b": 2, "a": 1})


# ────────────────────────────────────────────
# DATA SUMMARY FINGERPRINTS
# ────────────────────────────────────────────


def _summary_fingerprint(gateway):
    result = _run(InsightsAggregator(gateway).aggregate(NOW))
    return fingerprint_data(result.summary.to_payload())


class TestSummaryFingerprint:
    def test_deterministic(self):
        assert _summary_fingerprint(sample_store()) == _summary_fingerprint(sample_store())

    def test_revenue_change_changes_fingerprint(self):
        base = _summary_fingerprint(sample_store())
        changed = _summary_fingerprint(sample_store(
            revenue=RevenuePeriod(current_period=1201.0, previous_period=1000.0, current_order_count=4, previous_order_count=3)
        ))
        assert base != changed

    def test_new_unfulfilled_order_changes_fingerprint(self):
        gateway = sample_store()
        base = _summary_fingerprint(gateway)
        gateway.unfulfilled = gateway.unfulfilled[:1]
        assert _summary_fingerprint(gateway) != base

    def test_summary_keys_are_camel_case_in_declared_order(self):
        result = _run(InsightsAggregator(sample_store()).aggregate(NOW))
        payload = result.summary.to_payload()
        assert list(payload) == ["salesTrends", "inventory", "operations"]
        assert list(payload["salesTrends"])[:3] == [
            "currentWeekRevenue", "previousWeekRevenue", "revenueChangePercent"
        ]
