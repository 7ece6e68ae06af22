"""
Unit tests for cache key derivation.
"""

import hashlib
import re

import pytest

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from object_cache.keys import CallSite, KeyBuilder, KeyPrefix, parse_prefix


class Ledger:
    """Receiver used for class-name prefixes."""


class TestKeyBuilder:
    """Test cases for KeyBuilder."""

    @pytest.fixture
    def builder(self):
        """Create KeyBuilder instance."""
        return KeyBuilder()

    @pytest.fixture
    def call_site(self):
        """A fixed call site inside a method of Ledger."""
        return CallSite(path="/srv/app/reports.py", lineno=42, function="monthly_totals", receiver=Ledger())

    def test_build_is_deterministic(self, builder, call_site):
        """Test identical inputs yield identical keys."""
        assert builder.build("2024-01", None, call_site) == builder.build("2024-01", None, call_site)

    def test_digest_matches_sha1_prefix(self, builder, call_site):
        """Test the key body is the first six hex chars of SHA-1."""
        expected = hashlib.sha1(b"2024-01/srv/app/reports.py42").hexdigest()[:6]
        assert builder.build("2024-01", None, call_site) == expected

    def test_no_discriminator(self, builder, call_site):
        """Test a missing discriminator hashes as empty text."""
        expected = hashlib.sha1(b"/srv/app/reports.py42").hexdigest()[:6]
        assert builder.build(None, None, call_site) == expected

    def test_sequence_discriminator_is_flattened(self, builder, call_site):
        """Test list discriminators are joined element by element."""
        assert builder.build(["a", ["b", 1]], None, call_site) == builder.build("ab1", None, call_site)

    def test_distinct_discriminators(self, builder, call_site):
        """Test distinct discriminators yield distinct keys."""
        assert builder.build("a", None, call_site) != builder.build("b", None, call_site)

    def test_distinct_call_sites(self, builder):
        """Test distinct lines yield distinct keys."""
        first = CallSite(path="/srv/app/reports.py", lineno=42)
        second = CallSite(path="/srv/app/reports.py", lineno=43)
        assert builder.build(None, None, first) != builder.build(None, None, second)

    def test_key_shape(self, builder, call_site):
        """Test the key is six lowercase hex characters without a prefix."""
        assert re.fullmatch(r"[0-9a-f]{6}", builder.build(1, None, call_site))

    def test_literal_prefix(self, builder, call_site):
        """Test a literal prefix joins with an underscore."""
        assert re.fullmatch(r"reports_[0-9a-f]{6}", builder.build(1, "reports", call_site))

    def test_empty_literal_prefix(self, builder, call_site):
        """Test an empty prefix is treated as absent."""
        assert "_" not in builder.build(1, "", call_site)

    def test_method_name_prefix(self, builder, call_site):
        """Test the method-name prefix."""
        assert builder.build(1, KeyPrefix.METHOD_NAME, call_site).startswith("monthly_totals_")

    def test_method_name_prefix_module_level(self, builder):
        """Test module-level code has no method-name prefix."""
        call_site = CallSite(path="/srv/app/jobs.py", lineno=3, function="<module>")
        assert builder.resolve_prefix(KeyPrefix.METHOD_NAME, call_site) is None

    def test_class_name_prefix(self, builder, call_site):
        """Test the class-name prefix uses the receiver's type."""
        assert builder.build(1, KeyPrefix.CLASS_NAME, call_site).startswith("Ledger_")

    def test_class_name_prefix_for_class_receiver(self, builder):
        """Test a class receiver (classmethod) uses its own name."""
        call_site = CallSite(path="/srv/app/jobs.py", lineno=3, function="load", receiver=Ledger)
        assert builder.resolve_prefix(KeyPrefix.CLASS_NAME, call_site) == "Ledger"

    def test_class_name_prefix_without_receiver(self, builder):
        """Test a plain function has no class-name prefix."""
        call_site = CallSite(path="/srv/app/jobs.py", lineno=3, function="load")
        assert builder.resolve_prefix(KeyPrefix.CLASS_NAME, call_site) is None

    def test_prefix_does_not_change_digest(self, builder, call_site):
        """Test the prefix only namespaces the digest."""
        plain = builder.build(1, None, call_site)
        assert builder.build(1, KeyPrefix.CLASS_NAME, call_site) == f"Ledger_{plain}"

    def test_custom_digest_length(self, call_site):
        """Test a longer digest can be configured."""
        assert len(KeyBuilder(digest_length=12).build(1, None, call_site)) == 12


class TestCallSite:
    """Test cases for CallSite capture."""

    def test_capture_current_function(self):
        """Test capturing the calling frame."""
        call_site = CallSite.capture()
        assert os.path.basename(call_site.path) == "test_keys.py"
        assert call_site.function == "test_capture_current_function"
        assert isinstance(call_site.receiver, TestCallSite)

    def test_capture_caller(self):
        """Test stacklevel walks up to the caller."""

        def helper():
            return CallSite.capture(stacklevel=2)

        call_site = helper()
        assert call_site.function == "test_capture_caller"

    def test_capture_line(self):
        """Test the captured line number is the calling line."""
        first = CallSite.capture()
        second = CallSite.capture()
        assert second.lineno == first.lineno + 1

    def test_receiver_ignored_in_equality(self):
        """Test call sites compare by location only."""
        assert CallSite("a.py", 1, "f", receiver=object()) == CallSite("a.py", 1, "f")

    def test_fingerprint(self):
        """Test the fingerprint concatenates path and line."""
        assert CallSite("/srv/app.py", 7).fingerprint == "/srv/app.py7"


def test_parse_prefix():
    """Test strategy names map to KeyPrefix members."""
    assert parse_prefix("method_name") is KeyPrefix.METHOD_NAME
    assert parse_prefix("class_name") is KeyPrefix.CLASS_NAME
    assert parse_prefix("reports") == "reports"
    assert parse_prefix(None) is None
