"""Tests for name, key and value normalization."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from mintexport.core.errors import NormalizationFailure
from mintexport.core.normalize import (
    escape_attribute_value,
    normalize_attribute_key,
    normalize_metric_name,
    normalize_metric_name_or_raise,
    unescape_attribute_value,
)

ascii_names = st.text(
    alphabet=st.characters(min_codepoint=0x20, max_codepoint=0x7E), max_size=250
).filter(lambda s: any(c.isascii() and c.isalpha() for c in s))


class TestNormalizeMetricName:
    """Tests for normalize_metric_name()."""

    @pytest.mark.core
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("metric_name", "metric_name"),
            ("just.a.normal.key", "just.a.normal.key"),
            ("Case", "Case"),
            ("~0something", "something"),
            ("some~thing", "some_thing"),
            ("some~ä#thing", "some_thing"),
            ("a..b", "a.b"),
            ("a.....b", "a.b"),
            ("asd", "asd"),
            ("a.", "a"),
            ("_a", "a"),
            ("a_", "a_"),
            ("_a_", "a_"),
            ("_a.", "a"),
            ("test..empty.test", "test.empty.test"),
            ("a,,,b  c=d\\e\\ =,f", "a_b_c_d_e_f"),
            (
                "a!b\"c#d$e%f&g'h(i)j*k+l,m-n.o/p:q;r<s=t>u?v@w[x]y\\z^0 1_2;3{4|5}6~7",
                "a_b_c_d_e_f_g_h_i_j_k_l_m-n.o_p_q_r_s_t_u_v_w_x_y_z_0_1_2_3_4_5_6_7",
            ),
            ("int-64-counter", "int-64-counter"),
            ("normalized int-64-counter", "normalized_int-64-counter"),
            ("a.-b", "a.b"),
            ("a.0b", "a.0b"),
        ],
    )
    def test_normalizes_known_names(self, raw: str, expected: str) -> None:
        """Known inputs normalize to the expected grammar-valid name."""
        assert normalize_metric_name(raw) == expected

    @pytest.mark.core
    @pytest.mark.parametrize("raw", ["", "123", "...", ".", ".a", ".a.", ".a_", "._._a_._._", "ä"])
    def test_first_section_without_letter_fails(self, raw: str) -> None:
        """Names whose first section has no ASCII letter yield an empty result."""
        assert normalize_metric_name(raw) == ""

    @pytest.mark.core
    def test_truncates_to_250_characters(self) -> None:
        """Names longer than 250 characters are truncated before normalizing."""
        result = normalize_metric_name("a" * 300)
        assert result == "a" * 250

    @pytest.mark.core
    def test_newline_is_replaced_not_kept(self) -> None:
        """Control characters never survive normalization."""
        assert normalize_metric_name("ab\ncd") == "ab_cd"

    @pytest.mark.core
    @given(ascii_names)
    def test_normalization_is_idempotent(self, raw: str) -> None:
        """Normalizing an already normalized name changes nothing."""
        once = normalize_metric_name(raw)
        assert normalize_metric_name(once) == once

    @pytest.mark.core
    @given(st.text(max_size=400))
    def test_output_matches_grammar(self, raw: str) -> None:
        """Any input yields an empty string or a grammar-valid name."""
        result = normalize_metric_name(raw)
        if result:
            assert len(result) <= 250
            assert result[0].isascii() and result[0].isalpha()
            assert all(c.isascii() and (c.isalnum() or c in "._-") for c in result)
            assert ".." not in result
            assert not result.endswith(".")

    @pytest.mark.core
    def test_or_raise_variant_raises_on_failure(self) -> None:
        """normalize_metric_name_or_raise raises NormalizationFailure."""
        with pytest.raises(NormalizationFailure) as exc_info:
            normalize_metric_name_or_raise("...")
        assert exc_info.value.raw == "..."

    @pytest.mark.core
    def test_or_raise_variant_returns_name(self) -> None:
        """normalize_metric_name_or_raise returns valid names unchanged."""
        assert normalize_metric_name_or_raise("a.b") == "a.b"


class TestNormalizeAttributeKey:
    """Tests for normalize_attribute_key()."""

    @pytest.mark.core
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("key", "key"),
            ("normalized key", "normalized_key"),
            ("Service.Name", "service_name"),
            ("_leading", "leading"),
            ("0digit", "0digit"),
            ("a-b", "a-b"),
            ("ä", ""),
            ("", ""),
            ("___", ""),
        ],
    )
    def test_normalizes_keys(self, raw: str, expected: str) -> None:
        """Keys are lower-cased and reduced to the allowed characters."""
        assert normalize_attribute_key(raw) == expected

    @pytest.mark.core
    def test_truncates_to_100_characters(self) -> None:
        """Keys longer than 100 characters are truncated."""
        assert normalize_attribute_key("k" * 150) == "k" * 100


class TestEscapeAttributeValue:
    """Tests for escape_attribute_value() and its inverse."""

    @pytest.mark.core
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("plain", "plain"),
            ("with space", "with space"),
            ('quote"d', 'quote\\"d'),
            ("a,b", "a\\,b"),
            ("a=b", "a\\=b"),
            ("back\\slash", "back\\\\slash"),
            ("line\nbreak", "line\\nbreak"),
            ("tab\there", "tab\\there"),
            ("bell\x07", "bell\\u0007"),
            ("del\x7f", "del\\u007f"),
            ("next\x85line", "next\\u0085line"),
            ("csi\x9b", "csi\\u009b"),
            ("ünïcode", "ünïcode"),
            (True, "true"),
            (False, "false"),
            (42, "42"),
            (1.5, "1.5"),
        ],
    )
    def test_escapes_values(self, value: object, expected: str) -> None:
        """Special characters are escaped and non-strings coerced to text."""
        assert escape_attribute_value(value) == expected  # type: ignore[arg-type]

    @pytest.mark.core
    def test_truncates_long_values(self) -> None:
        """Values are truncated to 250 characters before escaping."""
        assert escape_attribute_value("v" * 300) == "v" * 250

    @pytest.mark.core
    @given(st.text(max_size=250))
    def test_round_trip(self, value: str) -> None:
        """Unescaping an escaped value restores the original."""
        assert unescape_attribute_value(escape_attribute_value(value)) == value

    @pytest.mark.core
    @given(st.text(max_size=250))
    def test_escaped_value_never_breaks_a_line(self, value: str) -> None:
        """Escaped values contain no newline and no unescaped quote."""
        escaped = escape_attribute_value(value)
        assert "\n" not in escaped
        assert "\r" not in escaped
        assert '"' not in escaped.replace('\\"', "").replace("\\\\", "")

    @pytest.mark.core
    @pytest.mark.parametrize("bad", ["dangling\\", "\\q", "\\u12"])
    def test_unescape_rejects_malformed_input(self, bad: str) -> None:
        """Malformed escape sequences raise ValueError."""
        with pytest.raises(ValueError):
            unescape_attribute_value(bad)
