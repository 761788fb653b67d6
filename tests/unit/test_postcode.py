from pricepaid.common.postcode import is_valid_uk_unit_postcode, normalise_postcode, split_postcode


def test_normalise_happy_path():
    assert normalise_postcode("sw1a 1aa") == "SW1A 1AA"


def test_normalise_removes_noise_and_whitespace():
    assert normalise_postcode(" sw1a-/1aa ") == "SW1A 1AA"


def test_normalise_rejects_empty_and_none():
    assert normalise_postcode(None) is None
    assert normalise_postcode("   ") is None


def test_normalise_rejects_too_short_or_long():
    assert normalise_postcode("ABC") is None
    assert normalise_postcode("ABCDEFGHI") is None


def test_normalise_rejects_invalid_pattern():
    assert normalise_postcode("JEA 3AB") is None


def test_validator_accepts_unit_regex():
    assert is_valid_uk_unit_postcode("SW1A 1AA")
    assert not is_valid_uk_unit_postcode("SW1A1AA")


def test_split_postcode_requires_exactly_two_parts():
    assert split_postcode("SW1A 1AA") == ("SW1A", "1AA")
    assert split_postcode("sw1a 1aa") == ("sw1a", "1aa")
    assert split_postcode("SW1A1AA") is None
    assert split_postcode("SW1A 1AA X") is None
    assert split_postcode("") is None
