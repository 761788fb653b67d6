from pricepaid.cli import parse_args


def test_parse_args_defaults():
    args = parse_args(["ingest"])
    assert args.command == "ingest"
    assert args.year is None
    assert args.overlay_config_dir is None
    assert args.config_dir == "./config"


def test_parse_args_accepts_year_and_overlay_config_dir():
    args = parse_args(["ingest", "--year", "2021", "--overlay-config-dir", "config/local"])
    assert args.year == 2021
    assert args.overlay_config_dir == "config/local"


def test_parse_args_seed_postcodes_format():
    args = parse_args(["seed-postcodes", "--input", "codepo.csv", "--format", "codepoint"])
    assert args.input == "codepo.csv"
    assert args.format == "codepoint"
