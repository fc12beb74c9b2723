import json

import pytest

from tfbreakdown.errors import ValueFileAttributeError, ValueFileParseError
from tfbreakdown.models import Breakdown
from tfbreakdown.tfvars import FALLBACK_KEY, is_value_file, parse_value_file, value_file_key


@pytest.mark.parametrize(
    "path, expected",
    [
        ("prod.tfvars", "prod"),
        ("env/prod.tfvars.json", "prod"),
        ("terraform.tfvars", "terraform"),
        ("staging.auto.tfvars", "staging.auto"),
        (".tfvars", FALLBACK_KEY),
        (".tfvars.json", FALLBACK_KEY),
    ],
)
def test_value_file_key(path, expected):
    assert value_file_key(path) == expected


def test_fallback_key():
    assert FALLBACK_KEY == "terraform"


@pytest.mark.parametrize(
    "path, expected",
    [
        ("prod.tfvars", True),
        ("a/b/prod.tfvars.json", True),
        (".tfvars", True),
        ("main.tf", False),
        ("prod.json", False),
        ("prod.tfvars.bak", False),
    ],
)
def test_is_value_file(path, expected):
    assert is_value_file(path) is expected


def test_parse_hcl_value_file(tmp_path):
    path = tmp_path / "prod.tfvars"
    path.write_text(
        'region = "us-east-1"\n'
        'instance_count = 3\n'
        'tags = {\n  Env = "prod"\n}\n'
        'name = ""\n'
        'computed = "${var.other}"\n',
        encoding="utf-8",
    )
    breakdown = Breakdown()

    parse_value_file(str(path), breakdown)

    tfvars = breakdown.tfvars["prod"]
    assert tfvars.file == str(path)
    assert tfvars.values == {
        "region": "us-east-1",
        "instance_count": "3",
        "tags": "{Env: prod}",
        "name": "",
    }


def test_parse_json_value_file(tmp_path):
    path = tmp_path / "dev.tfvars.json"
    path.write_text(
        json.dumps({"region": "eu-west-1", "zones": ["a", "b"], "size": 2.0, "ref": "${var.x}"}),
        encoding="utf-8",
    )
    breakdown = Breakdown()

    parse_value_file(str(path), breakdown)

    assert breakdown.tfvars["dev"].values == {"region": "eu-west-1", "zones": "[a, b]", "size": "2"}


def test_later_file_with_same_key_overwrites(tmp_path):
    first = tmp_path / "prod.tfvars"
    first.write_text('region = "us-east-1"\n', encoding="utf-8")
    second = tmp_path / "prod.tfvars.json"
    second.write_text('{"region": "eu-west-1"}', encoding="utf-8")
    breakdown = Breakdown()

    parse_value_file(str(first), breakdown)
    parse_value_file(str(second), breakdown)

    assert list(breakdown.tfvars) == ["prod"]
    assert breakdown.tfvars["prod"].file == str(second)
    assert breakdown.tfvars["prod"].values == {"region": "eu-west-1"}


def test_invalid_value_file_is_a_parse_error(tmp_path):
    path = tmp_path / "broken.tfvars"
    path.write_text('region = "us-east-1\n', encoding="utf-8")
    breakdown = Breakdown()

    with pytest.raises(ValueFileParseError):
        parse_value_file(str(path), breakdown)
    assert breakdown.tfvars == {}


def test_invalid_json_value_file_is_a_parse_error(tmp_path):
    path = tmp_path / "broken.tfvars.json"
    path.write_text('{"region": ', encoding="utf-8")

    with pytest.raises(ValueFileParseError):
        parse_value_file(str(path), Breakdown())


def test_value_file_with_blocks_is_an_attribute_error(tmp_path):
    path = tmp_path / "odd.tfvars"
    path.write_text('region = "us-east-1"\nlocals {\n  a = 1\n}\n', encoding="utf-8")
    breakdown = Breakdown()

    with pytest.raises(ValueFileAttributeError):
        parse_value_file(str(path), breakdown)
    assert breakdown.tfvars == {}


def test_hcl_value_file_decodes_escapes(tmp_path):
    path = tmp_path / "prod.tfvars"
    path.write_text('greeting = "say \\"hi\\""\nlines = "l1\\nl2"\n', encoding="utf-8")
    breakdown = Breakdown()

    parse_value_file(str(path), breakdown)

    assert breakdown.tfvars["prod"].values == {"greeting": 'say "hi"', "lines": "l1\nl2"}


def test_json_value_file_backslashes_are_kept(tmp_path):
    path = tmp_path / "prod.tfvars.json"
    path.write_text(json.dumps({"path": "C:\\new"}), encoding="utf-8")
    breakdown = Breakdown()

    parse_value_file(str(path), breakdown)

    assert breakdown.tfvars["prod"].values == {"path": "C:\\new"}
