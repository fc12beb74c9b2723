import io
import json
import os

import pytest
from rich.console import Console

from tfbreakdown import TraversalError, build_breakdown
from tfbreakdown.analyzer import TerraformAnalyzer, walk_files

MAIN_TF = """
terraform {
  required_providers {
    aws = {
      source  = "hashicorp/aws"
      version = "~> 5.0"
    }
  }
}

provider "aws" {
  region = "us-east-1"
}

variable "region" {
  type    = string
  default = "us-east-1"
}

resource "aws_instance" "web" {
  ami           = "ami-123"
  instance_type = var.instance_type
}

module "vpc" {
  source = "./modules/vpc"
}
"""


def test_empty_directory_serializes_to_empty_collections(tmp_path):
    breakdown = build_breakdown(tmp_path)

    assert breakdown.to_json(pretty=False) == (
        '{"resources":[],"modules":[],"providers":[],"variables":[],"tfvars":{}}'
    )


def test_missing_root_is_a_traversal_error(tmp_path):
    with pytest.raises(TraversalError):
        build_breakdown(tmp_path / "nope")


def test_file_root_is_a_traversal_error(tmp_path):
    path = tmp_path / "main.tf"
    path.write_text("", encoding="utf-8")

    with pytest.raises(TraversalError):
        build_breakdown(path)


def test_variable_scenario_with_relative_root(write_files, monkeypatch):
    root = write_files({"main.tf": 'variable "region" {\n  type = string\n  default = "us-east-1"\n}\n'})
    monkeypatch.chdir(root)

    breakdown = build_breakdown(".")

    assert [v.to_dict() for v in breakdown.variables] == [
        {"name": "region", "type": "string", "default": "us-east-1", "file": "main.tf"}
    ]


def test_full_breakdown(write_files):
    root = write_files({
        "main.tf": MAIN_TF,
        "prod.tfvars": 'region = "us-west-2"\n',
        "README.md": "# not terraform\n",
    })

    data = json.loads(build_breakdown(root).to_json())
    main = str(root / "main.tf")

    assert data == {
        "resources": [
            {"type": "aws_instance", "name": "web", "file": main, "attributes": {"ami": "ami-123"}},
        ],
        "modules": [
            {"name": "vpc", "source": "./modules/vpc", "file": main,
             "attributes": {"source": "./modules/vpc"}},
        ],
        "providers": [{"name": "aws", "file": main}],
        "variables": [{"name": "region", "type": "string", "default": "us-east-1", "file": main}],
        "tfvars": {"prod": {"file": str(root / "prod.tfvars"), "values": {"region": "us-west-2"}}},
    }


def test_duplicate_resources_across_files_are_kept_in_walk_order(write_files):
    root = write_files({
        "b.tf": 'resource "aws_instance" "x" {\n  ami = "b"\n}\n',
        "a.tf": 'resource "aws_instance" "x" {\n  ami = "a"\n}\n',
    })

    breakdown = build_breakdown(root)

    assert [(os.path.basename(r.file), r.attributes["ami"]) for r in breakdown.resources] == [
        ("a.tf", "a"),
        ("b.tf", "b"),
    ]


def test_unparseable_files_are_skipped(write_files):
    root = write_files({
        "a_broken.tf": 'resource "aws_instance" "x" {\n',
        "b_good.tf": 'resource "aws_instance" "y" {}\n',
        "broken.tfvars": 'region = \n',
    })

    breakdown = build_breakdown(root)

    assert [r.name for r in breakdown.resources] == ["y"]
    assert breakdown.tfvars == {}


def test_every_file_failing_still_yields_a_breakdown(write_files):
    root = write_files({"broken.tf": "resource {\n"})

    assert build_breakdown(root).to_dict()["resources"] == []


def test_walk_files_order_and_exclusions(write_files):
    root = write_files({
        "b.tf": "",
        "a/z.tf": "",
        ".terraform/modules/m/main.tf": "",
        "c/d/e.tfvars": "",
    })

    files = [os.path.relpath(path, root) for path in walk_files(str(root), exclude_dirs={".terraform"})]

    assert files == [os.path.join("a", "z.tf"), "b.tf", os.path.join("c", "d", "e.tfvars")]


def test_excluded_directories_are_not_scanned(write_files):
    root = write_files({
        "main.tf": 'resource "null_resource" "a" {}\n',
        ".terraform/modules/vpc/main.tf": 'resource "null_resource" "b" {}\n',
    })

    everything = build_breakdown(root)
    trimmed = build_breakdown(root, exclude_dirs=[".terraform"])

    assert [r.name for r in everything.resources] == ["b", "a"]
    assert [r.name for r in trimmed.resources] == ["a"]


def test_verbose_warnings_go_to_the_console(write_files):
    root = write_files({"bad.tf": "resource {\n", "good.tf": 'variable "x" {}\n', "x.tfvars": "a = 1\n"})
    stream = io.StringIO()
    console = Console(file=stream, width=200)

    TerraformAnalyzer(root, verbose=True, console=console).analyze()

    log = stream.getvalue()
    assert f"Warning: Error parsing {root / 'bad.tf'}" in log
    assert f"Parsed: {root / 'good.tf'}" in log
    assert f"Parsed tfvars: {root / 'x.tfvars'}" in log


def test_quiet_by_default(write_files):
    root = write_files({"bad.tf": "resource {\n"})
    stream = io.StringIO()

    TerraformAnalyzer(root, console=Console(file=stream)).analyze()

    assert stream.getvalue() == ""
