import argparse
import json

import pytest

from feature_flow.cli.feature_flow import build_parser, main, parse_feature_spec


def _run(argv):
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


def test_report_text_output(scenario_graph_file, capsys) -> None:
    code = _run(["report", "--graph-file", str(scenario_graph_file)])

    out = capsys.readouterr().out
    assert code == 0
    assert out.startswith("Enabled Features\n-------------------\n")
    assert 'serde-1.0.100/derive ["lib", "tool"]' in out
    assert out.rstrip().endswith("serde-1.0.100/std")


def test_report_json_output_to_file(scenario_graph_file, tmp_path) -> None:
    output = tmp_path / "report.json"

    code = _run(["report", "--graph-file", str(scenario_graph_file), "--format", "json", "--output", str(output)])

    data = json.loads(output.read_text(encoding="utf-8"))
    assert code == 0
    assert data["enabled"][0]["enablers"] == ["lib", "tool"]


def test_explain_single_feature(scenario_graph_file, capsys) -> None:
    code = _run(["explain", "serde/std", "--graph-file", str(scenario_graph_file)])

    out = capsys.readouterr().out
    assert code == 0
    assert "serde-1.0.100/std" in out
    assert "derive" not in out


def test_explain_unknown_dependency_fails(scenario_graph_file, capsys) -> None:
    code = _run(["explain", "tokio", "--graph-file", str(scenario_graph_file)])

    assert code == 1
    assert "tokio" in capsys.readouterr().err


def test_analysis_error_exits_with_one(tmp_path, capsys) -> None:
    code = _run(["report", "--graph-file", str(tmp_path / "missing.yaml")])

    assert code == 1
    assert "❌ Error:" in capsys.readouterr().err


def test_features_flag_is_repeatable() -> None:
    args = build_parser().parse_args(["report", "--features", "derive std", "--features", "rc"])

    assert args.features == ["derive std", "rc"]
    assert args.all_features is None


@pytest.mark.parametrize("spec, expected", [("serde", ("serde", None)), ("serde/derive", ("serde", "derive"))])
def test_parse_feature_spec(spec, expected) -> None:
    assert parse_feature_spec(spec) == expected


@pytest.mark.parametrize("spec", ["", "/derive", "serde/"])
def test_parse_feature_spec_rejects_malformed(spec) -> None:
    with pytest.raises(argparse.ArgumentTypeError):
        parse_feature_spec(spec)


def test_invalid_config_file_reports_error_without_traceback(scenario_graph_file, tmp_path, capsys) -> None:
    config_path = tmp_path / "featureflow.config.yaml"
    config_path.write_text("output_format: xml\n", encoding="utf-8")

    code = _run(["report", "--config", str(config_path), "--graph-file", str(scenario_graph_file)])

    err = capsys.readouterr().err
    assert code == 1
    assert "❌ Error: Invalid configuration" in err
    assert "Traceback" not in err


def test_verbose_prints_traversal_stats(scenario_graph_file, capsys) -> None:
    code = _run(["report", "--graph-file", str(scenario_graph_file), "--verbose"])

    assert code == 0
    assert "📊 4 packages expanded, 4 edges observed, 3 dependency targets" in capsys.readouterr().err
