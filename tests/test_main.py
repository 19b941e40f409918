"""
End-to-end tests for the command-line report.
"""

import json

import pytest

from dualcost.main import build_parser, run

CONFIG_YAML = """
pricing:
  core_price: 0.025
  mem_price: 0.01

logging:
  level: WARNING
  format: console

report:
  skip_invalid_metrics: ${TEST_SKIP_INVALID:-false}
"""


@pytest.fixture
def config_path(tmp_path, monkeypatch):
    monkeypatch.delenv("TEST_SKIP_INVALID", raising=False)
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG_YAML)
    return str(path)


@pytest.fixture
def snapshot_dir(tmp_path):
    (tmp_path / "daily.csv").write_text(
        "namespace,date,billable_cost,usage_cost,waste_cost,pod_count\n"
        "payments,2024-01-01,600.0,400.0,200.0,8\n"
        "search,2024-01-01,400.0,100.0,300.0,4\n"
    )
    (tmp_path / "hourly.csv").write_text(
        "namespace,workload_name,total_billable_cost,total_usage_cost,total_waste_cost,node_name\n"
        "payments,api,10.0,6.0,4.0,node-a\n"
        "payments,api,10.0,8.0,2.0,node-b\n"
        "search,api,20.0,19.0,1.0,node-b\n"
    )
    (tmp_path / "metrics.csv").write_text(
        "cpu_request,cpu_usage_p95,mem_request,mem_usage_p95,node,pod\n"
        "2.0,1.0,2,1,node-a,pod-1\n"
        "4.0,0.05,4,0,node-b,pod-2\n"
    )
    (tmp_path / "bad_metrics.csv").write_text(
        "cpu_request,cpu_usage_p95,mem_request,mem_usage_p95,node,pod\n"
        "2.0,1.0,2,1,node-a,pod-1\n"
        "-1.0,0.0,0,0,node-b,pod-2\n"
    )
    (tmp_path / "zombies.csv").write_text(
        "identifier,cpu_avg,cpu_stddev,mem_avg,mem_stddev,network_avg,network_stddev,cpu_request,mem_request\n"
        "idle-pod,0.05,0.0005,0.05,0.0005,0.5,0.0005,2.0,2147483648\n"
        "busy-pod,1.5,0.2,2.0,0.1,50.0,3.0,4.0,4294967296\n"
    )
    return tmp_path


def run_cli(argv):
    return run(build_parser().parse_args(argv))


def read_report(path):
    with open(path) as f:
        return json.load(f)


class TestRun:
    """Test suite for the report command."""

    def test_full_report(self, config_path, snapshot_dir):
        output = snapshot_dir / "report.json"

        exit_code = run_cli(
            [
                "--config", config_path,
                "--daily-costs", str(snapshot_dir / "daily.csv"),
                "--hourly-stats", str(snapshot_dir / "hourly.csv"),
                "--metrics", str(snapshot_dir / "metrics.csv"),
                "--zombie-metrics", str(snapshot_dir / "zombies.csv"),
                "--output", str(output),
            ]
        )

        assert exit_code == 0
        report = read_report(output)

        assert report["global"]["total_billable_cost"] == 1000.0
        assert report["global"]["global_efficiency"] == 50.0
        assert report["reconciled"] is True
        assert [d["domain_name"] for d in report["domain_breakdown"]] == ["payments", "search"]
        assert report["domain_breakdown"][0]["cost_percentage"] == 60.0

        assert report["namespaces"]["payments"]["total_billable_cost"] == 20.0
        assert report["workloads"]["search/api"]["efficiency_score"] == 95.0
        assert report["nodes"]["node-b"]["resource_count"] == 2

        summary = report["cost_summary"]
        assert summary["resource_count"] == 2
        assert summary["grade_counts"]["Healthy"] == 1
        assert summary["grade_counts"]["Zombie"] == 1
        assert set(report["resource_nodes"]) == {"node-a", "node-b"}
        assert report["pods"]["pod-1"]["total_billable_cost"] == 0.07

        zombies = {z["identifier"]: z for z in report["zombies"]}
        assert zombies["idle-pod"]["is_zombie"] is True
        assert "2.00 cores, 2.00 GiB memory" in zombies["idle-pod"]["suggestion"]
        assert zombies["busy-pod"]["is_zombie"] is False
        assert zombies["busy-pod"]["suggestion"].startswith("Not a zombie")

    def test_price_override(self, config_path, snapshot_dir):
        output = snapshot_dir / "report.json"

        exit_code = run_cli(
            [
                "--config", config_path,
                "--metrics", str(snapshot_dir / "metrics.csv"),
                "--core-price", "0.05",
                "--output", str(output),
            ]
        )

        assert exit_code == 0
        assert read_report(output)["pods"]["pod-1"]["total_billable_cost"] == 0.12

    def test_prints_to_stdout(self, config_path, snapshot_dir, capsys):
        exit_code = run_cli(["--config", config_path, "--daily-costs", str(snapshot_dir / "daily.csv")])

        assert exit_code == 0
        report = json.loads(capsys.readouterr().out)
        assert report["global"]["namespace_count"] == 2

    def test_invalid_metrics_fail_run(self, config_path, snapshot_dir):
        exit_code = run_cli(["--config", config_path, "--metrics", str(snapshot_dir / "bad_metrics.csv")])

        assert exit_code == 1

    def test_invalid_metrics_skipped_when_configured(self, config_path, snapshot_dir, monkeypatch):
        monkeypatch.setenv("TEST_SKIP_INVALID", "true")
        output = snapshot_dir / "report.json"

        exit_code = run_cli(
            [
                "--config", config_path,
                "--metrics", str(snapshot_dir / "bad_metrics.csv"),
                "--output", str(output),
            ]
        )

        assert exit_code == 0
        report = read_report(output)
        assert report["cost_summary"]["resource_count"] == 1
        assert "pods" not in report

    def test_no_input(self, config_path):
        assert run_cli(["--config", config_path]) == 1

    def test_missing_input_file(self, config_path, tmp_path):
        assert run_cli(["--config", config_path, "--daily-costs", str(tmp_path / "missing.csv")]) == 1

    def test_missing_config(self, tmp_path, snapshot_dir):
        exit_code = run_cli(
            ["--config", str(tmp_path / "missing.yaml"), "--daily-costs", str(snapshot_dir / "daily.csv")]
        )

        assert exit_code == 1
