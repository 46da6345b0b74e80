"""Tests for the typer command line."""

from unittest.mock import patch

from typer.testing import CliRunner

from simpledb.cli import app
from simpledb.controller.reconciler import Done, Failed, Requeue

runner = CliRunner()


class TestGenerateCrds:
    def test_generates_and_validates(self, tmp_path):
        result = runner.invoke(app, ["generate-crds", "-o", str(tmp_path), "--validate"])

        assert result.exit_code == 0, result.output
        assert "CRDs generated successfully" in result.output
        assert "CRD validation passed" in result.output
        assert (tmp_path / "simpledbs.database.my.domain.yaml").exists()

    def test_reports_unchanged_models(self, tmp_path):
        runner.invoke(app, ["generate-crds", "-o", str(tmp_path)])
        result = runner.invoke(app, ["generate-crds", "-o", str(tmp_path)])

        assert result.exit_code == 0
        assert "models unchanged" in result.output


def test_validate_models():
    result = runner.invoke(app, ["validate-models"])

    assert result.exit_code == 0, result.output
    assert "database.my.domain/v1/SimpleDB" in result.output


class TestReconcile:
    """Tests for the one-shot reconcile command."""

    def run(self, outcome):
        with patch("simpledb.main.load_kube_config"), patch(
            "simpledb.controller.reconciler.Reconciler.reconcile", return_value=outcome
        ) as reconcile:
            result = runner.invoke(app, ["reconcile", "orders", "-n", "shop"])
        return result, reconcile

    def test_prints_outcome(self):
        result, reconcile = self.run(Requeue())

        assert result.exit_code == 0, result.output
        assert "shop/orders: Requeue()" in result.output
        [ref] = reconcile.call_args.args
        assert (ref.namespace, ref.name) == ("shop", "orders")

    def test_done(self):
        result, _ = self.run(Done(status_written=True))
        assert result.exit_code == 0

    def test_failure_exits_non_zero(self):
        result, _ = self.run(Failed(RuntimeError("boom")))
        assert result.exit_code == 1
