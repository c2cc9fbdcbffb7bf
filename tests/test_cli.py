import json
import logging
from pathlib import Path

from click.testing import CliRunner

from api_model_compiler.cli import main
from api_model_compiler.gen_logging import configure_gen_logging, get_logger

FIXTURES = Path(__file__).parent / "fixtures"


class TestCliCompile:
    def test_compile_writes_json(self, tmp_path):
        output_file = tmp_path / "out" / "model.json"
        runner = CliRunner()
        result = runner.invoke(main, [
            "compile", str(FIXTURES / "pagerduty_mini.yaml"),
            "-o", str(output_file),
        ])

        assert result.exit_code == 0, result.output
        assert output_file.exists()
        data = json.loads(output_file.read_text(encoding="utf-8"))
        assert data["models_file"] == "models.rs"
        assert data["version"] == "2.1.0"
        assert "Compiled" in result.output

    def test_compile_uses_aliases(self, tmp_path):
        output_file = tmp_path / "model.json"
        runner = CliRunner()
        runner.invoke(main, ["compile", str(FIXTURES / "pagerduty_mini.yaml"), "-o", str(output_file)])
        data = json.loads(output_file.read_text(encoding="utf-8"))
        op = [o for o in data["operations"] if o["operation_id"] == "listIncidents"][0]
        assert op["meta"]["x-codegen-is-list-fn"] is True

    def test_prefix_and_keep_none(self, tmp_path):
        output_file = tmp_path / "model.json"
        runner = CliRunner()
        result = runner.invoke(main, [
            "compile", str(FIXTURES / "pagerduty_mini.yaml"),
            "-o", str(output_file),
            "--prefix", "pagerduty",
            "--keep-none",
        ])

        assert result.exit_code == 0, result.output
        data = json.loads(output_file.read_text(encoding="utf-8"))
        assert data["models_file"] == "pagerduty_models.rs"
        service = [m for m in data["models"] if m["classname"] == "Service"][0]
        note = [v for v in service["vars"] if v["base_name"] == "id"][0]
        assert note["meta"]["x-rustgen-skip-serializing-if-none"] is False

    def test_config_file(self, tmp_path):
        config = tmp_path / "config.yaml"
        config.write_text("denylist: [Service]\n")
        output_file = tmp_path / "model.json"
        runner = CliRunner()
        result = runner.invoke(main, [
            "compile", str(FIXTURES / "pagerduty_mini.yaml"),
            "-o", str(output_file),
            "--config", str(config),
        ])

        assert result.exit_code == 0, result.output
        data = json.loads(output_file.read_text(encoding="utf-8"))
        service = [m for m in data["models"] if m["classname"] == "Service"][0]
        assert service["vars"] == []
        assert service["meta"]["x-rustgen-placeholder"] is True

    def test_swagger2_document(self, tmp_path):
        output_file = tmp_path / "model.json"
        runner = CliRunner()
        result = runner.invoke(main, ["compile", str(FIXTURES / "swagger2_pets.yaml"), "-o", str(output_file)])

        assert result.exit_code == 0, result.output
        data = json.loads(output_file.read_text(encoding="utf-8"))
        assert "CreatePet" in [m["classname"] for m in data["models"]]


class TestCliErrors:
    def test_unknown_document(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, ["compile", str(FIXTURES / "notes.md"), "-o", str(tmp_path / "x.json")])
        assert result.exit_code == 1
        assert "not an OpenAPI 3 or Swagger 2 document" in result.output

    def test_bad_config(self, tmp_path):
        config = tmp_path / "config.yaml"
        config.write_text("denylist: 3\n")
        runner = CliRunner()
        result = runner.invoke(main, [
            "compile", str(FIXTURES / "pagerduty_mini.yaml"),
            "-o", str(tmp_path / "x.json"),
            "--config", str(config),
        ])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_missing_output_option(self):
        runner = CliRunner()
        result = runner.invoke(main, ["compile", str(FIXTURES / "pagerduty_mini.yaml")])
        assert result.exit_code == 2


class TestCliInspect:
    def test_inspect_summary(self):
        runner = CliRunner()
        result = runner.invoke(main, ["inspect", str(FIXTURES / "pagerduty_mini.yaml")])

        assert result.exit_code == 0, result.output
        assert "Mini PagerDuty 2.1.0 -> models.rs" in result.output
        assert "ListIncidentsResponse [struct]" in result.output
        assert "Target [enum]" in result.output
        assert "Removed: Broken, inline_response_200_1" in result.output
        assert "GET /incidents listIncidents -> ListIncidentsResponse (list)" in result.output
        assert "DELETE /incidents/{id} deleteIncident -> ()" in result.output


class TestLogging:
    def test_logger_names(self):
        assert get_logger("api_model_compiler.compiler.resolver").name == "modelc.resolver"
        assert get_logger().name == "modelc"

    def test_levels(self):
        configure_gen_logging(verbose=True)
        assert logging.getLogger("modelc").level == logging.DEBUG
        configure_gen_logging(quiet=True)
        assert logging.getLogger("modelc").level == logging.WARNING
        configure_gen_logging()
        assert logging.getLogger("modelc").level == logging.INFO
        assert len(logging.getLogger("modelc").handlers) == 1
