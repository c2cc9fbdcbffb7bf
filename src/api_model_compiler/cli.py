"""CLI entry point for api-model-compiler."""

from pathlib import Path

import click

from api_model_compiler.compiler.model import CompiledApi
from api_model_compiler.compiler.pipeline import ModelCompiler
from api_model_compiler.config import ConfigError, load_config
from api_model_compiler.gen_logging import configure_gen_logging
from api_model_compiler.parser.base import DocumentError
from api_model_compiler.parser.detect import detect_format
from api_model_compiler.parser.swagger import parse_openapi


def _compile_doc(doc_path: Path, config_path: Path | None, **overrides) -> CompiledApi:
    """Load config, parse the document and run the compiler."""
    fmt = detect_format(doc_path)
    if fmt == "unknown":
        raise click.ClickException(f"{doc_path} is not an OpenAPI 3 or Swagger 2 document")
    try:
        config = load_config(config_path, **overrides)
        document = parse_openapi(doc_path)
    except (ConfigError, DocumentError) as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"Parsed {doc_path} ({fmt}): {len(document.schemas)} schemas, {len(document.operations)} operations.")
    return ModelCompiler(config).compile(document)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log every rename, fallback and dropped variant.")
@click.option("-q", "--quiet", is_flag=True, help="Only log warnings and errors.")
def main(verbose: bool, quiet: bool):
    """API Model Compiler: turn OpenAPI schemas into an enriched model for code templates."""
    configure_gen_logging(verbose=verbose, quiet=quiet)


@main.command(name="compile")
@click.argument("doc_path", type=click.Path(exists=True, path_type=Path))
@click.option("-o", "--output", required=True, type=click.Path(path_type=Path), help="Output file for the compiled model (JSON).")
@click.option("--prefix", "target_api_prefix", default=None, help="Target API prefix; names the models file <prefix>_models.rs.")
@click.option("--config", "config_path", default=None, type=click.Path(exists=True, path_type=Path), help="YAML file overlaid on the default tables.")
@click.option("--skip-none/--keep-none", "skip_serializing_if_none", default=None, help="Skip optional fields that are None when serializing.")
def compile_api(doc_path: Path, output: Path, target_api_prefix: str | None, config_path: Path | None,
                skip_serializing_if_none: bool | None):
    """Compile an API document into the enriched model."""
    api = _compile_doc(
        doc_path,
        config_path,
        target_api_prefix=target_api_prefix,
        skip_serializing_if_none=skip_serializing_if_none,
    )

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(api.model_dump_json(indent=2, by_alias=True), encoding="utf-8")
    click.echo(f"Compiled {len(api.models)} models ({len(api.removed_models)} removed) and "
               f"{len(api.operations)} operations to {output}")


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, path_type=Path))
@click.option("--config", "config_path", default=None, type=click.Path(exists=True, path_type=Path), help="YAML file overlaid on the default tables.")
def inspect(doc_path: Path, config_path: Path | None):
    """Print a summary of the compiled models and operations."""
    api = _compile_doc(doc_path, config_path)

    click.echo(f"{api.title} {api.version} -> {api.models_file}")
    click.echo(f"Models ({len(api.models)}):")
    for model in api.models:
        kind = "enum" if model.is_enum else model.container or "struct"
        click.echo(f"  {model.classname} [{kind}] {len(model.vars)} fields")
    if api.removed_models:
        click.echo(f"Removed: {', '.join(api.removed_models)}")

    click.echo(f"Operations ({len(api.operations)}):")
    for op in api.operations:
        response = op.primary_response
        returns = response.datatype if response and response.datatype else "()"
        marker = " (list)" if op.meta.is_list_fn else ""
        click.echo(f"  {op.method} {op.path} {op.operation_id} -> {returns}{marker}")
