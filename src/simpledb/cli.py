import typer
from typing_extensions import Annotated

from dotenv import load_dotenv, find_dotenv

load_dotenv(find_dotenv())

app = typer.Typer(
    help="SimpleDB: Kubernetes operator running databases as Deployments",
    add_completion=False,
)


@app.command("operator")
def run_operator():
    """Run the Kubernetes operator (connects to cluster)."""
    from simpledb.main import main

    main()


@app.command("generate-crds")
def generate_crds(
    output: Annotated[
        str, typer.Option("-o", "--output", help="Output directory")
    ] = "crds/generated",
    force: Annotated[bool, typer.Option("--force", help="Force regeneration")] = False,
    validate: Annotated[
        bool, typer.Option("--validate", help="Validate generated CRDs")
    ] = False,
):
    """Generate CRD YAML files from pydantic models."""
    from simpledb.crd.generator import SimpleDBCRDManager

    manager = SimpleDBCRDManager(output_dir=output)
    try:
        generated = manager.generate_all_crds(force=force)
    except (OSError, ValueError) as e:
        typer.echo(f"Failed to generate CRDs: {e}")
        raise typer.Exit(1)

    if not generated:
        typer.echo("No CRDs generated (models unchanged)")
        return

    typer.echo(f"CRDs generated successfully in {output}")
    if validate:
        if manager.validate_generated_crds():
            typer.echo("CRD validation passed")
        else:
            typer.echo("CRD validation failed")
            raise typer.Exit(1)


@app.command("validate-models")
def validate_models():
    """Validate CRD models without generating files."""
    from simpledb.crd.generator import SimpleDBCRDManager

    manager = SimpleDBCRDManager()
    try:
        crds = manager.get_crds_as_dict()
    except ValueError as e:
        typer.echo(f"Model validation failed: {e}")
        raise typer.Exit(1)

    models = manager.registry.get_all_models()
    typer.echo(f"Validated {len(models)} CRD models")
    for key in models.keys():
        typer.echo(f"  - {key}")
    typer.echo(f"Generated {len(crds)} CRDs in memory")


@app.command("reconcile")
def reconcile(
    name: Annotated[str, typer.Argument(help="SimpleDB name")],
    namespace: Annotated[
        str, typer.Option("-n", "--namespace", help="SimpleDB namespace")
    ] = "default",
):
    """Run a single reconciliation pass against the current cluster."""
    from simpledb.controller.reconciler import Failed, Reconciler
    from simpledb.main import load_kube_config
    from simpledb.models.simpledb import NamespacedName
    from simpledb.services.kubernetes_backend import KubernetesBackend

    load_kube_config()
    outcome = Reconciler(KubernetesBackend()).reconcile(NamespacedName(namespace, name))
    typer.echo(f"{namespace}/{name}: {outcome}")
    if isinstance(outcome, Failed):
        raise typer.Exit(1)
