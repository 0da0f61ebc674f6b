"""Command-line interface for the mlchapters pipelines."""

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from mlchapters.errors import MLChaptersError
from mlchapters.utils.logging import configure_logging

app = typer.Typer(
    name="mlchapters",
    help="Configuration-driven classical machine learning chapters.",
    no_args_is_help=True,
)

console = Console()

ConfigArg = Annotated[
    Path,
    typer.Argument(
        help="Path to chapter configuration YAML file.",
        exists=True,
        dir_okay=False,
    ),
]


@app.callback()
def main(
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Log debug events.")
    ] = False,
    json_logs: Annotated[
        bool, typer.Option("--json-logs", help="Emit logs as JSON lines.")
    ] = False,
) -> None:
    """Configure logging for every command."""
    configure_logging(level="DEBUG" if verbose else "INFO", json_output=json_logs)


@app.command()
def run(
    config: ConfigArg,
    no_plots: Annotated[
        bool, typer.Option("--no-plots", help="Skip writing plot files.")
    ] = False,
) -> None:
    """Run a chapter: load, split, fit and evaluate."""
    from mlchapters.config.loader import load_config
    from mlchapters.pipeline import run_chapter

    try:
        chapter_config = load_config(config)
        if no_plots:
            evaluation = chapter_config.evaluation.model_copy(update={"plots": False})
            chapter_config = chapter_config.model_copy(update={"evaluation": evaluation})

        title = chapter_config.title or chapter_config.chapter
        console.print(f"[blue]Running {title}[/blue]")
        result = run_chapter(chapter_config, console=console)
    except MLChaptersError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1) from e

    model = result.model
    console.print(
        f"[dim]{model.algorithm.value}: {model.n_train} training rows, "
        f"fitted in {model.training_time_s:.2f}s[/dim]"
    )
    for path in [*result.plots, *result.artifacts]:
        console.print(f"[green]Saved: {path}[/green]")
    if result.run_id:
        console.print(f"[dim]MLflow run: {result.run_id}[/dim]")


@app.command()
def algorithms() -> None:
    """List algorithm families and the hyperparameters they recognise."""
    from mlchapters.modeling.models import list_algorithms

    table = Table(title="Algorithms")
    table.add_column("Algorithm", style="cyan")
    table.add_column("Task", style="magenta")
    table.add_column("Library", style="dim")
    table.add_column("Hyperparameters (default)", style="green")

    for spec in list_algorithms():
        params = ", ".join(
            f"{hp.name}={hp.default!r}" for hp in spec.hyperparameters.values()
        )
        table.add_row(
            f"{spec.algorithm.value}\n[dim]{spec.label}[/dim]",
            spec.task.value,
            spec.library,
            params or "-",
        )
    console.print(table)


@app.command()
def explore(config: ConfigArg) -> None:
    """Describe a chapter's dataset: summaries, level counts, cross-tabulation."""
    from mlchapters.config.loader import load_config
    from mlchapters.evaluation.report import plot_histogram
    from mlchapters.evaluation.summary import explore as explore_table
    from mlchapters.evaluation.summary import print_exploration
    from mlchapters.pipeline import prepare_table

    try:
        chapter_config = load_config(config)
        table = prepare_table(chapter_config)
        settings = chapter_config.explore
        columns = settings.columns if settings else None
        crosstab_on = settings.crosstab if settings else None
        result = explore_table(table, columns=columns, crosstab_on=crosstab_on)
    except (MLChaptersError, KeyError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1) from e

    print_exploration(result, console)

    if settings and chapter_config.evaluation.plots:
        for col in settings.histograms:
            if col not in table.roles:
                console.print(f"[yellow]No column '{col}' to plot[/yellow]")
                continue
            path = plot_histogram(
                table.frame[col], chapter_config.plots_dir / f"hist_{col}.png"
            )
            console.print(f"[green]Saved: {path}[/green]")


@app.command()
def likelihood(
    config: ConfigArg,
    feature: Annotated[
        str, typer.Option("--feature", "-f", help="Categorical feature to tabulate.")
    ],
    laplace: Annotated[
        float | None,
        typer.Option("--laplace", "-l", help="Smoothing (default: from config)."),
    ] = None,
) -> None:
    """Print P(feature level | class) for a chapter's training rows."""
    from mlchapters.config.loader import load_config
    from mlchapters.modeling.bayes import class_priors, likelihood_table
    from mlchapters.modeling.data import make_split
    from mlchapters.pipeline import prepare_table

    try:
        chapter_config = load_config(config)
        if chapter_config.model is None or not chapter_config.model.target:
            console.print("[red]Error: chapter has no target column[/red]")
            raise typer.Exit(code=1)
        target = chapter_config.model.target

        table = prepare_table(chapter_config)
        train = make_split(table, chapter_config.split).train
        if feature not in train.roles:
            console.print(f"[red]Error: no column '{feature}'[/red]")
            raise typer.Exit(code=1)

        if laplace is None:
            laplace = chapter_config.model.hyperparameters.get("laplace", 0.0)
        probs = likelihood_table(train.frame, feature, target, laplace=laplace)
        priors = class_priors(train.frame, target)
    except (MLChaptersError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1) from e

    table_out = Table(title=f"P({feature} | {target}), laplace={laplace}")
    table_out.add_column(feature, style="cyan")
    for cls in probs.columns:
        table_out.add_column(f"{cls} ({priors.get(cls, 0.0):.3f})", justify="right")
    for level, row in probs.iterrows():
        table_out.add_row(str(level), *[f"{v:.4f}" for v in row])
    console.print(table_out)


@app.command()
def predict(
    model_path: Annotated[
        Path,
        typer.Argument(help="Saved model (.model.joblib or base path)."),
    ],
    data: Annotated[
        Path,
        typer.Argument(help="CSV file with the model's feature columns.", exists=True),
    ],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write predictions to this CSV."),
    ] = None,
) -> None:
    """Apply a saved model to a CSV file."""
    from mlchapters.config.settings import DataConfig
    from mlchapters.ingestion import load_table
    from mlchapters.modeling.inference import predict as predict_rows
    from mlchapters.modeling.persistence import load_model
    from mlchapters.schemas.table import ColumnRole

    try:
        model, metadata = load_model(model_path)
        categorical = [
            c for c, r in model.feature_roles.items() if r == ColumnRole.CATEGORICAL
        ]
        text = [c for c, r in model.feature_roles.items() if r == ColumnRole.TEXT]
        data_config = DataConfig(
            root=data.parent, path=Path(data.name), categorical=categorical, text=text
        )
        table = load_table(data_config)
        predictions = predict_rows(model, table)
    except MLChaptersError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1) from e

    console.print(
        f"[blue]{len(predictions)} predictions with {model.algorithm.value}"
        f"{' (' + metadata['data_hash'] + ')' if metadata.get('data_hash') else ''}[/blue]"
    )
    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        predictions.frame.to_csv(output, index=False)
        console.print(f"[green]Saved: {output}[/green]")
    else:
        preview = Table(title="Predictions (first 10 rows)")
        preview.add_column("row", style="dim")
        preview.add_column("predicted", style="green")
        if predictions.has_actual:
            preview.add_column("actual", style="cyan")
        for i, (_, row) in enumerate(predictions.frame.head(10).iterrows()):
            cells = [str(i), str(row["predicted"])]
            if predictions.has_actual:
                cells.append(str(row["actual"]))
            preview.add_row(*cells)
        console.print(preview)


@app.command()
def version() -> None:
    """Show version information."""
    from mlchapters import __version__

    console.print(f"mlchapters version {__version__}")


if __name__ == "__main__":
    app()
